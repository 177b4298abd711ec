from fastapi import APIRouter


def register_routers(router: APIRouter) -> None:
    from linelogic.api.modules.auth.routes import router as auth_router
    from linelogic.api.modules.fraud.routes import router as fraud_router

    router.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
    router.include_router(fraud_router, prefix="/admin/fraud", tags=["Fraud admin"])

    @router.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}
