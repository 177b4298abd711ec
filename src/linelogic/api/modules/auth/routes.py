from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, Request

from linelogic.api.modules.auth.schema import (
    PrecheckRequest,
    PrecheckResponse,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
)
from linelogic.api.modules.auth.service import SignupService

router = APIRouter(route_class=DishkaRoute)


@router.post("/signup", response_model=SignupResponse, status_code=201)
async def sign_up(
    request: Request,
    payload: SignupRequest,
    service: FromDishka[SignupService],
) -> SignupResponse:
    return await service.sign_up_request(request=request, payload=payload)


@router.post("/signin", response_model=SigninResponse, status_code=200)
async def sign_in(
    payload: SigninRequest,
    service: FromDishka[SignupService],
) -> SigninResponse:
    return await service.sign_in(payload)


@router.post("/precheck", response_model=PrecheckResponse, status_code=200)
async def precheck(
    payload: PrecheckRequest,
    service: FromDishka[SignupService],
) -> PrecheckResponse:
    return await service.precheck(payload)
