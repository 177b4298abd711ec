from datetime import UTC, datetime, timedelta

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, Header, HTTPException, Query, Response

from linelogic.api.common.ip import normalize_ip
from linelogic.api.modules.fraud.exceptions import FraudStoreError
from linelogic.api.modules.fraud.schema import (
    BanCreateRequest,
    BannedIpResponse,
    FraudAttemptListResponse,
    FraudAttemptPaginationParams,
    FraudStatsResponse,
)
from linelogic.api.modules.fraud.services.registry import BanRegistry
from linelogic.api.modules.fraud.store import FraudStore
from linelogic.settings import Config

router = APIRouter(route_class=DishkaRoute)


def ensure_admin(config: Config, admin_email: str | None) -> str:
    email = (admin_email or "").strip().lower()
    if not email or email not in config.auth.admin_email_list():
        raise HTTPException(status_code=403, detail="admin_access_required")
    return email


def store_unavailable() -> HTTPException:
    return HTTPException(status_code=503, detail="fraud_store_unavailable")


@router.get("/attempts", response_model=FraudAttemptListResponse, status_code=200)
async def get_fraud_attempts(
    store: FromDishka[FraudStore],
    config: FromDishka[Config],
    params: FraudAttemptPaginationParams = Query(),
    x_admin_email: str | None = Header(default=None),
) -> FraudAttemptListResponse:
    ensure_admin(config, x_admin_email)
    ip_address = normalize_ip(params.ip_address) or params.ip_address
    try:
        items, total = await store.list_fraud_attempts(
            limit=params.page_size,
            offset=params.offset,
            severity=params.severity,
            fraud_type=params.fraud_type,
            ip_address=ip_address,
        )
    except FraudStoreError as exc:
        raise store_unavailable() from exc

    return FraudAttemptListResponse.from_params(items=items, total=total, params=params)


@router.get("/bans", response_model=list[BannedIpResponse], status_code=200)
async def get_banned_ips(
    store: FromDishka[FraudStore],
    config: FromDishka[Config],
    include_expired: bool = Query(default=False),
    x_admin_email: str | None = Header(default=None),
) -> list[BannedIpResponse]:
    ensure_admin(config, x_admin_email)
    try:
        return await store.list_bans(include_expired=include_expired)
    except FraudStoreError as exc:
        raise store_unavailable() from exc


@router.post("/bans", status_code=204)
async def ban_ip(
    payload: BanCreateRequest,
    bans: FromDishka[BanRegistry],
    config: FromDishka[Config],
    x_admin_email: str | None = Header(default=None),
) -> Response:
    admin_email = ensure_admin(config, x_admin_email)
    expires_at = None
    if payload.expires_in_hours:
        expires_at = datetime.now(UTC) + timedelta(hours=payload.expires_in_hours)

    try:
        await bans.ban(
            ip_address=payload.ip_address,
            reason=payload.reason,
            banned_by=admin_email,
            ban_type="manual",
            expires_at=expires_at,
        )
    except FraudStoreError as exc:
        raise store_unavailable() from exc
    return Response(status_code=204)


@router.delete("/bans/{ip_address}", status_code=204)
async def unban_ip(
    ip_address: str,
    bans: FromDishka[BanRegistry],
    config: FromDishka[Config],
    x_admin_email: str | None = Header(default=None),
) -> Response:
    ensure_admin(config, x_admin_email)
    canonical = normalize_ip(ip_address)
    if canonical is None:
        raise HTTPException(status_code=422, detail="invalid_ip_address")
    try:
        await bans.unban(canonical)
    except FraudStoreError as exc:
        raise store_unavailable() from exc
    return Response(status_code=204)


@router.get("/stats", response_model=FraudStatsResponse, status_code=200)
async def get_fraud_stats(
    store: FromDishka[FraudStore],
    config: FromDishka[Config],
    x_admin_email: str | None = Header(default=None),
) -> FraudStatsResponse:
    ensure_admin(config, x_admin_email)
    try:
        return await store.fraud_stats()
    except FraudStoreError as exc:
        raise store_unavailable() from exc
