import datetime
from collections.abc import Sequence

from sqlalchemy import BinaryExpression, delete, func, or_, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from linelogic.api.modules.fraud.models import BannedIp, FraudAttempt, SignupAttempt


def _active_ban_clause(now: datetime.datetime):
    return or_(BannedIp.expires_at.is_(None), BannedIp.expires_at > now)


class BannedIpGateway:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active(
        self, ip_address: str, now: datetime.datetime
    ) -> BannedIp | None:
        stmt = select(BannedIp).where(
            BannedIp.ip_address == ip_address,
            _active_ban_clause(now),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(
        self, now: datetime.datetime, include_expired: bool = False
    ) -> Sequence[BannedIp]:
        stmt = select(BannedIp).order_by(BannedIp.created_at.desc())
        if not include_expired:
            stmt = stmt.where(_active_ban_clause(now))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_active(self, now: datetime.datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(BannedIp)
            .where(_active_ban_clause(now))
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def upsert(
        self,
        ip_address: str,
        reason: str,
        ban_type: str,
        banned_by: str,
        expires_at: datetime.datetime | None,
    ) -> None:
        stmt = insert(BannedIp).values(
            ip_address=ip_address,
            reason=reason,
            ban_type=ban_type,
            banned_by=banned_by,
            expires_at=expires_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[BannedIp.ip_address],
            set_={
                "reason": stmt.excluded.reason,
                "ban_type": stmt.excluded.ban_type,
                "banned_by": stmt.excluded.banned_by,
                "expires_at": stmt.excluded.expires_at,
            },
        )
        await self.session.execute(stmt)

    async def delete(self, ip_address: str) -> int:
        stmt = delete(BannedIp).where(BannedIp.ip_address == ip_address)
        result = await self.session.execute(stmt)
        return result.rowcount or 0


class SignupAttemptGateway:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def count_for_ip(
        self, ip_address: str, since: datetime.datetime
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(SignupAttempt)
            .where(
                SignupAttempt.ip_address == ip_address,
                SignupAttempt.created_at >= since,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def email_seen_from_other_ip(
        self, normalized_email: str, ip_address: str
    ) -> bool:
        stmt = (
            select(SignupAttempt.id)
            .where(
                SignupAttempt.normalized_email == normalized_email,
                SignupAttempt.ip_address != ip_address,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def create(self, attempt: SignupAttempt) -> SignupAttempt:
        self.session.add(attempt)
        await self.session.flush()
        return attempt


class FraudAttemptGateway:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_total_count(
        self, filters: list[BinaryExpression]
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(FraudAttempt)
            .where(*filters)
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_all(
        self,
        limit: int,
        offset: int,
        filters: list[BinaryExpression],
    ) -> Sequence[FraudAttempt]:
        stmt = (
            select(FraudAttempt)
            .filter(*filters)
            .order_by(FraudAttempt.created_at.desc())
            .offset(offset=offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_for_ip(
        self, ip_address: str, since: datetime.datetime
    ) -> int:
        return await self.get_total_count(
            [
                FraudAttempt.ip_address == ip_address,
                FraudAttempt.created_at >= since,
            ]
        )

    async def create(self, attempt: FraudAttempt) -> FraudAttempt:
        self.session.add(attempt)
        await self.session.flush()
        return attempt
