from sqlalchemy.ext.asyncio import AsyncSession

from linelogic.api.modules.fraud.gateway import (
    BannedIpGateway,
    FraudAttemptGateway,
    SignupAttemptGateway,
)


class UnitOfWork:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.banned_ips = BannedIpGateway(session)
        self.signup_attempts = SignupAttemptGateway(session)
        self.fraud_attempts = FraudAttemptGateway(session)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
