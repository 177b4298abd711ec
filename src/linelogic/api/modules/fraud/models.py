import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from linelogic.database.base import Base, DateTimeMixin, IdMixin


class BannedIp(Base, IdMixin, DateTimeMixin):
    __tablename__ = "banned_ips"

    ip_address: Mapped[str] = mapped_column(String(64), unique=True)
    reason: Mapped[str] = mapped_column(Text)
    ban_type: Mapped[str] = mapped_column(String(16), default="system")
    banned_by: Mapped[str] = mapped_column(String(255), default="system")
    expires_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class SignupAttempt(Base, IdMixin, DateTimeMixin):
    __tablename__ = "signup_attempts"

    ip_address: Mapped[str] = mapped_column(String(64), index=True)
    email: Mapped[str] = mapped_column(String(320))
    normalized_email: Mapped[str] = mapped_column(String(320), index=True)
    user_agent: Mapped[str | None] = mapped_column(
        String(2048), nullable=True
    )
    succeeded: Mapped[bool] = mapped_column(Boolean, default=False)
    fraud_score: Mapped[int] = mapped_column(Integer, default=0)


class FraudAttempt(Base, IdMixin, DateTimeMixin):
    __tablename__ = "fraud_attempts"

    ip_address: Mapped[str] = mapped_column(String(64), index=True)
    email: Mapped[str] = mapped_column(String(320))
    name: Mapped[str] = mapped_column(String(255))
    user_agent: Mapped[str | None] = mapped_column(
        String(2048), nullable=True
    )
    fraud_type: Mapped[str] = mapped_column(String(32), index=True)
    severity: Mapped[str] = mapped_column(String(16), index=True)
    action_taken: Mapped[str] = mapped_column(String(16))
    # "metadata" is reserved on declarative classes
    extra: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
