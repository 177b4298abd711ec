from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from linelogic.api.common.ip import normalize_ip
from linelogic.api.common.schema import Pagination, PaginationParams

FraudType = Literal["banned_ip", "name_fraud", "high_risk", "suspicious"]
Severity = Literal["low", "medium", "high", "critical"]
ActionTaken = Literal["allowed", "flagged", "blocked", "banned"]
BanType = Literal["system", "manual"]
FraudReason = Literal[
    "IP_BANNED",
    "FRAUD_NAME_DETECTED",
    "HIGH_RISK_SIGNUP",
    "MANUAL_REVIEW_REQUIRED",
    "SYSTEM_ERROR",
]


class SignupEvaluationRequest(BaseModel):
    email: str = Field(..., max_length=320)
    name: str = Field(..., max_length=255)
    ip_address: str = Field(..., max_length=64)
    user_agent: str | None = Field(default=None, max_length=2048)

    model_config = ConfigDict(extra="forbid")


class FraudDecision(BaseModel):
    allowed: bool
    banned: bool
    score: int = Field(..., ge=0)
    reason: FraudReason | None = None
    action_taken: ActionTaken


class RateLimitStatus(BaseModel):
    allowed: bool
    attempts: int
    reset_at: datetime | None = None

    def retry_after_seconds(self, now: datetime) -> int | None:
        if self.reset_at is None:
            return None
        return max(0, int((self.reset_at - now).total_seconds()))


class FraudAttemptRecord(BaseModel):
    ip_address: str
    email: str
    name: str
    user_agent: str | None = None
    fraud_type: FraudType
    severity: Severity
    action_taken: ActionTaken
    metadata: dict[str, Any] = Field(default_factory=dict)


class SignupAttemptRecord(BaseModel):
    ip_address: str
    email: str
    normalized_email: str
    user_agent: str | None = None
    succeeded: bool
    fraud_score: int


class BanCreateRequest(BaseModel):
    ip_address: str = Field(..., min_length=1, max_length=64)
    reason: str = Field(..., min_length=1, max_length=1024)
    expires_in_hours: int | None = Field(default=None, ge=1, le=24 * 365)

    model_config = ConfigDict(extra="forbid")

    @field_validator("ip_address")
    @classmethod
    def canonical_ip(cls, value: str) -> str:
        ip = normalize_ip(value)
        if ip is None:
            raise ValueError("must be a valid IPv4 or IPv6 address")
        return ip


class BannedIpResponse(BaseModel):
    id: int
    ip_address: str
    reason: str
    ban_type: BanType
    banned_by: str
    created_at: datetime
    expires_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class FraudAttemptResponse(BaseModel):
    id: int
    ip_address: str
    email: str
    name: str
    user_agent: str | None = None
    fraud_type: FraudType
    severity: Severity
    action_taken: ActionTaken
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias="extra"
    )
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class FraudAttemptPaginationParams(PaginationParams):
    severity: Severity | None = None
    fraud_type: FraudType | None = None
    ip_address: str | None = Field(default=None, max_length=64)


class FraudAttemptListResponse(Pagination[FraudAttemptResponse]):
    pass


class FraudStatsResponse(BaseModel):
    total_attempts: int
    banned_ips: int
    today_attempts: int
    critical_attempts: int
