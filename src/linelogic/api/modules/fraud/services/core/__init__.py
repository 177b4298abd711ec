from linelogic.api.modules.fraud.services.core.messages import (
    DEFAULT_FRAUD_MESSAGE,
    FRAUD_MESSAGES,
    RATE_LIMITED_MESSAGE,
    fraud_message,
)
from linelogic.api.modules.fraud.services.core.user_agent import looks_automated
from linelogic.api.modules.fraud.services.core.utils import (
    BANNED_IP_BAND,
    CRITICAL_BAND,
    HIGH_BAND,
    LOW_BAND,
    MEDIUM_BAND,
    ScoreBand,
    band_for_score,
    canonical_email,
    domain_allowed,
    email_domain,
    looks_like_fraud_name,
)

__all__ = (
    "BANNED_IP_BAND",
    "CRITICAL_BAND",
    "DEFAULT_FRAUD_MESSAGE",
    "FRAUD_MESSAGES",
    "HIGH_BAND",
    "LOW_BAND",
    "MEDIUM_BAND",
    "RATE_LIMITED_MESSAGE",
    "ScoreBand",
    "band_for_score",
    "canonical_email",
    "domain_allowed",
    "email_domain",
    "fraud_message",
    "looks_automated",
    "looks_like_fraud_name",
)
