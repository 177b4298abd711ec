import re
from dataclasses import dataclass

from linelogic.api.modules.fraud.schema import (
    ActionTaken,
    FraudReason,
    FraudType,
    Severity,
)
from linelogic.settings import FraudConfig

_LETTER_RE = re.compile(r"[^\W\d_]")


@dataclass(frozen=True, slots=True)
class ScoreBand:
    fraud_type: FraudType | None
    severity: Severity
    action_taken: ActionTaken
    reason: FraudReason | None
    creates_ban: bool = False

    @property
    def allowed(self) -> bool:
        return self.action_taken == "allowed"


BANNED_IP_BAND = ScoreBand("banned_ip", "critical", "blocked", "IP_BANNED")
CRITICAL_BAND = ScoreBand(
    "name_fraud", "critical", "banned", "FRAUD_NAME_DETECTED", creates_ban=True
)
HIGH_BAND = ScoreBand("high_risk", "high", "blocked", "HIGH_RISK_SIGNUP")
MEDIUM_BAND = ScoreBand("suspicious", "medium", "flagged", "MANUAL_REVIEW_REQUIRED")
LOW_BAND = ScoreBand(None, "low", "allowed", None)


def band_for_score(score: int, config: FraudConfig) -> ScoreBand:
    if score >= config.ban_score_threshold:
        return CRITICAL_BAND
    if score >= config.block_score_threshold:
        return HIGH_BAND
    if score >= config.review_score_threshold:
        return MEDIUM_BAND
    return LOW_BAND


def email_domain(email: str) -> str:
    _, sep, domain = email.strip().lower().rpartition("@")
    return domain if sep else ""


def canonical_email(email: str, dot_insensitive_domains: set[str]) -> str:
    """Collapse aliasing tricks so variants of one mailbox compare equal.

    ``First.Last+promo@GoogleMail.com`` becomes ``firstlast@gmail.com``.
    """
    candidate = email.strip().lower()
    local, sep, domain = candidate.rpartition("@")
    if not sep or not local or not domain:
        return candidate

    local = local.split("+", 1)[0]
    if domain in dot_insensitive_domains:
        local = local.replace(".", "")
        if domain == "googlemail.com":
            domain = "gmail.com"
    return f"{local}@{domain}"


def looks_like_fraud_name(name: str, patterns: list[str]) -> bool:
    candidate = " ".join(name.strip().lower().split())
    if len(candidate) < 2:
        return True
    if not _LETTER_RE.search(candidate):
        return True
    compact = candidate.replace(" ", "")
    if len(set(compact)) == 1:
        return True
    return any(
        re.search(rf"\b{re.escape(pattern)}\b", candidate) for pattern in patterns
    )


def domain_allowed(
    email: str,
    blocked_domains: set[str],
    allowed_domains: set[str],
) -> bool:
    domain = email_domain(email)
    if not domain or "." not in domain:
        return False
    if domain in blocked_domains:
        return False
    if allowed_domains:
        return domain in allowed_domains
    return True


__all__ = (
    "BANNED_IP_BAND",
    "CRITICAL_BAND",
    "HIGH_BAND",
    "LOW_BAND",
    "MEDIUM_BAND",
    "ScoreBand",
    "band_for_score",
    "canonical_email",
    "domain_allowed",
    "email_domain",
    "looks_like_fraud_name",
)
