from linelogic.api.modules.fraud.schema import FraudReason

FRAUD_MESSAGES: dict[str, str] = {
    "IP_BANNED": "We don't onboard bots or bullshit. This IP is permanently blocked.",
    "FRAUD_NAME_DETECTED": "You tried it. We caught it. You're done.",
    "HIGH_RISK_SIGNUP": "That domain isn't eligible for signup at this time.",
    "MANUAL_REVIEW_REQUIRED": (
        "Your signup attempt triggered an automated fraud ban. "
        "No further access will be granted from this location."
    ),
    "SYSTEM_ERROR": "Unable to process signup at this time.",
}
DEFAULT_FRAUD_MESSAGE = "Your signup attempt violates our policies. Access denied."
RATE_LIMITED_MESSAGE = "Too many signup attempts. Try again later."


def fraud_message(reason: FraudReason | str | None) -> str:
    if reason is None:
        return DEFAULT_FRAUD_MESSAGE
    return FRAUD_MESSAGES.get(reason, DEFAULT_FRAUD_MESSAGE)


__all__ = (
    "DEFAULT_FRAUD_MESSAGE",
    "FRAUD_MESSAGES",
    "RATE_LIMITED_MESSAGE",
    "fraud_message",
)
