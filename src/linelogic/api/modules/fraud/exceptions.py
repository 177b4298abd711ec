class FraudStoreError(Exception):
    """The fraud store could not be read or written."""

    def __init__(self, operation: str, message: str = ""):
        self.operation = operation
        self.message = message or f"Fraud store operation {operation!r} failed"
        super().__init__(self.message)


class ScoringUnavailableError(FraudStoreError):
    """The aggregate scoring procedure failed or returned garbage."""


__all__ = ("FraudStoreError", "ScoringUnavailableError")
