from linelogic.api.modules.fraud.services.scoring.normalizer import (
    IdentifierNormalizer,
    fallback_normalize,
)
from linelogic.api.modules.fraud.services.scoring.scorer import FraudScorer

__all__ = ("FraudScorer", "IdentifierNormalizer", "fallback_normalize")
