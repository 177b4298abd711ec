from linelogic.api.modules.fraud.services.network.common import (
    ClientIpResolver,
    normalize_headers,
    normalize_ip,
)
from linelogic.api.modules.fraud.services.network.edge import (
    EdgeGuard,
    EdgeVerdict,
)
from linelogic.api.modules.fraud.services.network.rate_limit import (
    FAIL_CLOSED_ATTEMPTS,
    RateLimitWindow,
)

__all__ = (
    "FAIL_CLOSED_ATTEMPTS",
    "ClientIpResolver",
    "EdgeGuard",
    "EdgeVerdict",
    "RateLimitWindow",
    "normalize_headers",
    "normalize_ip",
)
