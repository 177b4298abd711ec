import logging
from typing import Literal

LOG_FORMAT_DEBUG = (
    "[%(levelname)7s]: %(name)s - %(message)s --- %(pathname)s:%(lineno)d"
)
LOG_FORMAT_PROD = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are chatty at DEBUG and add nothing to fraud traces
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "asyncpg")


def setup_logging(
    env: Literal["local", "dev", "prod"],
    app_logger: str = "linelogic",
) -> None:
    """Configure root logging for the environment.

    Local and dev runs log everything from ``app_logger`` at DEBUG with
    source locations; prod logs at INFO with timestamps.
    """
    verbose = env in ("local", "dev")
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT_DEBUG if verbose else LOG_FORMAT_PROD,
    )
    logging.getLogger(app_logger).setLevel(logging.DEBUG if verbose else logging.INFO)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
