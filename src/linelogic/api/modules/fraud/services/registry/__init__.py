from linelogic.api.modules.fraud.services.registry.audit import AttemptLogger
from linelogic.api.modules.fraud.services.registry.bans import BanRegistry

__all__ = ("AttemptLogger", "BanRegistry")
