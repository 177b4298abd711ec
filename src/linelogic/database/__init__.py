from linelogic.database.base import Base, DateTimeMixin, IdMixin
from linelogic.database.engine import get_engine, get_session_factory

__all__ = ["Base", "DateTimeMixin", "IdMixin", "get_engine", "get_session_factory"]
