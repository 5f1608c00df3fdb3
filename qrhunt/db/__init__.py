"""Database engine and metadata helpers."""

from .engine import DEFAULT_SQLITE_URL, get_sessionmaker, make_engine
from .metadata import metadata_obj
from .utils import dt_iso, ensure_utc, resolve_sqlite_url

__all__ = [
    "DEFAULT_SQLITE_URL",
    "dt_iso",
    "ensure_utc",
    "get_sessionmaker",
    "make_engine",
    "metadata_obj",
    "resolve_sqlite_url",
]
