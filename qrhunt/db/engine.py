import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .metadata import metadata_obj  # noqa: F401
from .utils import resolve_sqlite_url

logger = logging.getLogger(__name__)

load_dotenv()
# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_SQLITE_URL = resolve_sqlite_url(
    os.getenv("DB_URL", "sqlite:///./dev.db"), ROOT_DIR
)

# Seconds a SQLite writer waits for a competing drawing to release its lock.
SQLITE_BUSY_TIMEOUT = 15


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Create the engine for ``database_url`` (default: ``DB_URL`` or dev.db).

    SQLite connections wait up to ``SQLITE_BUSY_TIMEOUT`` seconds for a
    lock. Other databases use ``pool_pre_ping``.
    """
    url = database_url or DEFAULT_SQLITE_URL
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"timeout": SQLITE_BUSY_TIMEOUT}}
    else:
        kwargs = {"pool_pre_ping": True}
    engine = create_engine(url, echo=echo, future=True, **kwargs)
    logger.debug("Created engine for %s", engine.url.render_as_string(hide_password=True))
    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Keep reports readable after the session closes
        future=True,
    )
