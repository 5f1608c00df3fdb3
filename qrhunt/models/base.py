from typing import Any

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase

from qrhunt.db.metadata import metadata_obj


class Base(DeclarativeBase):
    """Declarative base for the hunt tables.

    Raw scan histories and statistics payloads are stored as JSON, so
    ``Mapped[dict[str, Any]]`` and ``Mapped[list[Any]]`` map to ``JSON``.
    """

    metadata = metadata_obj
    type_annotation_map = {
        dict[str, Any]: JSON,
        list[Any]: JSON,
    }
