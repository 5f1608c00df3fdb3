from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .user import User  # noqa: F401
from .location import Location  # noqa: F401
from .winner import DrawingMarker, WinnerRecord  # noqa: F401
from .statistics import StatisticsSnapshot  # noqa: F401

__all__ = [
    "Base",
    "User",
    "Location",
    "WinnerRecord",
    "DrawingMarker",
    "StatisticsSnapshot",
]
