"""Input boundary of the analytics engine.

Raw user and location records arrive in several historical shapes: scan
entries may be bare code strings or ``{"code", "timestamp"}`` objects, and
timestamps may be datetimes, ISO strings, ``{"seconds", "nanoseconds"}``
mappings or objects exposing ``to_datetime()``. Everything is validated here
once and converted to :class:`ScanEvent`, :class:`ParticipantRecord` and
:class:`LocationRecord` so the aggregators never inspect raw values.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional

from ..db.utils import ensure_utc
from ..errors import MalformedRecordError

if TYPE_CHECKING:
    from ..models import Location, User

logger = logging.getLogger(__name__)

_TIMESTAMP_METHODS = ("to_datetime", "toDate")


def _from_epoch(seconds: Any, nanoseconds: Any = 0) -> Optional[datetime]:
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        return None
    if isinstance(nanoseconds, bool) or not isinstance(nanoseconds, (int, float)):
        nanoseconds = 0
    try:
        return datetime.fromtimestamp(seconds + nanoseconds / 1e9, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_instant(raw: Any) -> Optional[datetime]:
    """Convert any supported timestamp representation to an aware UTC datetime.

    Parameters
    ----------
    raw : Any
        ``datetime``/``date``, ISO 8601 string (a trailing ``Z`` is accepted),
        mapping or object with ``seconds`` (and optional ``nanoseconds``), or
        an object exposing ``to_datetime()``/``toDate()``.

    Returns
    -------
    Optional[datetime]
        The instant in UTC, or ``None`` when ``raw`` is missing or cannot be
        interpreted (including pending server-timestamp sentinels).
    """

    if raw is None:
        return None
    if isinstance(raw, datetime):
        return ensure_utc(raw)
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=timezone.utc)
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    if isinstance(raw, Mapping):
        seconds = raw.get("seconds", raw.get("_seconds"))
        nanoseconds = raw.get("nanoseconds", raw.get("_nanoseconds", 0))
        return _from_epoch(seconds, nanoseconds)
    for method_name in _TIMESTAMP_METHODS:
        method = getattr(raw, method_name, None)
        if callable(method):
            try:
                converted = method()
            except (TypeError, ValueError, OverflowError):
                return None
            return ensure_utc(converted) if isinstance(converted, datetime) else None
    if hasattr(raw, "seconds"):
        return _from_epoch(getattr(raw, "seconds"), getattr(raw, "nanoseconds", 0))
    return None


@dataclass(frozen=True)
class ScanEvent:
    """One scan in a user's history.

    ``code`` is ``None`` when the raw entry could not be interpreted; such an
    event still counts toward the user's scan total.
    """

    code: Optional[str]
    timestamp: Optional[datetime] = None


def normalize_scan(raw: Any) -> ScanEvent:
    """Turn a raw scan entry into a :class:`ScanEvent`."""

    if isinstance(raw, str):
        return ScanEvent(code=raw)
    if isinstance(raw, Mapping):
        code = raw.get("code")
        if isinstance(code, str):
            return ScanEvent(code=code, timestamp=parse_instant(raw.get("timestamp")))
    return ScanEvent(code=None)


def normalize_scans(raw_scans: Any) -> tuple[ScanEvent, ...]:
    """Normalize a raw scan list, preserving scan order.

    Anything other than a list or tuple is treated as an empty history.
    """

    if not isinstance(raw_scans, (list, tuple)):
        return ()
    events = tuple(normalize_scan(raw) for raw in raw_scans)
    unreadable = sum(1 for event in events if event.code is None)
    if unreadable:
        logger.debug("%d scan entries could not be read", unreadable)
    return events


@dataclass(frozen=True)
class TierRedemption:
    """Redemption state of one tier for one user."""

    redeemed: bool = False
    redeemed_at: Optional[datetime] = None


@dataclass(frozen=True)
class ParticipantRecord:
    """Validated view of a user consumed by every aggregator.

    Attributes
    ----------
    user_id : str
        Identifier of the user.
    scans : tuple[ScanEvent, ...]
        Scan history in scan order.
    drawing_entries, bonus_entries : int
        Non-negative lottery ticket counts.
    redemptions : dict[str, TierRedemption]
        Redemption state keyed by tier id.
    name : str
        Display label for winner snapshots.
    email, phone, external_id : Optional[str]
        Contact fields; blank values are normalized to ``None``.
    created_at, updated_at, completion_time : Optional[datetime]
        Aware UTC timestamps.
    first_scan_at : Optional[datetime]
        Recorded first scan, when the store tracks it separately from
        ``created_at``.
    """

    user_id: str
    scans: tuple[ScanEvent, ...] = ()
    drawing_entries: int = 0
    bonus_entries: int = 0
    redemptions: dict[str, TierRedemption] = field(default_factory=dict)
    name: str = "Anonymous User"
    email: Optional[str] = None
    phone: Optional[str] = None
    external_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completion_time: Optional[datetime] = None
    first_scan_at: Optional[datetime] = None

    @property
    def scanned_count(self) -> int:
        return len(self.scans)

    @property
    def total_entries(self) -> int:
        return self.drawing_entries + self.bonus_entries


@dataclass(frozen=True)
class LocationRecord:
    """Validated view of a location."""

    code: str
    location_number: Optional[str] = None
    location_name: str = "Unnamed"
    active: bool = True
    description: Optional[str] = None


def _coerce_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float) and value.is_integer():
        return max(int(value), 0)
    return 0


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _normalize_redemptions(raw: Any) -> dict[str, TierRedemption]:
    if not isinstance(raw, Mapping):
        return {}
    redemptions: dict[str, TierRedemption] = {}
    for tier_id, status in raw.items():
        if not isinstance(status, Mapping):
            continue
        redeemed_at = status.get("redeemedAt", status.get("redeemedTimestamp"))
        redemptions[str(tier_id)] = TierRedemption(
            redeemed=bool(status.get("redeemed")),
            redeemed_at=parse_instant(redeemed_at),
        )
    return redemptions


def _display_name(
    first_name: Optional[str], last_name: Optional[str], display_name: Optional[str]
) -> str:
    if first_name and last_name:
        return f"{first_name} {last_name}"
    return display_name or first_name or "Anonymous User"


def participant_from_user(user: "User") -> ParticipantRecord:
    """Build a :class:`ParticipantRecord` from a persisted :class:`User`."""

    return ParticipantRecord(
        user_id=user.id,
        scans=normalize_scans(user.scanned_codes),
        drawing_entries=_coerce_count(user.drawing_entries),
        bonus_entries=_coerce_count(user.bonus_entries),
        redemptions=_normalize_redemptions(user.redemption_status),
        name=_display_name(
            _clean_text(user.first_name),
            _clean_text(user.last_name),
            _clean_text(user.display_name),
        ),
        email=_clean_text(user.email),
        phone=_clean_text(user.phone),
        external_id=_clean_text(user.external_id),
        created_at=parse_instant(user.created_at),
        updated_at=parse_instant(user.updated_at),
        completion_time=parse_instant(user.completion_time),
        first_scan_at=parse_instant(user.first_scan_at),
    )


def participant_from_mapping(raw: Mapping[str, Any]) -> ParticipantRecord:
    """Build a :class:`ParticipantRecord` from a document-style mapping.

    Camel-case keys used by the mobile client (``scannedCodes``,
    ``drawingBonusEntries``, ``shopifyCustomerId``, ...) are accepted next to
    their snake-case equivalents.

    Raises
    ------
    MalformedRecordError
        If ``raw`` is not a mapping or carries no usable id.
    """

    if not isinstance(raw, Mapping):
        raise MalformedRecordError("user record must be a mapping")
    user_id = raw.get("id")
    if isinstance(user_id, int) and not isinstance(user_id, bool):
        user_id = str(user_id)
    if not isinstance(user_id, str) or not user_id.strip():
        raise MalformedRecordError("user record has no id")

    def pick(*keys: str) -> Any:
        for key in keys:
            if key in raw:
                return raw[key]
        return None

    return ParticipantRecord(
        user_id=user_id,
        scans=normalize_scans(pick("scannedCodes", "scanned_codes")),
        drawing_entries=_coerce_count(pick("drawingEntries", "drawing_entries")),
        bonus_entries=_coerce_count(
            pick("drawingBonusEntries", "bonusEntries", "bonus_entries")
        ),
        redemptions=_normalize_redemptions(
            pick("redemptionStatus", "redemption_status")
        ),
        name=_display_name(
            _clean_text(pick("firstName", "first_name")),
            _clean_text(pick("lastName", "last_name")),
            _clean_text(pick("displayName", "display_name", "name")),
        ),
        email=_clean_text(pick("email")),
        phone=_clean_text(pick("phone")),
        external_id=_clean_text(
            pick("shopifyCustomerId", "shopifyId", "externalId", "external_id")
        ),
        created_at=parse_instant(pick("createdAt", "created_at")),
        updated_at=parse_instant(pick("updatedAt", "updated_at")),
        completion_time=parse_instant(pick("completionTime", "completion_time")),
        first_scan_at=parse_instant(pick("firstScanAt", "first_scan_at")),
    )


def participants_from_mappings(
    raws: Iterable[Mapping[str, Any]],
) -> list[ParticipantRecord]:
    """Normalize many raw user mappings, skipping malformed ones."""

    participants: list[ParticipantRecord] = []
    for index, raw in enumerate(raws):
        try:
            participants.append(participant_from_mapping(raw))
        except MalformedRecordError as exc:
            logger.debug("Skipping user record #%d: %s", index, exc)
    return participants


def location_from_model(location: "Location") -> LocationRecord:
    """Build a :class:`LocationRecord` from a persisted :class:`Location`."""

    return LocationRecord(
        code=location.code,
        location_number=_clean_text(location.location_number),
        location_name=location.label,
        active=location.active is not False,
        description=location.description,
    )


def location_from_mapping(raw: Mapping[str, Any]) -> LocationRecord:
    """Build a :class:`LocationRecord` from a document-style mapping.

    Raises
    ------
    MalformedRecordError
        If the mapping carries no code.
    """

    code = _clean_text(raw.get("code")) if isinstance(raw, Mapping) else None
    if code is None:
        raise MalformedRecordError("location record has no code")
    name = _clean_text(raw.get("locationName", raw.get("location_name")))
    description = _clean_text(raw.get("description"))
    number = raw.get("locationNumber", raw.get("location_number"))
    return LocationRecord(
        code=code,
        location_number=str(number) if number is not None else None,
        location_name=name or description or "Unnamed",
        active=raw.get("active") is not False,
        description=description,
    )


__all__ = [
    "LocationRecord",
    "ParticipantRecord",
    "ScanEvent",
    "TierRedemption",
    "location_from_mapping",
    "location_from_model",
    "normalize_scan",
    "normalize_scans",
    "parse_instant",
    "participant_from_mapping",
    "participant_from_user",
    "participants_from_mappings",
]
