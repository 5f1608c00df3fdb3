"""Expansion of users' entry counts into a flat pool of lottery tickets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from ..analytics.normalize import ParticipantRecord
from ..analytics.rounding import ratio


class EntryType(str, Enum):
    """Origin of a lottery ticket."""

    SCAN = "Scan"
    BONUS = "Bonus"


@dataclass(frozen=True)
class WinnerContact:
    """Contact details copied onto a ticket when the pool is built."""

    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    external_id: Optional[str] = None


@dataclass(frozen=True)
class LotteryTicket:
    """One chance to win held by ``user_id``.

    Attributes
    ----------
    user_id : str
        Owner of the ticket.
    entry_type : EntryType
        Whether the ticket was earned by scanning or granted as a bonus.
    sequence_index : int
        0-based position among the owner's tickets of the same type.
    entry_number : int
        1-based position of the ticket in the whole pool.
    contact : WinnerContact
        Snapshot of the owner's contact details.
    """

    user_id: str
    entry_type: EntryType
    sequence_index: int
    entry_number: int
    contact: WinnerContact


def build_lottery_tickets(
    participants: Iterable[ParticipantRecord],
) -> list[LotteryTicket]:
    """Build the ticket pool for a drawing.

    Each user contributes ``drawing_entries`` Scan tickets followed by
    ``bonus_entries`` Bonus tickets, so a user's odds are proportional to
    the number of tickets held.
    """

    tickets: list[LotteryTicket] = []
    for participant in participants:
        contact = WinnerContact(
            name=participant.name,
            email=participant.email,
            phone=participant.phone,
            external_id=participant.external_id,
        )
        for entry_type, count in (
            (EntryType.SCAN, participant.drawing_entries),
            (EntryType.BONUS, participant.bonus_entries),
        ):
            for index in range(count):
                tickets.append(
                    LotteryTicket(
                        user_id=participant.user_id,
                        entry_type=entry_type,
                        sequence_index=index,
                        entry_number=len(tickets) + 1,
                        contact=contact,
                    )
                )
    return tickets


@dataclass(frozen=True)
class EntryPoolStats:
    total_entries: int
    unique_participants: int
    avg_entries_per_user: float


def summarize_entry_pool(tickets: Sequence[LotteryTicket]) -> EntryPoolStats:
    """Return headline numbers of a ticket pool."""

    participants = {ticket.user_id for ticket in tickets}
    return EntryPoolStats(
        total_entries=len(tickets),
        unique_participants=len(participants),
        avg_entries_per_user=ratio(len(tickets), len(participants)),
    )


__all__ = [
    "EntryPoolStats",
    "EntryType",
    "LotteryTicket",
    "WinnerContact",
    "build_lottery_tickets",
    "summarize_entry_pool",
]
