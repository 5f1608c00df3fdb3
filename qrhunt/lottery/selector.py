"""Random selection of distinct winners from a ticket pool."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import random
from typing import AbstractSet, Optional, Sequence

from .entries import LotteryTicket


class DrawingState(str, Enum):
    """Lifecycle of a drawing round.

    ``IDLE`` -> ``DRAWING`` -> ``COMMITTED`` when at least one winner was
    persisted, or ``NO_ELIGIBLE`` when no ticket could be drawn at all.
    """

    IDLE = "idle"
    DRAWING = "drawing"
    COMMITTED = "committed"
    NO_ELIGIBLE = "no_eligible"


@dataclass
class SelectionOutcome:
    """Tickets picked by :meth:`WinnerSelector.select`.

    ``exhausted`` is ``True`` when the round stopped before ``requested``
    winners because no eligible ticket was left.
    """

    requested: int
    picks: list[LotteryTicket] = field(default_factory=list)
    exhausted: bool = False

    @property
    def selected(self) -> int:
        return len(self.picks)


class WinnerSelector:
    """Draw winners uniformly among eligible tickets.

    A user already drawn in the current round, or present in
    ``excluded_user_ids``, cannot win again; all of that user's tickets drop
    out of the pool.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        """Create a selector.

        Parameters
        ----------
        rng : Optional[random.Random], default: None
            Random generator to use; pass a seeded generator for
            reproducible or auditable draws. If not provided, a new
            non-deterministic generator is used.
        """

        self._rng = rng or random.Random()
        self.state = DrawingState.IDLE

    def select(
        self,
        tickets: Sequence[LotteryTicket],
        count: int,
        excluded_user_ids: AbstractSet[str] = frozenset(),
    ) -> SelectionOutcome:
        """Pick up to ``count`` tickets owned by distinct users.

        Raises
        ------
        ValueError
            If ``count`` is negative.
        """

        if count < 0:
            raise ValueError("count must be non-negative")
        outcome = SelectionOutcome(requested=count)
        if count == 0:
            self.state = DrawingState.IDLE
            return outcome

        self.state = DrawingState.DRAWING
        picked_users: set[str] = set()
        for _ in range(count):
            eligible = [
                ticket
                for ticket in tickets
                if ticket.user_id not in excluded_user_ids
                and ticket.user_id not in picked_users
            ]
            if not eligible:
                outcome.exhausted = True
                break
            ticket = eligible[self._rng.randrange(len(eligible))]
            outcome.picks.append(ticket)
            picked_users.add(ticket.user_id)

        if not outcome.picks:
            self.state = DrawingState.NO_ELIGIBLE
        return outcome

    def mark_committed(self) -> None:
        if self.state is not DrawingState.DRAWING:
            raise RuntimeError(f"Cannot commit a drawing in state {self.state.value}")
        self.state = DrawingState.COMMITTED


__all__ = ["DrawingState", "SelectionOutcome", "WinnerSelector"]
