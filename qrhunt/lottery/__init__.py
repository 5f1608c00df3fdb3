"""Weighted winner drawing over users' lottery entries."""

from .engine import DrawingResult, LotteryDrawEngine
from .entries import (
    EntryPoolStats,
    EntryType,
    LotteryTicket,
    WinnerContact,
    build_lottery_tickets,
    summarize_entry_pool,
)
from .history import SqlAlchemyWinnerHistoryStore, WinnerHistoryStore
from .selector import DrawingState, SelectionOutcome, WinnerSelector

__all__ = [
    "DrawingResult",
    "DrawingState",
    "EntryPoolStats",
    "EntryType",
    "LotteryDrawEngine",
    "LotteryTicket",
    "SelectionOutcome",
    "SqlAlchemyWinnerHistoryStore",
    "WinnerContact",
    "WinnerHistoryStore",
    "WinnerSelector",
    "build_lottery_tickets",
    "summarize_entry_pool",
]
