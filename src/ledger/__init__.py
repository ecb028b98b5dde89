"""Ledger — read-only граница к внешнему состоянию фонда."""

from .in_memory import InMemoryLedger
from .protocol import Ledger
from .snapshot import observe_balances, refresh_registry

__all__ = [
    "Ledger",
    "InMemoryLedger",
    "observe_balances",
    "refresh_registry",
]
