"""
Ledger — Read-only интерфейс к внешнему состоянию фонда

Движок только читает снимки; сопоставление с удалёнными запросами,
ретраи и представление результатов остаются за внешним слоем.
"""

from typing import Protocol, runtime_checkable

from src.core.math.fixed_point import FixedPoint


@runtime_checkable
class Ledger(Protocol):
    """Источник балансов, курсов и предложения share-токена."""

    def get_asset_balance(self, owner: str, asset_symbol: str) -> FixedPoint:
        """Баланс актива у владельца (в нативной точности актива)."""
        ...

    def get_fixed_rate(self, asset_symbol: str) -> FixedPoint:
        """Фиксированный курс актива; raw == 0 если не задан."""
        ...

    def get_fixed_rate_mode_enabled(self) -> bool:
        ...

    def get_share_supply(self) -> FixedPoint:
        ...
