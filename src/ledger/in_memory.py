"""
InMemoryLedger — Неизменяемый снимок состояния леджера

Реализация Ledger поверх уже считанных значений: для тестов и
офлайн-анализа сохранённых снимков.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from src.core.math.fixed_point import FixedPoint


@dataclass(frozen=True)
class InMemoryLedger:
    """Снимок леджера на момент времени."""

    share_supply: FixedPoint
    fixed_rate_mode_enabled: bool = True
    rates: Mapping[str, FixedPoint] = field(default_factory=dict)
    # owner → (symbol → balance)
    balances: Mapping[str, Mapping[str, FixedPoint]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Снимок не должен меняться через исходные словари
        object.__setattr__(self, "rates", MappingProxyType(dict(self.rates)))
        object.__setattr__(
            self,
            "balances",
            MappingProxyType(
                {owner: MappingProxyType(dict(held)) for owner, held in self.balances.items()}
            ),
        )

    def get_asset_balance(self, owner: str, asset_symbol: str) -> FixedPoint:
        """
        Raises:
            KeyError: у владельца нет записи об активе
        """
        return self.balances[owner][asset_symbol]

    def get_fixed_rate(self, asset_symbol: str) -> FixedPoint:
        # Незаданный курс в контракте читается как 0
        return self.rates.get(asset_symbol, FixedPoint.zero())

    def get_fixed_rate_mode_enabled(self) -> bool:
        return self.fixed_rate_mode_enabled

    def get_share_supply(self) -> FixedPoint:
        return self.share_supply
