"""
Snapshot — Сбор входных данных движка через Ledger

observe_balances: символ → баланс для сверки
refresh_registry: пересборка реестра с текущими курсами и режимом
"""

import logging
from typing import Iterable

from src.core.domain.registry import AssetRegistry
from src.core.math.fixed_point import FixedPoint
from src.ledger.protocol import Ledger

logger = logging.getLogger(__name__)


def observe_balances(
    ledger: Ledger, owner: str, symbols: Iterable[str]
) -> dict[str, FixedPoint]:
    """
    Балансы владельца по списку символов.

    Символы, для которых леджер не вернул баланс (KeyError), в результат
    не попадают: Verifier сообщит о них как о MISSING.
    """
    observed = {}
    for symbol in symbols:
        try:
            observed[symbol] = ledger.get_asset_balance(owner, symbol)
        except KeyError:
            logger.debug("No balance of %s for owner %s", symbol, owner)
    return observed


def refresh_registry(registry: AssetRegistry, ledger: Ledger) -> AssetRegistry:
    """
    Новый реестр с курсами и флагом режима из леджера.

    Точность и веса берутся из исходного реестра (конфигурация),
    курсы и режим из снимка леджера.
    """
    rates = {symbol: ledger.get_fixed_rate(symbol) for symbol in registry.symbols()}
    return registry.with_rates(rates, ledger.get_fixed_rate_mode_enabled())
