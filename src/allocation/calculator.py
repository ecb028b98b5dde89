"""
Allocation Calculator — Распределение капитала по активам фонда

Преобразует котировочный капитал и реестр активов в точные raw-количества
каждого актива и доли на единицу share-токена.

Для каждого актива в порядке реестра:
1. capital = total_capital × weight                     (точно, без деления)
2. amount = capital × 1 / fixed_rate                    (в asset.decimals)
3. share_ratio = amount × 1 / share_supply              (в share_ratio_exponent)

Шаги 2 и 3 выполняются через multiply_then_divide: единственное деление
идёт последним. Деление капитала на курс до масштабирования к точности
актива даёт результат, заниженный на 10^6..10^9 для 8-значных активов
при 6-значной котировке.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Реестр проходит validate() до расчёта
2. total_capital > 0 и share_supply > 0, иначе PreconditionError
3. Результат: чистая функция входов (детерминирован)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction

from src.core.domain.asset import Asset
from src.core.domain.registry import AssetRegistry
from src.core.math.fixed_point import (
    FixedPoint,
    format_units,
    multiply,
    multiply_then_divide,
    sum_fixed,
)

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class PreconditionKind(str, Enum):
    """Нарушение предусловия вызывающей стороной"""

    ZERO_CAPITAL = "ZERO_CAPITAL"
    ZERO_SHARE_SUPPLY = "ZERO_SHARE_SUPPLY"
    ZERO_NAV = "ZERO_NAV"
    INVALID_SHARES = "INVALID_SHARES"


class PreconditionError(Exception):
    """
    Некорректный вызов: фатально, не ретраится.

    Нулевой share_supply считается ошибкой.
    """

    def __init__(self, kind: PreconditionKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}")


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class AllocationLine:
    """Аллокация одного актива."""

    asset: Asset
    capital: FixedPoint  # Котировочный капитал, выделенный активу
    amount: FixedPoint  # Raw-количество актива в asset.decimals
    share_ratio: FixedPoint  # amount на одну целую единицу share-токена

    @property
    def symbol(self) -> str:
        return self.asset.symbol

    def quote_value(self) -> FixedPoint:
        """Точная котировочная стоимость купленного количества."""
        return multiply(self.amount, self.asset.fixed_rate)


@dataclass(frozen=True)
class Allocation:
    """
    Результат аллокации.

    Принадлежит вызывающей стороне; движок его не хранит.
    """

    lines: tuple[AllocationLine, ...]
    total_capital: FixedPoint
    share_supply: FixedPoint

    def __len__(self) -> int:
        return len(self.lines)

    def amounts(self) -> dict[str, FixedPoint]:
        """Символ → raw-количество, в порядке реестра."""
        return {line.symbol: line.amount for line in self.lines}

    def line(self, symbol: str) -> AllocationLine:
        for line in self.lines:
            if line.symbol == symbol:
                return line
        raise KeyError(symbol)

    def rederived_capital(self) -> FixedPoint:
        """Σ amount × fixed_rate: капитал, восстановленный из количеств."""
        return sum_fixed(
            (line.quote_value() for line in self.lines), self.total_capital.exponent
        )

    def residual_capital(self) -> Fraction:
        """
        Неизрасходованный остаток капитала (пыль от усечения).

        Неотрицателен и меньше Σ fixed_rate × 10^-decimals.
        """
        return self.total_capital.as_fraction() - self.rederived_capital().as_fraction()


# =============================================================================
# ALLOCATE
# =============================================================================


def _check_preconditions(total_capital: FixedPoint, share_supply: FixedPoint) -> None:
    if total_capital.raw <= 0:
        raise PreconditionError(
            PreconditionKind.ZERO_CAPITAL,
            f"total_capital must be positive, got {total_capital}",
        )
    if share_supply.raw <= 0:
        raise PreconditionError(
            PreconditionKind.ZERO_SHARE_SUPPLY,
            f"share_supply must be positive, got {share_supply}",
        )


def allocate_asset(
    asset: Asset,
    total_capital: FixedPoint,
    share_supply: FixedPoint,
    share_ratio_exponent: int,
) -> AllocationLine:
    """
    Аллокация одного актива (без проверки реестра).

    Args:
        asset: Актив с заданным курсом
        total_capital: Общий котировочный капитал
        share_supply: Общее предложение share-токена
        share_ratio_exponent: Точность share_ratio

    Returns:
        AllocationLine
    """
    capital = multiply(total_capital, asset.weight)
    amount = multiply_then_divide(capital, FixedPoint.one(), asset.fixed_rate, asset.decimals)
    share_ratio = multiply_then_divide(
        amount, FixedPoint.one(), share_supply, share_ratio_exponent
    )
    return AllocationLine(asset=asset, capital=capital, amount=amount, share_ratio=share_ratio)


def allocate(
    registry: AssetRegistry,
    total_capital: FixedPoint,
    share_supply: FixedPoint,
) -> Allocation:
    """
    Распределение капитала по активам реестра.

    Args:
        registry: Реестр активов (должен проходить validate())
        total_capital: Котировочный капитал (> 0)
        share_supply: Общее предложение share-токена (> 0)

    Returns:
        Allocation с линиями в порядке реестра

    Raises:
        ConfigError: реестр не проходит validate()
        PreconditionError: нулевой капитал или нулевое предложение
    """
    registry.validate()
    _check_preconditions(total_capital, share_supply)

    lines = []
    for asset in registry.assets:
        line = allocate_asset(asset, total_capital, share_supply, registry.share_ratio_exponent)
        logger.debug(
            "Allocated %s: capital=%s amount=%s share_ratio=%s",
            asset.symbol,
            format_units(line.capital),
            format_units(line.amount),
            format_units(line.share_ratio),
        )
        lines.append(line)

    allocation = Allocation(
        lines=tuple(lines), total_capital=total_capital, share_supply=share_supply
    )
    logger.info(
        "Allocation complete: assets=%d capital=%s residual=%s",
        len(lines),
        format_units(total_capital),
        allocation.residual_capital(),
    )
    return allocation
