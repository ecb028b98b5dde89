"""
FixedPoint — Точная арифметика с фиксированной точкой

Значение представлено парой (raw, exponent): value = raw × 10^-exponent.
raw — целое произвольной точности, exponent — неотрицательное целое.

Модуль обеспечивает:
- Точное масштабирование между экспонентами (вверх без потерь)
- Явное, логируемое усечение при масштабировании вниз
- multiply_then_divide: умножение строго ДО деления
- Точный разбор/форматирование десятичных строк (без float)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. raw никогда не усекается неявно
2. Масштабирование вниз всегда сообщает об остатке (PrecisionLossWarning)
3. В multiply_then_divide ровно одно целочисленное деление, и оно последнее
4. float не принимается ни в одной операции
"""

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import Final, Iterable, NamedTuple

logger = logging.getLogger(__name__)


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Точность котировочной валюты (USDC-подобный стейбл)
QUOTE_DECIMALS_DEFAULT: Final[int] = 6

# Точность долей на единицу share-токена
SHARE_RATIO_EXPONENT_DEFAULT: Final[int] = 18

# Базисные пункты: 10000 bps = 1
BPS_DENOMINATOR: Final[int] = 10_000


# =============================================================================
# ИСКЛЮЧЕНИЯ
# =============================================================================


class PrecisionLossWarning(UserWarning):
    """
    Масштабирование вниз отбросило ненулевой остаток.

    Не фатально: прикрепляется к RescaleResult. В strict-режиме
    выбрасывается как исключение.
    """

    def __init__(self, value: "FixedPoint", target_exponent: int, remainder: int):
        self.value = value
        self.target_exponent = target_exponent
        self.remainder = remainder
        super().__init__(
            f"Rescaling {value} to exponent {target_exponent} "
            f"dropped remainder {remainder}"
        )


# =============================================================================
# FIXED POINT
# =============================================================================


def _check_int(value: object, name: str) -> None:
    # bool не принимается как количество
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be int, got {type(value).__name__}")


def pow10(exponent: int) -> int:
    """10^exponent как целое (exponent >= 0)."""
    if exponent < 0:
        raise ValueError(f"exponent must be non-negative, got {exponent}")
    return 10**exponent


@dataclass(frozen=True)
class FixedPoint:
    """
    Значение с фиксированной точкой: raw × 10^-exponent.

    Immutable и hashable. Равенство структурное (raw и exponent):
    FixedPoint(1, 0) != FixedPoint(10, 1). Для сравнения по значению
    используйте same_value() или as_fraction().
    """

    raw: int
    exponent: int

    def __post_init__(self) -> None:
        _check_int(self.raw, "raw")
        _check_int(self.exponent, "exponent")
        if self.exponent < 0:
            raise ValueError(f"exponent must be non-negative, got {self.exponent}")

    @classmethod
    def one(cls, exponent: int = 0) -> "FixedPoint":
        """Единица, выраженная в заданной экспоненте."""
        return cls(pow10(exponent), exponent)

    @classmethod
    def zero(cls, exponent: int = 0) -> "FixedPoint":
        return cls(0, exponent)

    @property
    def is_zero(self) -> bool:
        return self.raw == 0

    def as_fraction(self) -> Fraction:
        """Точное рациональное значение."""
        return Fraction(self.raw, pow10(self.exponent))

    def same_value(self, other: "FixedPoint") -> bool:
        """Равенство по значению независимо от экспоненты."""
        left, right = align(self, other)
        return left.raw == right.raw

    def __str__(self) -> str:
        return format_units(self)


class RescaleResult(NamedTuple):
    """
    Результат масштабирования.

    value: масштабированное значение (усечённое при движении вниз)
    remainder: отброшенный остаток в raw-единицах исходной экспоненты
    warning: PrecisionLossWarning если остаток ненулевой, иначе None
    """

    value: FixedPoint
    remainder: int
    warning: PrecisionLossWarning | None

    @property
    def precision_lost(self) -> bool:
        return self.remainder != 0


# =============================================================================
# МАСШТАБИРОВАНИЕ
# =============================================================================


def rescale(value: FixedPoint, target_exponent: int, strict: bool = False) -> RescaleResult:
    """
    Перевод значения в другую экспоненту.

    Вверх (target >= exponent): точное умножение, всегда успешно.
    Вниз: floor-деление; ненулевой остаток логируется и возвращается
    вместе с PrecisionLossWarning.

    Args:
        value: Исходное значение
        target_exponent: Целевая экспонента (>= 0)
        strict: Выбрасывать PrecisionLossWarning вместо возврата

    Returns:
        RescaleResult(value, remainder, warning)

    Raises:
        PrecisionLossWarning: strict=True и остаток ненулевой

    Examples:
        >>> rescale(FixedPoint(125, 2), 4).value
        FixedPoint(raw=12500, exponent=4)
        >>> rescale(FixedPoint(12345, 4), 2).remainder
        45
    """
    _check_int(target_exponent, "target_exponent")
    if target_exponent < 0:
        raise ValueError(f"target_exponent must be non-negative, got {target_exponent}")

    delta = target_exponent - value.exponent
    if delta >= 0:
        return RescaleResult(FixedPoint(value.raw * pow10(delta), target_exponent), 0, None)

    raw, remainder = divmod(value.raw, pow10(-delta))
    result = FixedPoint(raw, target_exponent)
    if remainder == 0:
        return RescaleResult(result, 0, None)

    warning = PrecisionLossWarning(value, target_exponent, remainder)
    if strict:
        raise warning
    logger.warning(
        "Lossy rescale: raw=%d exponent=%d -> exponent=%d, remainder=%d",
        value.raw,
        value.exponent,
        target_exponent,
        remainder,
    )
    return RescaleResult(result, remainder, warning)


def align(a: FixedPoint, b: FixedPoint) -> tuple[FixedPoint, FixedPoint]:
    """Перевод обоих значений в большую из двух экспонент (без потерь)."""
    exponent = max(a.exponent, b.exponent)
    return rescale(a, exponent).value, rescale(b, exponent).value


def sum_fixed(values: Iterable[FixedPoint], exponent: int = 0) -> FixedPoint:
    """
    Точная сумма в наибольшей экспоненте.

    Args:
        values: Слагаемые
        exponent: Минимальная экспонента результата (для пустой суммы)
    """
    items = list(values)
    target = max([exponent] + [v.exponent for v in items])
    total = sum(rescale(v, target).value.raw for v in items)
    return FixedPoint(total, target)


# =============================================================================
# УМНОЖЕНИЕ И ДЕЛЕНИЕ
# =============================================================================


def multiply(a: FixedPoint, b: FixedPoint) -> FixedPoint:
    """Точное произведение: экспоненты складываются, деления нет."""
    return FixedPoint(a.raw * b.raw, a.exponent + b.exponent)


def multiply_then_divide(
    a: FixedPoint,
    b: FixedPoint,
    divisor: FixedPoint,
    result_exponent: int,
) -> FixedPoint:
    """
    Вычисление a × b / divisor в экспоненте result_exponent.

    raw = (a.raw × b.raw × 10^k) // divisor.raw,
    k = result_exponent + divisor.exponent - a.exponent - b.exponent.
    При k < 0 степень десяти уходит в знаменатель. Все умножения
    выполняются до единственного деления; раннее деление теряет точность
    для активов, чья точность отличается от котировочной на порядки.

    Args:
        a: Первый множитель
        b: Второй множитель
        divisor: Делитель (raw != 0)
        result_exponent: Экспонента результата

    Returns:
        FixedPoint(floor(a × b / divisor), result_exponent)

    Raises:
        ZeroDivisionError: divisor.raw == 0

    Examples:
        >>> capital = FixedPoint(125_000_000_000, 6)  # 125000 USDC
        >>> rate = FixedPoint(115_000_000_000, 6)  # 115000 USDC за WBTC
        >>> multiply_then_divide(capital, FixedPoint.one(), rate, 8)
        FixedPoint(raw=108695652, exponent=8)
    """
    _check_int(result_exponent, "result_exponent")
    if result_exponent < 0:
        raise ValueError(f"result_exponent must be non-negative, got {result_exponent}")
    if divisor.raw == 0:
        raise ZeroDivisionError(f"divisor must be non-zero, got {divisor!r}")

    numerator = a.raw * b.raw
    denominator = divisor.raw
    shift = result_exponent + divisor.exponent - a.exponent - b.exponent
    if shift >= 0:
        numerator *= pow10(shift)
    else:
        denominator *= pow10(-shift)

    return FixedPoint(numerator // denominator, result_exponent)


# =============================================================================
# ДЕСЯТИЧНЫЕ СТРОКИ
# =============================================================================


def parse_units(text: str | int, decimals: int) -> FixedPoint:
    """
    Точный разбор десятичной строки в FixedPoint с экспонентой decimals.

    Дробных цифр больше, чем decimals, быть не может: округление здесь
    означало бы скрытую потерю точности.

    Examples:
        >>> parse_units("115000", 6)
        FixedPoint(raw=115000000000, exponent=6)
        >>> parse_units("0.125", 3)
        FixedPoint(raw=125, exponent=3)
    """
    _check_int(decimals, "decimals")
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    if isinstance(text, int) and not isinstance(text, bool):
        return FixedPoint(text * pow10(decimals), decimals)
    if not isinstance(text, str):
        raise TypeError(f"text must be str or int, got {type(text).__name__}")

    body = text.strip().replace("_", "")
    negative = body.startswith("-")
    if negative:
        body = body[1:]
    if not body:
        raise ValueError(f"invalid decimal string: {text!r}")

    whole, _, fraction = body.partition(".")
    if not whole:
        whole = "0"
    if not whole.isdigit() or (fraction and not fraction.isdigit()) or body.endswith("."):
        raise ValueError(f"invalid decimal string: {text!r}")

    fraction = fraction.rstrip("0")
    if len(fraction) > decimals:
        raise ValueError(
            f"{text!r} has more than {decimals} fractional digits"
        )

    raw = int(whole) * pow10(decimals) + int(fraction.ljust(decimals, "0") or "0")
    return FixedPoint(-raw if negative else raw, decimals)


def parse_decimal(text: str) -> FixedPoint:
    """
    Разбор десятичной строки в минимальной точной экспоненте.

    Examples:
        >>> parse_decimal("0.125")
        FixedPoint(raw=125, exponent=3)
        >>> parse_decimal("0.50")
        FixedPoint(raw=5, exponent=1)
    """
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {type(text).__name__}")
    _, _, fraction = text.strip().partition(".")
    return parse_units(text, len(fraction.rstrip("0")))


def format_units(value: FixedPoint) -> str:
    """
    Десятичная строка без потерь, хвостовые нули дробной части удаляются.

    Examples:
        >>> format_units(FixedPoint(108695652, 8))
        '1.08695652'
        >>> format_units(FixedPoint(125000000000, 6))
        '125000.0'
    """
    sign = "-" if value.raw < 0 else ""
    whole, fraction = divmod(abs(value.raw), pow10(value.exponent))
    digits = str(fraction).rjust(value.exponent, "0").rstrip("0") if value.exponent else ""
    return f"{sign}{whole}.{digits or '0'}"


# =============================================================================
# ПОРЯДОК ВЕЛИЧИНЫ
# =============================================================================


def decimal_order(ratio: Fraction) -> int:
    """
    Наибольшее целое k, такое что 10^k <= ratio (точно, без log10).

    Примеры: 0.001 → -3, 5 → 0, 1000 → 3.

    Raises:
        ValueError: ratio <= 0
    """
    if ratio <= 0:
        raise ValueError(f"ratio must be positive, got {ratio}")

    # Оценка по длинам числителя и знаменателя, затем точная подстройка
    k = len(str(ratio.numerator)) - len(str(ratio.denominator))
    while Fraction(10) ** k > ratio:
        k -= 1
    while Fraction(10) ** (k + 1) <= ratio:
        k += 1
    return k
