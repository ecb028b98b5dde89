"""
Consistency Verifier — Сверка ожидаемой аллокации с наблюдаемыми балансами

Сравнивает ожидаемые количества из Allocation с фактическими балансами,
полученными извне (снапшот леджера), и классифицирует отклонения.

Для каждой линии аллокации:
- символа нет в observed → MISSING
- иначе expected и actual приводятся к большей экспоненте (без потерь),
  ratio = actual / expected как точная дробь
- |ratio - 1| <= tolerance → NONE (within_tolerance)
- ratio < low_threshold → SCALE_MISMATCH (потерян множитель 10^k)
- ratio > high_threshold → EXCESS
- иначе NONE без within_tolerance: ratio сохраняется для ручного анализа

Аномалии возвращаются как данные. Verifier не модифицирует
ни Allocation, ни observed.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Iterable, Mapping

from src.allocation.calculator import Allocation, AllocationLine
from src.core.domain.asset import Asset
from src.core.math.fixed_point import FixedPoint, align, decimal_order, format_units

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS
# =============================================================================


class Anomaly(str, Enum):
    """Класс отклонения"""

    NONE = "NONE"
    SCALE_MISMATCH = "SCALE_MISMATCH"
    MISSING = "MISSING"
    EXCESS = "EXCESS"


# =============================================================================
# CONFIG
# =============================================================================


def _to_fraction(value: object, name: str) -> Fraction:
    # float запрещён: 0.01 в двоичном виде не равно 1/100
    if isinstance(value, (bool, float)):
        raise TypeError(f"{name} must be exact (int, str, Decimal, Fraction), got {value!r}")
    if isinstance(value, (int, str, Decimal, Fraction)):
        return Fraction(value)
    raise TypeError(f"{name} has unsupported type {type(value).__name__}")


@dataclass(frozen=True)
class VerifierConfig:
    """Конфигурация сверки: допуск и пороги классификации ratio."""

    tolerance: Fraction = Fraction(1, 10_000)  # Допуск вокруг ratio = 1
    low_threshold: Fraction = Fraction(1, 100)  # Ниже: SCALE_MISMATCH
    high_threshold: Fraction = Fraction(2)  # Выше: EXCESS

    def __post_init__(self) -> None:
        for name in ("tolerance", "low_threshold", "high_threshold"):
            object.__setattr__(self, name, _to_fraction(getattr(self, name), name))

        if not 0 <= self.tolerance < 1:
            raise ValueError(f"tolerance must be in [0, 1), got {self.tolerance}")
        if not 0 < self.low_threshold <= 1 - self.tolerance:
            raise ValueError(
                f"low_threshold must be in (0, 1 - tolerance], got {self.low_threshold}"
            )
        if self.high_threshold < 1 + self.tolerance:
            raise ValueError(
                f"high_threshold must be >= 1 + tolerance, got {self.high_threshold}"
            )


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class VerificationReport:
    """Результат сверки одного актива."""

    asset: Asset
    expected: FixedPoint
    actual: FixedPoint | None  # None при MISSING
    ratio: Fraction | None  # None при MISSING или expected == 0
    anomaly: Anomaly
    within_tolerance: bool
    scale_order: int | None  # floor(log10(ratio)), None при ratio in (None, 0)
    details: str

    @property
    def symbol(self) -> str:
        return self.asset.symbol

    @property
    def is_anomalous(self) -> bool:
        return self.anomaly != Anomaly.NONE


# =============================================================================
# VERIFIER
# =============================================================================


class ConsistencyVerifier:
    """Сверка аллокации с наблюдаемыми балансами.

    Чистый диагностический проход: единственный эффект: возвращаемая
    последовательность отчётов (и логирование).
    """

    def __init__(self, config: VerifierConfig | None = None):
        """
        Args:
            config: конфигурация порогов (опционально, используется default)
        """
        self.config = config or VerifierConfig()

    def classify(self, ratio: Fraction) -> tuple[Anomaly, bool]:
        """Классификация ratio: (anomaly, within_tolerance)."""
        if abs(ratio - 1) <= self.config.tolerance:
            return Anomaly.NONE, True
        if ratio < self.config.low_threshold:
            return Anomaly.SCALE_MISMATCH, False
        if ratio > self.config.high_threshold:
            return Anomaly.EXCESS, False
        return Anomaly.NONE, False

    def verify_line(
        self, line: AllocationLine, actual: FixedPoint | None
    ) -> VerificationReport:
        """Сверка одной линии аллокации."""
        expected = line.amount
        if actual is None:
            return VerificationReport(
                asset=line.asset,
                expected=expected,
                actual=None,
                ratio=None,
                anomaly=Anomaly.MISSING,
                within_tolerance=False,
                scale_order=None,
                details=f"{line.symbol}: no observed balance",
            )

        expected_aligned, actual_aligned = align(expected, actual)

        if expected_aligned.raw == 0:
            # ratio не определён; ненулевое наблюдение считается избытком
            anomaly = Anomaly.NONE if actual_aligned.raw == 0 else Anomaly.EXCESS
            return VerificationReport(
                asset=line.asset,
                expected=expected,
                actual=actual,
                ratio=None,
                anomaly=anomaly,
                within_tolerance=anomaly == Anomaly.NONE,
                scale_order=None,
                details=f"{line.symbol}: expected 0, actual {format_units(actual)}",
            )

        ratio = Fraction(actual_aligned.raw, expected_aligned.raw)
        anomaly, within_tolerance = self.classify(ratio)
        scale_order = decimal_order(ratio) if ratio > 0 else None

        return VerificationReport(
            asset=line.asset,
            expected=expected,
            actual=actual,
            ratio=ratio,
            anomaly=anomaly,
            within_tolerance=within_tolerance,
            scale_order=scale_order,
            details=(
                f"{line.symbol}: expected={format_units(expected)} "
                f"actual={format_units(actual)} ratio={ratio} "
                f"order={scale_order}"
            ),
        )

    def verify(
        self,
        allocation: Allocation,
        observed: Mapping[str, FixedPoint],
    ) -> tuple[VerificationReport, ...]:
        """
        Сверка аллокации с наблюдаемыми балансами.

        Args:
            allocation: Ожидаемая аллокация
            observed: Символ → фактический баланс (снапшот)

        Returns:
            Отчёты в порядке линий аллокации
        """
        reports = []
        for line in allocation.lines:
            report = self.verify_line(line, observed.get(line.symbol))
            if report.is_anomalous:
                logger.warning("Allocation anomaly %s: %s", report.anomaly.value, report.details)
            else:
                logger.debug("Allocation consistent: %s", report.details)
            reports.append(report)

        allocated = {line.symbol for line in allocation.lines}
        for symbol in observed:
            if symbol not in allocated:
                logger.debug("Observed balance for unallocated asset %s ignored", symbol)

        logger.info(
            "Verification complete: assets=%d anomalies=%d",
            len(reports),
            sum(1 for r in reports if r.is_anomalous),
        )
        return tuple(reports)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def verify(
    allocation: Allocation,
    observed: Mapping[str, FixedPoint],
    config: VerifierConfig | None = None,
) -> tuple[VerificationReport, ...]:
    """Сверка с конфигурацией по умолчанию (или заданной)."""
    return ConsistencyVerifier(config).verify(allocation, observed)


def anomalous(reports: Iterable[VerificationReport]) -> tuple[VerificationReport, ...]:
    """Только отчёты с аномалиями."""
    return tuple(r for r in reports if r.is_anomalous)
