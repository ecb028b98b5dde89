"""
Asset — Модель актива фонда

Immutable Pydantic модель актива, поддерживаемого фондом в режиме
фиксированных курсов: нативная точность, фиксированный курс
(котировочная стоимость одной целой единицы) и доля капитала.

Нулевой курс допустим на уровне модели: это "курс не задан", и его
обнаруживает AssetRegistry.validate(), а не конструктор.
"""

from fractions import Fraction

from pydantic import BaseModel, Field, field_validator

from src.core.math.fixed_point import FixedPoint


# =============================================================================
# ASSET MODEL
# =============================================================================


class Asset(BaseModel):
    """
    Поддерживаемый актив.

    Immutable модель (frozen=True): реестр собирается один раз
    и не модифицируется частично.
    """

    symbol: str = Field(..., min_length=1, description="Символ актива (например, 'WBTC')")
    decimals: int = Field(..., ge=0, description="Нативная точность raw-количеств актива")
    fixed_rate: FixedPoint = Field(
        ..., description="Котировочная стоимость одной целой единицы актива"
    )
    weight: FixedPoint = Field(..., description="Доля общего капитала (0 < weight <= 1)")

    model_config = {"frozen": True}

    @field_validator("fixed_rate")
    @classmethod
    def validate_rate_non_negative(cls, v: FixedPoint) -> FixedPoint:
        """Отрицательный курс запрещён; ноль означает "не задан"."""
        if v.raw < 0:
            raise ValueError(f"fixed_rate must be non-negative, got {v}")
        return v

    @field_validator("weight")
    @classmethod
    def validate_weight_non_negative(cls, v: FixedPoint) -> FixedPoint:
        if v.raw < 0:
            raise ValueError(f"weight must be non-negative, got {v}")
        return v

    @property
    def has_rate(self) -> bool:
        """Курс задан (актив торгуем в режиме фиксированных курсов)."""
        return self.fixed_rate.raw > 0

    @property
    def weight_fraction(self) -> Fraction:
        return self.weight.as_fraction()

    def unit(self) -> FixedPoint:
        """Одна целая единица актива в нативной точности."""
        return FixedPoint.one(self.decimals)
