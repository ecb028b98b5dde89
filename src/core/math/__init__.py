"""
Core math modules

Точная арифметика с фиксированной точкой без float.
"""

from src.core.math.fixed_point import (
    # Constants
    BPS_DENOMINATOR,
    QUOTE_DECIMALS_DEFAULT,
    SHARE_RATIO_EXPONENT_DEFAULT,
    # Types
    FixedPoint,
    PrecisionLossWarning,
    RescaleResult,
    # Rescaling
    align,
    rescale,
    sum_fixed,
    # Multiply / divide
    multiply,
    multiply_then_divide,
    pow10,
    # Decimal strings
    format_units,
    parse_decimal,
    parse_units,
    # Orders of magnitude
    decimal_order,
)

__all__ = [
    # Constants
    "BPS_DENOMINATOR",
    "QUOTE_DECIMALS_DEFAULT",
    "SHARE_RATIO_EXPONENT_DEFAULT",
    # Types
    "FixedPoint",
    "PrecisionLossWarning",
    "RescaleResult",
    # Rescaling
    "align",
    "rescale",
    "sum_fixed",
    # Multiply / divide
    "multiply",
    "multiply_then_divide",
    "pow10",
    # Decimal strings
    "format_units",
    "parse_decimal",
    "parse_units",
    # Orders of magnitude
    "decimal_order",
]
