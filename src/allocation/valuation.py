"""
Valuation — NAV фонда, стоимость доли и превью инвестиций/погашений

Оценка по фиксированным курсам реестра:
    NAV = Σ balance_i × fixed_rate_i  (+ свободный котировочный остаток)
    share_value = NAV / share_supply
    shares_for(capital) = capital × share_supply / NAV
    redemption: pro-rata доля каждого баланса, комиссия в bps от gross

Все суммы в котировочной валюте округляются вниз ровно один раз,
в самом конце, в точности quote_decimals.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, NamedTuple

from src.allocation.calculator import PreconditionError, PreconditionKind
from src.core.domain.registry import AssetRegistry
from src.core.math.fixed_point import (
    BPS_DENOMINATOR,
    FixedPoint,
    format_units,
    multiply,
    multiply_then_divide,
    sum_fixed,
)

logger = logging.getLogger(__name__)

# Комиссия управления по умолчанию: 1%
MANAGEMENT_FEE_BPS_DEFAULT = 100


# =============================================================================
# RESULTS
# =============================================================================


class FundValuation(NamedTuple):
    """Снимок оценки фонда."""

    nav: FixedPoint  # Котировочная стоимость всех активов
    share_supply: FixedPoint
    share_value: FixedPoint  # NAV на одну целую единицу share-токена


@dataclass(frozen=True)
class RedemptionLine:
    """Доля одного актива в погашении."""

    symbol: str
    amount: FixedPoint  # Pro-rata количество в точности баланса
    quote_value: FixedPoint  # Стоимость в quote_decimals (вниз)


@dataclass(frozen=True)
class RedemptionPreview:
    """Превью погашения долей."""

    shares: FixedPoint
    lines: tuple[RedemptionLine, ...]
    gross: FixedPoint
    fee: FixedPoint
    net: FixedPoint


# =============================================================================
# HELPERS
# =============================================================================


def _floor_to(value: FixedPoint, exponent: int) -> FixedPoint:
    # Явное округление вниз одним делением
    return multiply_then_divide(value, FixedPoint.one(), FixedPoint.one(), exponent)


def _holdings(
    registry: AssetRegistry, balances: Mapping[str, FixedPoint]
) -> list[tuple[str, FixedPoint, FixedPoint]]:
    """(symbol, balance, rate) для активов реестра и свободного quote-остатка."""
    holdings = []
    for asset in registry.assets:
        balance = balances.get(asset.symbol)
        if balance is None:
            logger.debug("No balance for %s, counted as zero", asset.symbol)
            continue
        holdings.append((asset.symbol, balance, asset.fixed_rate))

    if registry.quote_symbol not in registry and registry.quote_symbol in balances:
        holdings.append(
            (registry.quote_symbol, balances[registry.quote_symbol], FixedPoint.one())
        )
    return holdings


# =============================================================================
# NAV
# =============================================================================


def net_asset_value(
    registry: AssetRegistry, balances: Mapping[str, FixedPoint]
) -> FixedPoint:
    """
    NAV фонда в котировочной валюте.

    Активы без записи в balances считаются нулевыми. Баланс
    quote_symbol, не являющегося активом реестра, учитывается по курсу 1.

    Args:
        registry: Реестр с фиксированными курсами
        balances: Символ → баланс фонда

    Returns:
        NAV в точности registry.quote_decimals (округление вниз)
    """
    values = [multiply(balance, rate) for _, balance, rate in _holdings(registry, balances)]
    total = sum_fixed(values, registry.quote_decimals)
    return _floor_to(total, registry.quote_decimals)


def share_value(nav: FixedPoint, share_supply: FixedPoint, quote_decimals: int) -> FixedPoint:
    """
    Стоимость одной целой единицы share-токена.

    Raises:
        PreconditionError: share_supply <= 0
    """
    if share_supply.raw <= 0:
        raise PreconditionError(
            PreconditionKind.ZERO_SHARE_SUPPLY,
            f"share_supply must be positive, got {share_supply}",
        )
    return multiply_then_divide(nav, FixedPoint.one(), share_supply, quote_decimals)


def value_fund(
    registry: AssetRegistry,
    balances: Mapping[str, FixedPoint],
    share_supply: FixedPoint,
) -> FundValuation:
    """NAV, предложение и стоимость доли одним снимком."""
    nav = net_asset_value(registry, balances)
    per_share = share_value(nav, share_supply, registry.quote_decimals)
    logger.info(
        "Fund valuation: nav=%s supply=%s share_value=%s",
        format_units(nav),
        format_units(share_supply),
        format_units(per_share),
    )
    return FundValuation(nav=nav, share_supply=share_supply, share_value=per_share)


# =============================================================================
# PREVIEWS
# =============================================================================


def investment_preview(
    capital: FixedPoint, nav: FixedPoint, share_supply: FixedPoint
) -> FixedPoint:
    """
    Количество долей, выпускаемых за capital при текущем NAV.

    shares = capital × share_supply / NAV в точности share_supply.

    Raises:
        PreconditionError: capital, NAV или share_supply не положительны
    """
    if capital.raw <= 0:
        raise PreconditionError(
            PreconditionKind.ZERO_CAPITAL, f"capital must be positive, got {capital}"
        )
    if share_supply.raw <= 0:
        raise PreconditionError(
            PreconditionKind.ZERO_SHARE_SUPPLY,
            f"share_supply must be positive, got {share_supply}",
        )
    if nav.raw <= 0:
        raise PreconditionError(PreconditionKind.ZERO_NAV, f"nav must be positive, got {nav}")
    return multiply_then_divide(capital, share_supply, nav, share_supply.exponent)


def redemption_preview(
    registry: AssetRegistry,
    balances: Mapping[str, FixedPoint],
    shares: FixedPoint,
    share_supply: FixedPoint,
    fee_bps: int = MANAGEMENT_FEE_BPS_DEFAULT,
) -> RedemptionPreview:
    """
    Превью погашения shares долей.

    Каждый баланс делится pro-rata (shares / share_supply), стоимость
    считается по фиксированным курсам, комиссия: fee_bps от gross.

    Args:
        registry: Реестр с фиксированными курсами
        balances: Символ → баланс фонда
        shares: Погашаемые доли (0 <= shares <= share_supply)
        share_supply: Общее предложение share-токена (> 0)
        fee_bps: Комиссия в базисных пунктах (0..10000)

    Returns:
        RedemptionPreview

    Raises:
        PreconditionError: share_supply <= 0 или shares вне диапазона
        ValueError: fee_bps вне диапазона
    """
    if share_supply.raw <= 0:
        raise PreconditionError(
            PreconditionKind.ZERO_SHARE_SUPPLY,
            f"share_supply must be positive, got {share_supply}",
        )
    if shares.raw < 0 or shares.as_fraction() > share_supply.as_fraction():
        raise PreconditionError(
            PreconditionKind.INVALID_SHARES,
            f"shares must be in [0, {share_supply}], got {shares}",
        )
    if not 0 <= fee_bps <= BPS_DENOMINATOR:
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOMINATOR}], got {fee_bps}")

    quote_decimals = registry.quote_decimals
    lines = []
    exact_values = []
    for symbol, balance, rate in _holdings(registry, balances):
        amount = multiply_then_divide(balance, shares, share_supply, balance.exponent)
        value = multiply(amount, rate)
        exact_values.append(value)
        lines.append(
            RedemptionLine(symbol=symbol, amount=amount, quote_value=_floor_to(value, quote_decimals))
        )

    gross = _floor_to(sum_fixed(exact_values, quote_decimals), quote_decimals)
    fee = multiply_then_divide(
        gross, FixedPoint(fee_bps, 0), FixedPoint(BPS_DENOMINATOR, 0), quote_decimals
    )
    net = FixedPoint(gross.raw - fee.raw, quote_decimals)

    logger.debug(
        "Redemption preview: shares=%s gross=%s fee=%s net=%s",
        format_units(shares),
        format_units(gross),
        format_units(fee),
        format_units(net),
    )
    return RedemptionPreview(shares=shares, lines=tuple(lines), gross=gross, fee=fee, net=net)
