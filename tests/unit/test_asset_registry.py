"""
Тесты для Asset и AssetRegistry

Проверяет:
1. Создание и валидацию модели Asset
2. Immutability (frozen=True)
3. Проверки validate() и их порядок
4. Точную сумму весов при разной точности
5. Пересборку реестра (with_rates)
"""

import pytest
from pydantic import ValidationError

from src.core.domain import (
    Asset,
    AssetRegistry,
    ConfigError,
    ConfigErrorKind,
    ModeDisabledError,
    RateNotSetError,
    WeightNotPositiveError,
    WeightSumMismatchError,
)
from src.core.math.fixed_point import FixedPoint, parse_decimal, parse_units


def make_asset(symbol: str, decimals: int, rate: str, weight: str) -> Asset:
    """Актив с курсом в 6-значной котировке и десятичным весом"""
    return Asset(
        symbol=symbol,
        decimals=decimals,
        fixed_rate=parse_units(rate, 6),
        weight=parse_decimal(weight),
    )


def make_registry(*assets: Asset, enabled: bool = True) -> AssetRegistry:
    return AssetRegistry(assets=assets, fixed_rate_mode_enabled=enabled)


# =============================================================================
# ASSET TESTS
# =============================================================================


class TestAsset:
    """Тесты для модели Asset"""

    def test_valid_asset(self) -> None:
        """Валидный актив"""
        asset = make_asset("WBTC", 8, "115000", "0.25")
        assert asset.symbol == "WBTC"
        assert asset.decimals == 8
        assert asset.fixed_rate == FixedPoint(115_000_000_000, 6)
        assert asset.weight == FixedPoint(25, 2)
        assert asset.has_rate

    def test_zero_rate_allowed_by_model(self) -> None:
        """Нулевой курс допустим в модели, но has_rate == False"""
        asset = make_asset("WETH", 18, "0", "0.25")
        assert not asset.has_rate

    def test_negative_rate_rejected(self) -> None:
        with pytest.raises(ValidationError, match="fixed_rate must be non-negative"):
            Asset(
                symbol="WETH",
                decimals=18,
                fixed_rate=FixedPoint(-1, 6),
                weight=FixedPoint(1, 0),
            )

    def test_negative_weight_rejected(self) -> None:
        with pytest.raises(ValidationError, match="weight must be non-negative"):
            Asset(
                symbol="WETH",
                decimals=18,
                fixed_rate=FixedPoint(1, 0),
                weight=FixedPoint(-25, 2),
            )

    def test_empty_symbol_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_asset("", 18, "1", "1")

    def test_negative_decimals_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_asset("DAI", -1, "1", "1")

    def test_immutability(self) -> None:
        """Asset immutable (frozen=True)"""
        asset = make_asset("DAI", 18, "1", "1")
        with pytest.raises(ValidationError):
            asset.decimals = 6

    def test_unit_and_weight_fraction(self) -> None:
        asset = make_asset("WBTC", 8, "115000", "0.125")
        assert asset.unit() == FixedPoint(100_000_000, 8)
        assert asset.weight_fraction * 8 == 1


# =============================================================================
# REGISTRY VALIDATION
# =============================================================================


class TestRegistryValidate:
    """Тесты для AssetRegistry.validate()"""

    def test_equal_quarters_pass(self) -> None:
        """{0.25, 0.25, 0.25, 0.25}: валидный реестр"""
        registry = make_registry(
            make_asset("WETH", 18, "3000", "0.25"),
            make_asset("WBTC", 8, "115000", "0.25"),
            make_asset("LINK", 18, "15", "0.25"),
            make_asset("DAI", 18, "1", "0.25"),
        )
        registry.validate()
        assert registry.is_valid()

    def test_weights_over_one_rejected(self) -> None:
        """{0.4, 0.4, 0.4}: сумма 1.2"""
        registry = make_registry(
            make_asset("A", 18, "1", "0.4"),
            make_asset("B", 18, "1", "0.4"),
            make_asset("C", 18, "1", "0.4"),
        )
        with pytest.raises(WeightSumMismatchError, match="WEIGHT_SUM_MISMATCH") as exc_info:
            registry.validate()
        assert exc_info.value.kind == ConfigErrorKind.WEIGHT_SUM_MISMATCH
        assert "1.2" in str(exc_info.value)

    def test_weights_under_one_rejected(self) -> None:
        registry = make_registry(
            make_asset("A", 18, "1", "0.333"),
            make_asset("B", 18, "1", "0.333"),
            make_asset("C", 18, "1", "0.333"),
        )
        with pytest.raises(WeightSumMismatchError):
            registry.validate()

    def test_weights_exact_in_finer_precision(self) -> None:
        registry = make_registry(
            make_asset("A", 18, "1", "0.3333"),
            make_asset("B", 18, "1", "0.3333"),
            make_asset("C", 18, "1", "0.3334"),
        )
        registry.validate()

    def test_mixed_weight_precision(self) -> None:
        """Веса разной точности суммируются точно"""
        registry = make_registry(
            make_asset("A", 18, "1", "0.5"),
            make_asset("B", 18, "1", "0.25"),
            Asset(
                symbol="C",
                decimals=18,
                fixed_rate=FixedPoint(1, 0),
                weight=FixedPoint(2500, 4),
            ),
        )
        assert registry.weight_exponent == 4
        registry.validate()

    @pytest.mark.parametrize("enabled", [True, False])
    def test_zero_rate_reported_regardless_of_mode(self, enabled: bool) -> None:
        """Нулевой курс даёт RATE_NOT_SET при любом значении режима"""
        registry = make_registry(
            make_asset("WETH", 18, "0", "0.5"),
            make_asset("DAI", 18, "1", "0.5"),
            enabled=enabled,
        )
        with pytest.raises(RateNotSetError) as exc_info:
            registry.validate()
        assert exc_info.value.symbol == "WETH"
        assert exc_info.value.kind == ConfigErrorKind.RATE_NOT_SET

    def test_mode_disabled(self) -> None:
        registry = make_registry(make_asset("DAI", 18, "1", "1"), enabled=False)
        with pytest.raises(ModeDisabledError, match="MODE_DISABLED"):
            registry.validate()

    def test_zero_weight_rejected(self) -> None:
        registry = make_registry(
            make_asset("A", 18, "1", "1"),
            make_asset("B", 18, "1", "0"),
        )
        with pytest.raises(WeightNotPositiveError) as exc_info:
            registry.validate()
        assert exc_info.value.symbol == "B"

    def test_weight_above_one_rejected(self) -> None:
        registry = make_registry(make_asset("A", 18, "1", "1.5"))
        with pytest.raises(WeightNotPositiveError):
            registry.validate()

    def test_empty_registry_rejected(self) -> None:
        """Пустой реестр: сумма весов 0 != 1"""
        with pytest.raises(WeightSumMismatchError):
            make_registry().validate()

    def test_empty_registry_with_mode_disabled(self) -> None:
        """Без активов режим не проверяется; остаётся несовпадение суммы"""
        with pytest.raises(WeightSumMismatchError):
            make_registry(enabled=False).validate()

    def test_all_config_errors_share_base(self) -> None:
        registry = make_registry(make_asset("A", 18, "0", "1"))
        with pytest.raises(ConfigError):
            registry.validate()
        assert not registry.is_valid()

    def test_validate_is_pure(self) -> None:
        """Повторная проверка даёт тот же результат и не меняет реестр"""
        registry = make_registry(make_asset("A", 18, "1", "0.4"))
        before = registry.model_dump()
        for _ in range(2):
            with pytest.raises(WeightSumMismatchError):
                registry.validate()
        assert registry.model_dump() == before


# =============================================================================
# REGISTRY MODEL
# =============================================================================


class TestRegistryModel:
    """Тесты для модели AssetRegistry"""

    @pytest.fixture
    def registry(self) -> AssetRegistry:
        return make_registry(
            make_asset("WETH", 18, "3000", "0.5"),
            make_asset("WBTC", 8, "115000", "0.5"),
        )

    def test_order_preserved(self, registry: AssetRegistry) -> None:
        assert registry.symbols() == ("WETH", "WBTC")
        assert len(registry) == 2

    def test_lookup(self, registry: AssetRegistry) -> None:
        assert "WBTC" in registry
        assert "LINK" not in registry
        assert registry.get("WBTC").decimals == 8
        with pytest.raises(KeyError):
            registry.get("LINK")

    def test_defaults(self, registry: AssetRegistry) -> None:
        assert registry.share_ratio_exponent == 18
        assert registry.quote_symbol == "USDC"
        assert registry.quote_decimals == 6

    def test_duplicate_symbols_rejected(self) -> None:
        with pytest.raises(ValidationError, match="duplicate asset symbol: DAI"):
            make_registry(
                make_asset("DAI", 18, "1", "0.5"),
                make_asset("DAI", 18, "1", "0.5"),
            )

    def test_immutability(self, registry: AssetRegistry) -> None:
        with pytest.raises(ValidationError):
            registry.fixed_rate_mode_enabled = False

    def test_with_rates(self, registry: AssetRegistry) -> None:
        """Новые курсы применяются к новому реестру, исходный не меняется"""
        updated = registry.with_rates({"WETH": parse_units("3500", 6)}, False)

        assert updated.get("WETH").fixed_rate == FixedPoint(3_500_000_000, 6)
        assert updated.get("WBTC").fixed_rate == registry.get("WBTC").fixed_rate
        assert updated.fixed_rate_mode_enabled is False
        assert updated.symbols() == registry.symbols()

        assert registry.get("WETH").fixed_rate == FixedPoint(3_000_000_000, 6)
        assert registry.fixed_rate_mode_enabled is True
