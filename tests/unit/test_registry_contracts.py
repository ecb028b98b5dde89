"""
Tests for JSON Schema Contract Validators

Тестирование конфигурационного контракта реестра активов:
- Валидность самой схемы
- Валидация правильных документов
- Детекция нарушений required полей и типов
- Детекция нарушений constraints (min/max/pattern/oneOf)
- Построение AssetRegistry из документа и из файла
"""

import json
from pathlib import Path

import pytest
from jsonschema import ValidationError

from src.core.contracts import (
    AssetRegistryConfigValidator,
    SchemaLoader,
    validate_asset_registry_config,
)
from src.core.domain import AssetRegistry, load_registry_config
from src.core.math.fixed_point import FixedPoint


# =============================================================================
# FIXTURES - VALID DATA SAMPLES
# =============================================================================


@pytest.fixture
def valid_registry_config():
    """Валидная конфигурация реестра для тестирования."""
    return {
        "fixed_rate_mode_enabled": True,
        "share_ratio_exponent": 18,
        "quote": {"symbol": "USDC", "decimals": 6},
        "assets": [
            {"symbol": "WETH", "decimals": 18, "fixed_rate": "3000", "weight": "0.25"},
            {"symbol": "WBTC", "decimals": 8, "fixed_rate": "115000", "weight": "0.25"},
            {"symbol": "LINK", "decimals": 18, "fixed_rate": "15", "weight_bps": 2500},
            {"symbol": "DAI", "decimals": 18, "fixed_rate": "1.000000", "weight_bps": 2500},
        ],
    }


# =============================================================================
# SCHEMA LOADER TESTS
# =============================================================================


class TestSchemaLoader:
    """Тесты для SchemaLoader"""

    def test_load_registry_schema(self) -> None:
        """Схема загружается и проходит meta-validation"""
        loader = SchemaLoader()
        schema = loader.load_schema("asset_registry")
        assert schema["title"] == "Asset Registry Configuration"

    def test_schema_cached(self) -> None:
        loader = SchemaLoader()
        assert loader.load_schema("asset_registry") is loader.load_schema("asset_registry")

    def test_missing_schema_dir(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError, match="Schema directory not found"):
            SchemaLoader(tmp_path / "absent")

    def test_missing_schema_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            SchemaLoader(tmp_path).load_schema("asset_registry")

    def test_invalid_schema_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "broken.json").write_text(json.dumps({"type": 42}), encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON Schema in broken.json"):
            SchemaLoader(tmp_path).load_schema("broken")


# =============================================================================
# ASSET REGISTRY CONFIG VALIDATION
# =============================================================================


class TestAssetRegistryConfigValidator:
    """Тесты для AssetRegistryConfigValidator"""

    def test_valid_config(self, valid_registry_config) -> None:
        validate_asset_registry_config(valid_registry_config)
        assert AssetRegistryConfigValidator().is_valid(valid_registry_config)

    def test_minimal_config(self) -> None:
        """quote и share_ratio_exponent необязательны"""
        validate_asset_registry_config(
            {
                "fixed_rate_mode_enabled": False,
                "assets": [{"symbol": "DAI", "decimals": 18, "fixed_rate": "1", "weight": "1"}],
            }
        )

    def test_missing_assets(self, valid_registry_config) -> None:
        del valid_registry_config["assets"]
        with pytest.raises(ValidationError, match="'assets' is a required property"):
            validate_asset_registry_config(valid_registry_config)

    def test_missing_mode_flag(self, valid_registry_config) -> None:
        del valid_registry_config["fixed_rate_mode_enabled"]
        with pytest.raises(ValidationError):
            validate_asset_registry_config(valid_registry_config)

    def test_numeric_rate_rejected(self, valid_registry_config) -> None:
        """Курс задаётся только десятичной строкой, не JSON number"""
        valid_registry_config["assets"][0]["fixed_rate"] = 3000
        with pytest.raises(ValidationError):
            validate_asset_registry_config(valid_registry_config)

    @pytest.mark.parametrize("rate", ["-1", "1e3", "3,000", "", "3000."])
    def test_rate_pattern(self, valid_registry_config, rate: str) -> None:
        valid_registry_config["assets"][0]["fixed_rate"] = rate
        with pytest.raises(ValidationError):
            validate_asset_registry_config(valid_registry_config)

    def test_both_weight_forms_rejected(self, valid_registry_config) -> None:
        """weight и weight_bps взаимоисключающие"""
        valid_registry_config["assets"][0]["weight_bps"] = 2500
        with pytest.raises(ValidationError):
            validate_asset_registry_config(valid_registry_config)

    def test_no_weight_rejected(self, valid_registry_config) -> None:
        del valid_registry_config["assets"][0]["weight"]
        with pytest.raises(ValidationError):
            validate_asset_registry_config(valid_registry_config)

    def test_weight_bps_range(self, valid_registry_config) -> None:
        valid_registry_config["assets"][2]["weight_bps"] = 10_001
        with pytest.raises(ValidationError):
            validate_asset_registry_config(valid_registry_config)

    def test_negative_decimals_rejected(self, valid_registry_config) -> None:
        valid_registry_config["assets"][1]["decimals"] = -1
        with pytest.raises(ValidationError):
            validate_asset_registry_config(valid_registry_config)

    def test_additional_property_rejected(self, valid_registry_config) -> None:
        valid_registry_config["assets"][1]["price_feed"] = "chainlink"
        with pytest.raises(ValidationError):
            validate_asset_registry_config(valid_registry_config)

    def test_iter_errors_collects_all(self, valid_registry_config) -> None:
        valid_registry_config["assets"][0]["decimals"] = -1
        valid_registry_config["assets"][1]["fixed_rate"] = 115000
        errors = list(AssetRegistryConfigValidator().iter_errors(valid_registry_config))
        assert len(errors) == 2


# =============================================================================
# REGISTRY FROM CONFIG
# =============================================================================


class TestRegistryFromConfig:
    """Тесты для AssetRegistry.from_config и load_registry_config"""

    def test_from_config(self, valid_registry_config) -> None:
        registry = AssetRegistry.from_config(valid_registry_config)

        assert registry.symbols() == ("WETH", "WBTC", "LINK", "DAI")
        assert registry.fixed_rate_mode_enabled is True
        assert registry.quote_symbol == "USDC"
        assert registry.quote_decimals == 6
        assert registry.get("WBTC").fixed_rate == FixedPoint(115_000_000_000, 6)
        assert registry.get("DAI").fixed_rate == FixedPoint(1_000_000, 6)
        assert registry.get("WETH").weight == FixedPoint(25, 2)
        assert registry.get("LINK").weight == FixedPoint(2500, 4)
        registry.validate()

    def test_rates_parsed_in_quote_precision(self, valid_registry_config) -> None:
        valid_registry_config["quote"] = {"symbol": "USDT", "decimals": 2}
        valid_registry_config["assets"][3]["fixed_rate"] = "0.99"
        registry = AssetRegistry.from_config(valid_registry_config)
        assert registry.quote_symbol == "USDT"
        assert registry.get("DAI").fixed_rate == FixedPoint(99, 2)

    def test_rate_finer_than_quote_rejected(self, valid_registry_config) -> None:
        """Курс точнее котировочной валюты не округляется молча"""
        valid_registry_config["assets"][3]["fixed_rate"] = "1.0000001"
        with pytest.raises(ValueError, match="fractional digits"):
            AssetRegistry.from_config(valid_registry_config)

    def test_schema_violation_raised_before_parsing(self, valid_registry_config) -> None:
        valid_registry_config["assets"][0]["fixed_rate"] = 3000
        with pytest.raises(ValidationError):
            AssetRegistry.from_config(valid_registry_config)

    def test_invalid_weights_survive_construction(self, valid_registry_config) -> None:
        """Несовпадение суммы весов проверяет validate(), а не схема"""
        valid_registry_config["assets"][0]["weight"] = "0.4"
        registry = AssetRegistry.from_config(valid_registry_config)
        assert not registry.is_valid()

    def test_load_from_file(self, tmp_path: Path, valid_registry_config) -> None:
        path = tmp_path / "registry.json"
        path.write_text(json.dumps(valid_registry_config), encoding="utf-8")

        registry = load_registry_config(path)
        assert registry == AssetRegistry.from_config(valid_registry_config)
