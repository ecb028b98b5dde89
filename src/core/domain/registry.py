"""
AssetRegistry — Реестр активов фонда в режиме фиксированных курсов

Упорядоченная коллекция Asset с уникальными символами (порядок вставки
сохраняется и определяет порядок аллокации) плюс флаг режима
фиксированных курсов.

Жизненный цикл: реестр строится один раз из внешней конфигурации и
неизменяем на время прогона аллокации. Изменить его можно только
пересборкой (with_rates, from_config).

Проверки validate() в порядке выполнения:
1. RATE_NOT_SET — у актива нулевой курс (независимо от режима)
2. MODE_DISABLED — режим выключен при наличии активов
3. WEIGHT_NOT_POSITIVE — доля актива равна 0 или больше 1
4. WEIGHT_SUM_MISMATCH — сумма долей не равна ровно единице
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, Field, model_validator

from src.core.contracts.validators import validate_asset_registry_config
from src.core.domain.asset import Asset
from src.core.math.fixed_point import (
    QUOTE_DECIMALS_DEFAULT,
    SHARE_RATIO_EXPONENT_DEFAULT,
    FixedPoint,
    parse_decimal,
    parse_units,
    pow10,
    sum_fixed,
)


# =============================================================================
# ОШИБКИ КОНФИГУРАЦИИ
# =============================================================================


class ConfigErrorKind(str, Enum):
    """Причина непригодности реестра"""

    RATE_NOT_SET = "RATE_NOT_SET"
    MODE_DISABLED = "MODE_DISABLED"
    WEIGHT_NOT_POSITIVE = "WEIGHT_NOT_POSITIVE"
    WEIGHT_SUM_MISMATCH = "WEIGHT_SUM_MISMATCH"


class ConfigError(Exception):
    """
    Реестр непригоден для аллокации.

    Фатально для вызывающего сценария: исправляется только
    переконфигурацией, никогда не обходится молча.
    """

    kind: ConfigErrorKind

    def __init__(self, message: str, symbol: str | None = None):
        self.symbol = symbol
        self.message = message
        super().__init__(f"{self.kind.value}: {message}")


class RateNotSetError(ConfigError):
    kind = ConfigErrorKind.RATE_NOT_SET


class ModeDisabledError(ConfigError):
    kind = ConfigErrorKind.MODE_DISABLED


class WeightNotPositiveError(ConfigError):
    kind = ConfigErrorKind.WEIGHT_NOT_POSITIVE


class WeightSumMismatchError(ConfigError):
    kind = ConfigErrorKind.WEIGHT_SUM_MISMATCH


# =============================================================================
# REGISTRY MODEL
# =============================================================================


class AssetRegistry(BaseModel):
    """
    Реестр поддерживаемых активов.

    Immutable модель (frozen=True). validate() является чистой функцией
    содержимого реестра и обязана пройти до любого расчёта аллокации.
    """

    assets: tuple[Asset, ...] = Field(default=(), description="Активы в порядке аллокации")
    fixed_rate_mode_enabled: bool = Field(..., description="Режим фиксированных курсов включён")
    share_ratio_exponent: int = Field(
        SHARE_RATIO_EXPONENT_DEFAULT, ge=0, description="Точность долей на единицу share-токена"
    )
    quote_symbol: str = Field("USDC", min_length=1, description="Котировочная валюта")
    quote_decimals: int = Field(
        QUOTE_DECIMALS_DEFAULT, ge=0, description="Точность котировочной валюты"
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_unique_symbols(self) -> "AssetRegistry":
        """Символ является ключом реестра, повторы запрещены."""
        seen: set[str] = set()
        for asset in self.assets:
            if asset.symbol in seen:
                raise ValueError(f"duplicate asset symbol: {asset.symbol}")
            seen.add(asset.symbol)
        return self

    def __len__(self) -> int:
        return len(self.assets)

    def __contains__(self, symbol: object) -> bool:
        return any(asset.symbol == symbol for asset in self.assets)

    def get(self, symbol: str) -> Asset:
        """
        Актив по символу.

        Raises:
            KeyError: символ отсутствует в реестре
        """
        for asset in self.assets:
            if asset.symbol == symbol:
                return asset
        raise KeyError(symbol)

    def symbols(self) -> tuple[str, ...]:
        return tuple(asset.symbol for asset in self.assets)

    @property
    def weight_exponent(self) -> int:
        """Точность долей реестра: наибольшая экспонента среди весов."""
        return max((asset.weight.exponent for asset in self.assets), default=0)

    # -------------------------------------------------------------------------
    # Валидация
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """
        Проверка пригодности реестра для аллокации.

        Raises:
            RateNotSetError: у актива fixed_rate.raw == 0
            ModeDisabledError: режим выключен при наличии активов
            WeightNotPositiveError: вес актива == 0 или > 1
            WeightSumMismatchError: сумма весов != 1 в точности реестра
        """
        for asset in self.assets:
            if not asset.has_rate:
                raise RateNotSetError(
                    f"fixed rate for {asset.symbol} is not set", symbol=asset.symbol
                )

        if self.assets and not self.fixed_rate_mode_enabled:
            raise ModeDisabledError(
                f"fixed rate mode is disabled while {len(self.assets)} assets are configured"
            )

        for asset in self.assets:
            if asset.weight.raw <= 0 or asset.weight.raw > pow10(asset.weight.exponent):
                raise WeightNotPositiveError(
                    f"weight of {asset.symbol} must be in (0, 1], got {asset.weight}",
                    symbol=asset.symbol,
                )

        total = sum_fixed((asset.weight for asset in self.assets), self.weight_exponent)
        if total.raw != pow10(total.exponent):
            raise WeightSumMismatchError(
                f"weights sum to {total}, expected exactly 1 "
                f"at exponent {total.exponent}"
            )

    def is_valid(self) -> bool:
        """Проверка пригодности без exception."""
        try:
            self.validate()
        except ConfigError:
            return False
        return True

    # -------------------------------------------------------------------------
    # Пересборка
    # -------------------------------------------------------------------------

    def with_rates(
        self,
        rates: Mapping[str, FixedPoint],
        fixed_rate_mode_enabled: bool,
    ) -> "AssetRegistry":
        """
        Новый реестр с обновлёнными курсами и флагом режима.

        Активы без записи в rates сохраняют текущий курс.
        """
        assets = tuple(
            Asset(
                symbol=asset.symbol,
                decimals=asset.decimals,
                fixed_rate=rates.get(asset.symbol, asset.fixed_rate),
                weight=asset.weight,
            )
            for asset in self.assets
        )
        return AssetRegistry(
            assets=assets,
            fixed_rate_mode_enabled=fixed_rate_mode_enabled,
            share_ratio_exponent=self.share_ratio_exponent,
            quote_symbol=self.quote_symbol,
            quote_decimals=self.quote_decimals,
        )

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> "AssetRegistry":
        """
        Построение реестра из конфигурационного документа.

        Документ проверяется по схеме asset_registry, затем курсы
        разбираются в точности котировочной валюты, веса как
        десятичные строки или базисные пункты.

        Raises:
            jsonschema.ValidationError: документ не соответствует схеме
            ValueError: курс задан точнее, чем quote.decimals
        """
        validate_asset_registry_config(data)

        quote = data.get("quote", {})
        quote_decimals = quote.get("decimals", QUOTE_DECIMALS_DEFAULT)

        assets = []
        for entry in data["assets"]:
            if "weight_bps" in entry:
                weight = FixedPoint(entry["weight_bps"], 4)
            else:
                weight = parse_decimal(entry["weight"])
            assets.append(
                Asset(
                    symbol=entry["symbol"],
                    decimals=entry["decimals"],
                    fixed_rate=parse_units(entry["fixed_rate"], quote_decimals),
                    weight=weight,
                )
            )

        return cls(
            assets=tuple(assets),
            fixed_rate_mode_enabled=data["fixed_rate_mode_enabled"],
            share_ratio_exponent=data.get("share_ratio_exponent", SHARE_RATIO_EXPONENT_DEFAULT),
            quote_symbol=quote.get("symbol", "USDC"),
            quote_decimals=quote_decimals,
        )


def load_registry_config(path: str | Path) -> AssetRegistry:
    """
    Загрузка реестра из JSON файла.

    Args:
        path: Путь к конфигурационному документу
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return AssetRegistry.from_config(data)
