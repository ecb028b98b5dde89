"""
Domain models and value objects.

Contains the fund's supported assets and the registry they are allocated from.
"""

from src.core.domain.asset import Asset
from src.core.domain.registry import (
    AssetRegistry,
    ConfigError,
    ConfigErrorKind,
    ModeDisabledError,
    RateNotSetError,
    WeightNotPositiveError,
    WeightSumMismatchError,
    load_registry_config,
)

__all__ = [
    # Asset model
    "Asset",
    # Registry
    "AssetRegistry",
    "load_registry_config",
    # Config errors
    "ConfigError",
    "ConfigErrorKind",
    "RateNotSetError",
    "ModeDisabledError",
    "WeightNotPositiveError",
    "WeightSumMismatchError",
]
