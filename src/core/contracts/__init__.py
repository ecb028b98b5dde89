"""
Contract Validation Module

Модуль для валидации JSON конфигурационных документов.
"""

from .validators import (
    AssetRegistryConfigValidator,
    ContractValidator,
    SchemaLoader,
    validate_asset_registry_config,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "AssetRegistryConfigValidator",
    # Functions
    "validate_asset_registry_config",
]
