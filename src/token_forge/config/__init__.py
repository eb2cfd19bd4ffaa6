"""
Token Forge 配置模块。

提供 YAML 配置加载、Schema 校验和内置默认值。
"""

from token_forge.config.defaults import CHARS_PER_TOKEN, TEXT_COMPLETION_MODELS
from token_forge.config.loader import find_config_file, load_config, validate_config_file
from token_forge.config.schema import (
    CacheConfig,
    EstimatorConfig,
    RemoteCountConfig,
    SubwordModelsConfig,
    TokenForgeConfig,
    VendorTokenizerConfig,
)

__all__ = [
    "CHARS_PER_TOKEN",
    "TEXT_COMPLETION_MODELS",
    "CacheConfig",
    "EstimatorConfig",
    "RemoteCountConfig",
    "SubwordModelsConfig",
    "TokenForgeConfig",
    "VendorTokenizerConfig",
    "find_config_file",
    "load_config",
    "validate_config_file",
]
