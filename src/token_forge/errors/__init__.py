"""
Token Forge 结构化异常体系。

所有异常遵循"三段式"规范：What / Why / How to fix。
"""

from token_forge.errors.exceptions import (
    BackendLoadError,
    ConfigLoadError,
    ConfigValidationError,
    EncodeError,
    TokenForgeError,
)

__all__ = [
    "BackendLoadError",
    "ConfigLoadError",
    "ConfigValidationError",
    "EncodeError",
    "TokenForgeError",
]
