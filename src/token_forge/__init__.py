"""
Token Forge — 多后端 Token 计数引擎。

把任意模型名解析到具体的 tokenizer 后端（tiktoken / SentencePiece / 厂商 JSON），
按厂商的消息格式规则计算文本和聊天消息的 Token 数量；
后端不可用时降级为确定性的字符长度估算，调用方永远拿得到一个数字。

快速上手::

    from token_forge import TokenForge

    forge = TokenForge()
    forge.count_text("gpt-4", "Hello, world!").count
    forge.count_messages(
        "gpt-3.5-turbo-0301",
        [{"role": "user", "content": "Hi"}],
    ).token_count
"""

from token_forge.config import TokenForgeConfig, load_config
from token_forge.errors import (
    BackendLoadError,
    ConfigLoadError,
    ConfigValidationError,
    EncodeError,
    TokenForgeError,
)
from token_forge.facade import TokenForge
from token_forge.tokenizer import (
    BackendKey,
    DecodeResult,
    EncodeResult,
    LengthEstimator,
    LoadState,
    MessageCount,
    ModelFamily,
    TextCount,
    TokenCounter,
    TokenizerCache,
    estimate_tokens,
    list_legacy_completion_models,
    resolve_family,
)

__version__ = "0.1.0"

__all__ = [
    # 顶层入口
    "TokenForge",
    # 配置
    "TokenForgeConfig",
    "load_config",
    # 计数核心
    "TokenCounter",
    "TokenizerCache",
    "BackendKey",
    "LoadState",
    "ModelFamily",
    "LengthEstimator",
    "estimate_tokens",
    "resolve_family",
    "list_legacy_completion_models",
    # 结果
    "TextCount",
    "EncodeResult",
    "MessageCount",
    "DecodeResult",
    # 异常
    "TokenForgeError",
    "BackendLoadError",
    "EncodeError",
    "ConfigLoadError",
    "ConfigValidationError",
    # 版本
    "__version__",
]
