"""
Token Forge Token 计数模块。

根据模型名自动选择 tokenizer 后端（tiktoken / SentencePiece / 厂商 JSON），
计算文本和聊天消息的 Token 数量，后端不可用时降级为字符长度估算。
"""

from token_forge.tokenizer.cache import (
    BackendKey,
    BackendKind,
    LoadState,
    TokenizerCache,
    TokenizerHandle,
)
from token_forge.tokenizer.counter import (
    DecodeResult,
    EncodeResult,
    MessageCount,
    TextCount,
    TokenCounter,
)
from token_forge.tokenizer.fallback import LengthEstimator, estimate_tokens
from token_forge.tokenizer.framing import LEGACY_CHAT_RULE, STANDARD_RULE, FramingRule, framing_rule_for
from token_forge.tokenizer.prompt_format import to_vendor_prompt
from token_forge.tokenizer.protocol import Backend
from token_forge.tokenizer.remote import RemoteTokenCounter
from token_forge.tokenizer.resolver import (
    FAMILY_RULES,
    SUBWORD_RULES,
    FamilyRule,
    ModelFamily,
    SubwordVariant,
    backend_key_for,
    list_legacy_completion_models,
    resolve_family,
    resolve_subword_variant,
)

__all__ = [
    "FAMILY_RULES",
    "LEGACY_CHAT_RULE",
    "STANDARD_RULE",
    "SUBWORD_RULES",
    "Backend",
    "BackendKey",
    "BackendKind",
    "DecodeResult",
    "EncodeResult",
    "FamilyRule",
    "FramingRule",
    "LengthEstimator",
    "LoadState",
    "MessageCount",
    "ModelFamily",
    "RemoteTokenCounter",
    "SubwordVariant",
    "TextCount",
    "TokenCounter",
    "TokenizerCache",
    "TokenizerHandle",
    "backend_key_for",
    "estimate_tokens",
    "framing_rule_for",
    "list_legacy_completion_models",
    "resolve_family",
    "resolve_subword_variant",
    "to_vendor_prompt",
]
