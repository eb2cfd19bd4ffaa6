"""
模型解析器 — 把任意模型名字符串映射到规范的 tokenizer 家族。

调用方传来的模型名五花八门（"gpt-4-0613"、"claude-2.1"、
"llama-2-13b-chat"、"text-davinci-003"……），
解析器按一张有序规则表做子串匹配，第一条命中的规则生效。

规则顺序决定结果：例如同时包含 "gpt-3.5-turbo-0301" 和 "gpt-3.5-turbo" 的
# 字符串必须解析为前者。

解析是纯函数、全函数：任何字符串都返回恰好一个家族，未知模型落到默认分支。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from token_forge.config.defaults import TEXT_COMPLETION_MODELS
from token_forge.tokenizer.cache import BackendKey, BackendKind

logger = logging.getLogger(__name__)


class SubwordVariant(str, Enum):
    """四个固定的 SentencePiece 模型变体。"""

    LLAMA = "llama"
    NERDSTASH = "nerdstash"
    NERDSTASH_V2 = "nerdstash_v2"
    MISTRAL = "mistral"


@dataclass(frozen=True)
class ModelFamily:
    """
    规范的 tokenizer 家族。

    属性:
        kind: 后端类型
        name: 家族标签（"claude"、"llama"、"gpt-4"、"text-davinci-003" 等）
        variant: subword 家族对应的模型变体
    """

    kind: BackendKind
    name: str
    variant: SubwordVariant | None = None

    @classmethod
    def byte_pair(cls, name: str) -> ModelFamily:
        return cls(BackendKind.BYTE_PAIR, name)

    @classmethod
    def subword(cls, variant: SubwordVariant) -> ModelFamily:
        return cls(BackendKind.SUBWORD, variant.value, variant)

    @classmethod
    def vendor(cls) -> ModelFamily:
        return cls(BackendKind.VENDOR, "claude")

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class FamilyRule:
    """一条子串匹配规则：模型名包含 marker 时解析为 family。"""

    marker: str
    family: ModelFamily

    def matches(self, requested_model: str) -> bool:
        return self.marker in requested_model


DEFAULT_FAMILY = ModelFamily.byte_pair("gpt-3.5-turbo")

# 按声明顺序求值，第一条命中的规则生效
FAMILY_RULES: tuple[FamilyRule, ...] = (
    FamilyRule("claude", ModelFamily.vendor()),
    FamilyRule("llama", ModelFamily.subword(SubwordVariant.LLAMA)),
    FamilyRule("mistral", ModelFamily.subword(SubwordVariant.MISTRAL)),
    FamilyRule("gpt-4-32k", ModelFamily.byte_pair("gpt-4-32k")),
    FamilyRule("gpt-4", ModelFamily.byte_pair("gpt-4")),
    FamilyRule("gpt-3.5-turbo-0301", ModelFamily.byte_pair("gpt-3.5-turbo-0301")),
    FamilyRule("gpt-3.5-turbo", DEFAULT_FAMILY),
)

# nerdstash_v2 排在 nerdstash 之前，否则 v2 模型文件永远无法命中
SUBWORD_RULES: tuple[tuple[str, SubwordVariant], ...] = (
    ("llama", SubwordVariant.LLAMA),
    ("nerdstash_v2", SubwordVariant.NERDSTASH_V2),
    ("nerdstash", SubwordVariant.NERDSTASH),
    ("mistral", SubwordVariant.MISTRAL),
)

_LEGACY_COMPLETION_MODELS = frozenset(TEXT_COMPLETION_MODELS)

# 调试端点使用的具名 tokenizer
NAMED_TOKENIZERS: dict[str, BackendKey] = {
    SubwordVariant.LLAMA.value: BackendKey.subword(SubwordVariant.LLAMA.value),
    SubwordVariant.NERDSTASH.value: BackendKey.subword(SubwordVariant.NERDSTASH.value),
    SubwordVariant.NERDSTASH_V2.value: BackendKey.subword(SubwordVariant.NERDSTASH_V2.value),
    SubwordVariant.MISTRAL.value: BackendKey.subword(SubwordVariant.MISTRAL.value),
    "gpt2": BackendKey.byte_pair("gpt2"),
    "claude": BackendKey.vendor(),
}


def resolve_family(requested_model: str) -> ModelFamily:
    """
    解析模型名对应的 tokenizer 家族。

    查找顺序：
    1. FAMILY_RULES 子串规则（按声明顺序）
    2. 旧版补全模型目录精确匹配（按原名作为独立家族）
    3. 默认 gpt-3.5-turbo

    参数:
        requested_model: 调用方传入的原始模型名

    返回:
        ModelFamily 实例

    示例::

        resolve_family("gpt-4-0613")            # → gpt-4
        resolve_family("claude-instant-1.2")    # → claude
        resolve_family("text-davinci-003")      # → text-davinci-003
        resolve_family("some-unknown-model")    # → gpt-3.5-turbo
    """
    for rule in FAMILY_RULES:
        if rule.matches(requested_model):
            logger.debug("模型 '%s' 命中规则 '%s' → %s", requested_model, rule.marker, rule.family)
            return rule.family

    if requested_model in _LEGACY_COMPLETION_MODELS:
        return ModelFamily.byte_pair(requested_model)

    logger.debug("模型 '%s' 未命中任何规则，使用默认家族 %s", requested_model, DEFAULT_FAMILY)
    return DEFAULT_FAMILY


def resolve_subword_variant(model: str) -> SubwordVariant | None:
    """按 SUBWORD_RULES 把模型文件名或模型名映射到 SentencePiece 变体，无匹配时返回 None。"""
    for marker, variant in SUBWORD_RULES:
        if marker in model:
            return variant
    return None


def list_legacy_completion_models() -> frozenset[str]:
    """返回按原名精确匹配的旧版补全模型目录。"""
    return _LEGACY_COMPLETION_MODELS


def backend_key_for(family: ModelFamily) -> BackendKey:
    """家族 → 缓存键。"""
    if family.kind is BackendKind.VENDOR:
        return BackendKey.vendor()
    if family.kind is BackendKind.SUBWORD and family.variant is not None:
        return BackendKey.subword(family.variant.value)
    return BackendKey.byte_pair(family.name)


def named_backend_key(name: str) -> BackendKey | None:
    """具名调试 tokenizer → 缓存键，未知名称返回 None。"""
    return NAMED_TOKENIZERS.get(name)
