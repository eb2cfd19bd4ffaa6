"""
Token 计数服务 — 解析、缓存、格式开销和降级估算的组合点。

调用方只需要传入模型名和文本（或消息列表）：

    模型名 ──resolve_family──▶ ModelFamily ──backend_key_for──▶ TokenizerCache
                                                                      │
                              TextCount / MessageCount ◀──encode──────┘
                                                                      │
                              LengthEstimator ◀──加载失败 / 编码异常──┘

公开方法都不抛异常：后端不可用或出错时降级为估算值（调试接口返回空结果）。
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

from token_forge.errors import EncodeError
from token_forge.tokenizer.cache import BackendKey, BackendKind, TokenizerCache, TokenizerHandle
from token_forge.tokenizer.fallback import LengthEstimator
from token_forge.tokenizer.framing import FramingRule, framing_rule_for
from token_forge.tokenizer.prompt_format import to_vendor_prompt
from token_forge.tokenizer.protocol import Backend
from token_forge.tokenizer.resolver import (
    ModelFamily,
    backend_key_for,
    list_legacy_completion_models,
    named_backend_key,
    resolve_family,
    resolve_subword_variant,
)

logger = logging.getLogger(__name__)

Message = Mapping[str, Any]

SUBWORD_JOINER = "\n\n"


@dataclass
class TextCount:
    """文本计数结果。估算时 ids 为空。"""

    ids: list[int] = field(default_factory=list)
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class EncodeResult:
    """调试编码结果，chunks 是逐个 ID 单独解码得到的文本片段。"""

    ids: list[int] = field(default_factory=list)
    count: int = 0
    chunks: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MessageCount:
    """消息列表计数结果。"""

    token_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DecodeResult:
    """调试解码结果。"""

    text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class TokenCounter:
    """
    Token 计数服务。

    用法::

        cache = TokenizerCache(config)
        counter = TokenCounter(cache)

        counter.count_text("gpt-4", "Hello, world!")
        counter.count_messages("gpt-3.5-turbo-0301", [{"role": "user", "content": "Hi"}])
        counter.encode_debug("llama-2-7b", "Hello")
    """

    def __init__(
        self,
        cache: TokenizerCache,
        estimator: LengthEstimator | None = None,
    ) -> None:
        self._cache = cache
        self._estimator = estimator if estimator is not None else LengthEstimator()

    @property
    def cache(self) -> TokenizerCache:
        return self._cache

    @property
    def estimator(self) -> LengthEstimator:
        return self._estimator

    # ============================================================
    # 公开操作
    # ============================================================

    def resolve_family(self, model: str) -> ModelFamily:
        """解析模型名对应的 tokenizer 家族。"""
        return resolve_family(model)

    def list_legacy_completion_models(self) -> frozenset[str]:
        """返回旧版补全模型目录。"""
        return list_legacy_completion_models()

    def count_text(self, model: str, text: str) -> TextCount:
        """
        计算文本的 Token 数量。

        后端可用时返回精确的 ids 和 count；加载失败或编码出错时
        ids 为空，count 为字符长度估算值。
        """
        handle = self._cache.get(backend_key_for(resolve_family(model)))
        return self._count_with(handle, text)

    def count_messages(self, model: str, messages: Sequence[Message]) -> MessageCount:
        """
        计算消息列表的 Token 总数（含格式开销）。

        - byte-pair 家族：逐条消息累加内容 Token 与格式开销
        - subword 家族：所有字段值以空行拼接后整体计数
        - 厂商家族：转换为单一 prompt 后计数

        任何未预期的错误都会降级为对整个请求体 JSON 的估算。

        参数:
            model: 调用方传入的原始模型名（格式开销规则依赖解析前的名字）
            messages: 消息列表 [{"role": "...", "content": "...", "name": "..."}]

        返回:
            MessageCount
        """
        try:
            family = resolve_family(model)
            handle = self._cache.get(backend_key_for(family))

            if family.kind is BackendKind.VENDOR:
                total = self._count_vendor_messages(handle, messages)
            elif family.kind is BackendKind.SUBWORD:
                total = self._count_subword_messages(handle, messages)
            elif handle.available:
                total = self._count_byte_pair_messages(
                    handle, messages, framing_rule_for(model)
                )
            else:
                logger.warning("模型 '%s' 的 tokenizer 不可用，使用估算值。", model)
                total = self._estimate_payload(messages)
        except Exception as e:
            logger.warning("消息计数出错，使用估算值。模型：%s，错误：%s", model, e)
            total = self._estimate_payload(messages)

        return MessageCount(token_count=total)

    def encode_debug(self, model: str, text: str) -> EncodeResult:
        """编码文本并返回逐 Token 的文本片段；后端不可用时返回空结果。"""
        handle = self._cache.get(backend_key_for(resolve_family(model)))
        return self._encode_debug_with(handle, text)

    def decode_debug(self, model: str, ids: Sequence[int]) -> DecodeResult:
        """解码 Token ID 列表；后端不可用时返回空文本。"""
        handle = self._cache.get(backend_key_for(resolve_family(model)))
        return self._decode_with(handle, ids)

    def named_key(self, name: str) -> BackendKey | None:
        """
        具名 tokenizer → 缓存键。

        先查固定名称表（llama / nerdstash / nerdstash_v2 / mistral / gpt2 / claude），
        再按 SentencePiece 文件名规则匹配（如 "nerdstash_v2.model"）。
        """
        key = named_backend_key(name)
        if key is not None:
            return key
        variant = resolve_subword_variant(name)
        if variant is not None:
            return BackendKey.subword(variant.value)
        return None

    def encode_named(self, name: str, text: str) -> EncodeResult:
        """使用具名 tokenizer 编码；未知名称或后端不可用时返回空结果。"""
        key = self.named_key(name)
        if key is None:
            return EncodeResult()
        return self._encode_debug_with(self._cache.get(key), text)

    def decode_named(self, name: str, ids: Sequence[int]) -> DecodeResult:
        """使用具名 tokenizer 解码；未知名称或后端不可用时返回空文本。"""
        key = self.named_key(name)
        if key is None:
            return DecodeResult()
        return self._decode_with(self._cache.get(key), ids)

    # ============================================================
    # 内部实现
    # ============================================================

    def _encode(self, handle: TokenizerHandle, text: str) -> list[int]:
        backend = _require_backend(handle)
        with handle.guard():
            return backend.encode(text)

    def _decode(self, handle: TokenizerHandle, ids: list[int]) -> str:
        backend = _require_backend(handle)
        with handle.guard():
            return backend.decode(ids)

    def _count_with(self, handle: TokenizerHandle, text: str) -> TextCount:
        if not handle.available:
            return TextCount(ids=[], count=self._estimate_text(text))
        try:
            ids = self._encode(handle, text)
        except Exception as e:
            logger.warning("Tokenizer '%s' 编码失败，使用估算值。错误：%s", handle.key, e)
            return TextCount(ids=[], count=self._estimate_text(text))
        return TextCount(ids=list(ids), count=len(ids))

    def _encode_debug_with(self, handle: TokenizerHandle, text: str) -> EncodeResult:
        if not handle.available:
            return EncodeResult()
        try:
            ids = list(self._encode(handle, text))
            # 逐个 ID 单独解码，保留真实的 Token 边界
            chunks = [self._decode(handle, [token_id]) for token_id in ids]
        except Exception as e:
            logger.warning("Tokenizer '%s' 调试编码失败：%s", handle.key, e)
            return EncodeResult()
        return EncodeResult(ids=ids, count=len(ids), chunks=chunks)

    def _decode_with(self, handle: TokenizerHandle, ids: Sequence[int]) -> DecodeResult:
        if not handle.available:
            return DecodeResult()
        try:
            text = self._decode(handle, [int(token_id) for token_id in ids])
        except Exception as e:
            logger.warning("Tokenizer '%s' 解码失败：%s", handle.key, e)
            return DecodeResult()
        return DecodeResult(text=text)

    def _count_byte_pair_messages(
        self,
        handle: TokenizerHandle,
        messages: Sequence[Message],
        rule: FramingRule,
    ) -> int:
        total = 0
        for message in messages:
            try:
                total += self._message_tokens(handle, message, rule)
            except Exception as e:
                logger.warning("消息编码失败，已跳过：%r（%s）", message, e)
        total += rule.tokens_padding
        total += rule.surcharge
        return total

    def _message_tokens(
        self,
        handle: TokenizerHandle,
        message: Message,
        rule: FramingRule,
    ) -> int:
        subtotal = rule.tokens_per_message
        for key, value in message.items():
            subtotal += len(self._encode(handle, value))
            if key == "name":
                subtotal += rule.tokens_per_name
        return subtotal

    def _count_subword_messages(
        self,
        handle: TokenizerHandle,
        messages: Sequence[Message],
    ) -> int:
        joined = SUBWORD_JOINER.join(
            "" if value is None else str(value)
            for message in messages
            for value in message.values()
        )
        return self._count_with(handle, joined).count

    def _count_vendor_messages(
        self,
        handle: TokenizerHandle,
        messages: Sequence[Message],
    ) -> int:
        prompt = to_vendor_prompt(messages)
        if not handle.available:
            return self._estimator.estimate(prompt)
        return len(self._encode(handle, prompt))

    def _estimate_text(self, text: Any) -> int:
        if isinstance(text, str):
            return self._estimator.estimate(text)
        return self._estimate_payload(text)

    def _estimate_payload(self, payload: Any) -> int:
        """对整个请求体的 JSON 序列化做估算。"""
        try:
            serialized = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)
        except (TypeError, ValueError):
            serialized = repr(payload)
        return self._estimator.estimate(serialized)


def _require_backend(handle: TokenizerHandle) -> Backend:
    if handle.backend is None:
        raise EncodeError(
            what=f"Tokenizer '{handle.key}' 不可用。",
            why=f"句柄状态为 {handle.state.value}。",
            backend_key=str(handle.key),
        )
    return handle.backend
