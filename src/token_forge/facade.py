"""
TokenForge — 顶层 Facade API。

这是 Token Forge 的主入口，也是应用的组合根：它持有配置、
Tokenizer 缓存、计数服务和远程计数协作者，HTTP 服务和 CLI 都通过它工作。

最简用法::

    from token_forge import TokenForge

    forge = TokenForge()
    forge.count_text("gpt-4", "Hello, world!")
    forge.count_messages("gpt-3.5-turbo", [{"role": "user", "content": "你好"}])

自定义配置::

    forge = TokenForge(config_path="token_forge.yaml", debug=True)

每个实例持有自己的 TokenizerCache；传入 cache 参数时直接使用传入的对象。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from token_forge.config.loader import load_config
from token_forge.config.schema import TokenForgeConfig
from token_forge.tokenizer.cache import BackendKey, LoadState, TokenizerCache
from token_forge.tokenizer.counter import (
    DecodeResult,
    EncodeResult,
    Message,
    MessageCount,
    TextCount,
    TokenCounter,
)
from token_forge.tokenizer.fallback import LengthEstimator
from token_forge.tokenizer.remote import RemoteTokenCounter
from token_forge.tokenizer.resolver import ModelFamily

logger = logging.getLogger(__name__)


class TokenForge:
    """
    Token Forge 主入口。

    参数:
        config: 已构造的配置对象，优先于 config_path
        config_path: YAML 配置文件路径（None 时自动搜索）
        cache: 自定义 TokenizerCache（高级用法，测试中注入假后端）
        remote: 自定义远程计数器
        debug: 打开 DEBUG 日志
    """

    def __init__(
        self,
        config: TokenForgeConfig | None = None,
        config_path: str | Path | None = None,
        cache: TokenizerCache | None = None,
        remote: RemoteTokenCounter | None = None,
        debug: bool = False,
    ) -> None:
        self._config = config if config is not None else load_config(config_path)
        self._debug = debug

        self._cache = cache if cache is not None else TokenizerCache(self._config)
        self._counter = TokenCounter(
            self._cache,
            estimator=LengthEstimator(self._config.estimator.chars_per_token),
        )
        self._remote = remote if remote is not None else RemoteTokenCounter(self._config.remote)

        logging.getLogger("token_forge").setLevel(self._config.log_level)
        if self._debug:
            logging.basicConfig(level=logging.DEBUG)
            logging.getLogger("token_forge").setLevel(logging.DEBUG)
            logger.debug(
                "TokenForge 初始化完成：chars_per_token=%.2f, serialize_backend_calls=%s, "
                "remote=%s, preload=%s",
                self._config.estimator.chars_per_token,
                self._config.cache.serialize_backend_calls,
                "enabled" if self._remote.enabled else "disabled",
                self._config.cache.preload,
            )

    # ============================================================
    # 属性
    # ============================================================

    @property
    def config(self) -> TokenForgeConfig:
        return self._config

    @property
    def cache(self) -> TokenizerCache:
        return self._cache

    @property
    def counter(self) -> TokenCounter:
        return self._counter

    @property
    def remote(self) -> RemoteTokenCounter:
        return self._remote

    # ============================================================
    # 核心操作
    # ============================================================

    def resolve_family(self, model: str) -> ModelFamily:
        """解析模型名对应的 tokenizer 家族。"""
        return self._counter.resolve_family(model)

    def count_text(self, model: str, text: str) -> TextCount:
        """计算文本的 Token 数量。"""
        return self._counter.count_text(model, text)

    def count_messages(self, model: str, messages: Sequence[Message]) -> MessageCount:
        """计算消息列表的 Token 总数（含格式开销）。"""
        return self._counter.count_messages(model, messages)

    def encode_debug(self, model: str, text: str) -> EncodeResult:
        """编码文本并返回 ids / count / chunks。"""
        return self._counter.encode_debug(model, text)

    def decode_debug(self, model: str, ids: Sequence[int]) -> DecodeResult:
        """解码 Token ID 列表。"""
        return self._counter.decode_debug(model, ids)

    def encode_named(self, name: str, text: str) -> EncodeResult:
        """使用具名 tokenizer（llama / nerdstash / nerdstash_v2 / mistral / gpt2 / claude）编码。"""
        return self._counter.encode_named(name, text)

    def decode_named(self, name: str, ids: Sequence[int]) -> DecodeResult:
        """使用具名 tokenizer 解码。"""
        return self._counter.decode_named(name, ids)

    def list_legacy_completion_models(self) -> frozenset[str]:
        """返回旧版补全模型目录。"""
        return self._counter.list_legacy_completion_models()

    async def count_remote(self, messages: Sequence[Message]) -> MessageCount:
        """
        通过 AI21 tokenize 接口计数第一条消息的内容。

        空列表或请求失败时返回 0。
        """
        if not messages:
            return MessageCount(token_count=0)
        first = messages[0]
        content = first.get("content") if isinstance(first, Mapping) else None
        text = "" if content is None else str(content)
        return MessageCount(token_count=await self._remote.count(text))

    # ============================================================
    # 生命周期
    # ============================================================

    def warm(self, names: Iterable[str] | None = None) -> dict[str, LoadState]:
        """
        预加载具名 tokenizer（默认取配置项 cache.preload）。

        返回:
            名称 → 加载状态；未知名称不会出现在结果中
        """
        keys: dict[str, BackendKey] = {}
        for name in names if names is not None else self._config.cache.preload:
            key = self._counter.named_key(name)
            if key is None:
                logger.warning("未知的 tokenizer 名称 '%s'，跳过预加载。", name)
                continue
            keys[name] = key
        states = self._cache.warm(keys.values())
        return {name: states[key] for name, key in keys.items()}

    def stats(self) -> dict[str, Any]:
        """返回缓存中每个后端的加载状态，用于健康检查和 CLI 展示。"""
        return {
            "backends": {str(handle.key): handle.state.value for handle in self._cache},
            "chars_per_token": self._config.estimator.chars_per_token,
        }
