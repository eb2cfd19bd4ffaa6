"""
Tokenizer 缓存 — 保证每个后端在进程内最多加载一次。

加载 SentencePiece 模型或 tiktoken 编码文件都是昂贵的 I/O，
缓存把每个 BackendKey 映射到一个 TokenizerHandle：

    UNLOADED ──加载成功──▶ LOADED
        │
        └──────加载失败──▶ LOAD_FAILED（终态，不再重试）

缓存由 TokenForge 持有并显式传递，没有模块级单例。

并发：同一个 key 的首次并发请求只会触发一次加载（per-key 锁 + 双重检查）。
缓存无上限，byte-pair 模型名来自有限的厂商目录。
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from token_forge.config.schema import SubwordModelsConfig, TokenForgeConfig
from token_forge.errors import BackendLoadError
from token_forge.tokenizer.protocol import Backend

logger = logging.getLogger(__name__)


class BackendKind(str, Enum):
    """后端类型。"""

    BYTE_PAIR = "byte_pair"
    SUBWORD = "subword"
    VENDOR = "vendor"


VENDOR_KEY_NAME = "claude"


@dataclass(frozen=True)
class BackendKey:
    """
    后端缓存键。

    subword 键是四个固定变体名之一，vendor 键固定为 "claude"，
    byte-pair 键是任意厂商模型名。
    """

    kind: BackendKind
    name: str

    @classmethod
    def byte_pair(cls, model_name: str) -> BackendKey:
        return cls(BackendKind.BYTE_PAIR, model_name)

    @classmethod
    def subword(cls, variant_name: str) -> BackendKey:
        return cls(BackendKind.SUBWORD, variant_name)

    @classmethod
    def vendor(cls) -> BackendKey:
        return cls(BackendKind.VENDOR, VENDOR_KEY_NAME)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.name}"


class LoadState(str, Enum):
    """句柄加载状态。"""

    UNLOADED = "unloaded"
    LOADED = "loaded"
    LOAD_FAILED = "load_failed"


@dataclass
class TokenizerHandle:
    """
    缓存持有的后端句柄。

    属性:
        key: 缓存键
        state: 当前加载状态
        backend: 加载成功后的后端实例，其余状态为 None
        error: 加载失败时的异常
    """

    key: BackendKey
    state: LoadState = LoadState.UNLOADED
    backend: Backend | None = None
    error: Exception | None = None
    serialize_calls: bool = False
    _call_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def available(self) -> bool:
        return self.state is LoadState.LOADED and self.backend is not None

    def guard(self) -> contextlib.AbstractContextManager[object]:
        """
        返回包裹 encode/decode 调用的上下文管理器。

        开启 serialize_calls 时对同一后端的调用加锁串行化，否则不加锁。
        """
        if self.serialize_calls:
            return self._call_lock
        return contextlib.nullcontext()


BackendLoader = Callable[[str], Backend]


class TokenizerCache:
    """
    进程级 Tokenizer 缓存。

    用法::

        cache = TokenizerCache(config)
        handle = cache.get(BackendKey.byte_pair("gpt-4"))
        if handle.available:
            ids = handle.backend.encode("Hello")

    加载函数可以注入，测试中用计数替身验证"只加载一次"。
    """

    def __init__(
        self,
        config: TokenForgeConfig | None = None,
        byte_pair_loader: BackendLoader | None = None,
        subword_loader: BackendLoader | None = None,
        vendor_loader: BackendLoader | None = None,
    ) -> None:
        """
        初始化缓存。

        参数:
            config: 配置（提供模型文件路径和串行化开关）
            byte_pair_loader: 按模型名加载 byte-pair 后端
            subword_loader: 按模型文件路径加载 subword 后端
            vendor_loader: 按文件路径加载厂商后端
        """
        self._config = config if config is not None else TokenForgeConfig()
        self._loaders: dict[BackendKind, BackendLoader] = {
            BackendKind.BYTE_PAIR: byte_pair_loader or _load_tiktoken,
            BackendKind.SUBWORD: subword_loader or _load_sentencepiece,
            BackendKind.VENDOR: vendor_loader or _load_vendor,
        }
        self._handles: dict[BackendKey, TokenizerHandle] = {}
        self._key_locks: dict[BackendKey, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def get(self, key: BackendKey) -> TokenizerHandle:
        """
        获取指定键的句柄，首次调用时加载后端。

        加载失败不会抛出异常，而是返回 LOAD_FAILED 状态的句柄；
        同一个 key 之后的所有调用都直接返回这个失败句柄。
        """
        handle = self._handles.get(key)
        if handle is not None:
            return handle

        with self._registry_lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            handle = self._handles.get(key)
            if handle is not None:
                return handle
            handle = self._load(key)
            with self._registry_lock:
                self._handles[key] = handle
            return handle

    def peek(self, key: BackendKey) -> TokenizerHandle | None:
        """查看已有句柄，不触发加载。"""
        return self._handles.get(key)

    def warm(self, keys: Iterable[BackendKey]) -> dict[BackendKey, LoadState]:
        """预加载一组后端，返回每个键的最终状态。"""
        return {key: self.get(key).state for key in keys}

    def keys(self) -> list[BackendKey]:
        with self._registry_lock:
            return list(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[TokenizerHandle]:
        return iter(list(self._handles.values()))

    def _load(self, key: BackendKey) -> TokenizerHandle:
        handle = TokenizerHandle(
            key=key,
            serialize_calls=self._config.cache.serialize_backend_calls,
        )
        try:
            handle.backend = self._loaders[key.kind](self._source_for(key))
        except BackendLoadError as e:
            handle.state = LoadState.LOAD_FAILED
            handle.error = e
            logger.warning("Tokenizer '%s' 加载失败，后续请求将使用估算值。%s", key, e)
            return handle
        except Exception as e:
            handle.state = LoadState.LOAD_FAILED
            handle.error = e
            logger.warning(
                "Tokenizer '%s' 加载时出现未预期的错误，后续请求将使用估算值。错误：%s",
                key,
                e,
            )
            return handle

        handle.state = LoadState.LOADED
        logger.info("已加载 tokenizer：%s", key)
        return handle

    def _source_for(self, key: BackendKey) -> str:
        """把键翻译成加载函数的参数：模型名或文件路径。"""
        if key.kind is BackendKind.SUBWORD:
            if key.name not in SubwordModelsConfig.model_fields:
                raise BackendLoadError(
                    what=f"未知的 SentencePiece 变体 '{key.name}'。",
                    how=f"可用变体：{', '.join(SubwordModelsConfig.model_fields)}。",
                    backend_key=str(key),
                )
            return self._config.subword.path_for(key.name)
        if key.kind is BackendKind.VENDOR:
            return self._config.vendor.path
        return key.name


def _load_tiktoken(model_name: str) -> Backend:
    from token_forge.tokenizer.tiktoken_backend import TiktokenBackend

    return TiktokenBackend(model_name)


def _load_sentencepiece(model_path: str) -> Backend:
    from token_forge.tokenizer.sentencepiece_backend import SentencePieceBackend

    return SentencePieceBackend(model_path)


def _load_vendor(artifact_path: str) -> Backend:
    from token_forge.tokenizer.vendor_backend import VendorBackend

    return VendorBackend(artifact_path)
