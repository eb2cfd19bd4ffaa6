"""
测试套件共享 Fixtures 和替身。

真实的 tiktoken / SentencePiece / tokenizers 后端需要模型文件或网络，
单元测试统一使用逐字符编码的 FakeBackend：每个字符一个 Token，
ID 为字符的码点，因此期望值可以直接按字符数心算。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from token_forge import TokenForge
from token_forge.config.schema import RemoteCountConfig, TokenForgeConfig
from token_forge.errors import BackendLoadError, EncodeError
from token_forge.tokenizer.cache import TokenizerCache
from token_forge.tokenizer.counter import TokenCounter


# === 后端替身 ===


class FakeBackend:
    """逐字符编码的假后端。"""

    def __init__(self, source: str) -> None:
        self.source = source

    def encode(self, text: str) -> list[int]:
        if not isinstance(text, str):
            raise EncodeError(
                what=f"无法编码类型为 {type(text).__name__} 的值。",
                backend_key=self.source,
            )
        return [ord(ch) for ch in text]

    def decode(self, ids: list[int]) -> str:
        return "".join(chr(i) for i in ids)

    @property
    def name(self) -> str:
        return f"fake:{self.source}"


class CountingLoader:
    """记录调用次数的加载函数；failing 为真时抛出 BackendLoadError。"""

    def __init__(self, failing: bool = False) -> None:
        self.failing = failing
        self.calls: list[str] = []

    def __call__(self, source: str) -> FakeBackend:
        self.calls.append(source)
        if self.failing:
            raise BackendLoadError(
                what=f"无法加载 '{source}'。",
                why="测试替身被设置为加载失败。",
                backend_key=source,
            )
        return FakeBackend(source)


# === 配置 Fixtures ===


@pytest.fixture(autouse=True)
def _isolate_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """外部环境中的 TOKEN_FORGE_CONFIG 不影响配置发现。"""
    monkeypatch.delenv("TOKEN_FORGE_CONFIG", raising=False)


@pytest.fixture
def config() -> TokenForgeConfig:
    """默认配置，关闭远程计数和预加载。"""
    return TokenForgeConfig(
        remote=RemoteCountConfig(enabled=False),
        cache={"preload": []},
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """一个合法的 YAML 配置文件。"""
    path = tmp_path / "token_forge.yaml"
    path.write_text(
        "version: '1.0'\n"
        "log_level: warning\n"
        "estimator:\n"
        "  chars_per_token: 4.0\n"
        "remote:\n"
        "  enabled: false\n"
        "cache:\n"
        "  preload: []\n",
        encoding="utf-8",
    )
    return path


# === 缓存 / 计数 Fixtures ===


@pytest.fixture
def loaders() -> dict[str, CountingLoader]:
    return {
        "byte_pair": CountingLoader(),
        "subword": CountingLoader(),
        "vendor": CountingLoader(),
    }


@pytest.fixture
def failing_loaders() -> dict[str, CountingLoader]:
    return {
        "byte_pair": CountingLoader(failing=True),
        "subword": CountingLoader(failing=True),
        "vendor": CountingLoader(failing=True),
    }


def make_cache(config: TokenForgeConfig, loaders: dict[str, Any]) -> TokenizerCache:
    return TokenizerCache(
        config,
        byte_pair_loader=loaders["byte_pair"],
        subword_loader=loaders["subword"],
        vendor_loader=loaders["vendor"],
    )


@pytest.fixture
def cache(config: TokenForgeConfig, loaders: dict[str, CountingLoader]) -> TokenizerCache:
    """所有后端都能加载成功的缓存。"""
    return make_cache(config, loaders)


@pytest.fixture
def failing_cache(
    config: TokenForgeConfig,
    failing_loaders: dict[str, CountingLoader],
) -> TokenizerCache:
    """所有后端都加载失败的缓存。"""
    return make_cache(config, failing_loaders)


@pytest.fixture
def counter(cache: TokenizerCache) -> TokenCounter:
    return TokenCounter(cache)


@pytest.fixture
def failing_counter(failing_cache: TokenizerCache) -> TokenCounter:
    return TokenCounter(failing_cache)


@pytest.fixture
def forge(config: TokenForgeConfig, cache: TokenizerCache) -> TokenForge:
    """注入假后端的 TokenForge。"""
    return TokenForge(config=config, cache=cache)


@pytest.fixture
def loader_factory() -> type[CountingLoader]:
    """返回 CountingLoader 类，用于在测试中组合成功 / 失败的加载函数。"""
    return CountingLoader


@pytest.fixture
def cache_factory() -> Any:
    """返回 make_cache 函数。"""
    return make_cache
