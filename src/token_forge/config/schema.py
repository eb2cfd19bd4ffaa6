"""
配置的 Schema 定义与校验。

所有后端路径、估算比率、远程计数参数都通过 YAML 文件定义，
本模块定义 YAML 文件的 Schema 并负责校验。
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from token_forge.config.defaults import (
    CHARS_PER_TOKEN,
    DEFAULT_REMOTE_API_KEY_ENV,
    DEFAULT_REMOTE_TIMEOUT,
    DEFAULT_REMOTE_URL,
    DEFAULT_SUBWORD_PATHS,
    DEFAULT_VENDOR_PATH,
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SubwordModelsConfig(BaseModel):
    """SentencePiece 模型文件路径。"""

    llama: str = Field(default=DEFAULT_SUBWORD_PATHS["llama"], description="LLaMA 模型文件")
    nerdstash: str = Field(
        default=DEFAULT_SUBWORD_PATHS["nerdstash"],
        description="NerdStash 模型文件",
    )
    nerdstash_v2: str = Field(
        default=DEFAULT_SUBWORD_PATHS["nerdstash_v2"],
        description="NerdStash v2 模型文件",
    )
    mistral: str = Field(
        default=DEFAULT_SUBWORD_PATHS["mistral"],
        description="Mistral 模型文件",
    )

    def path_for(self, variant_name: str) -> str:
        """按变体名取路径。"""
        return getattr(self, variant_name)


class VendorTokenizerConfig(BaseModel):
    """厂商专有 tokenizer（Claude）配置。"""

    path: str = Field(default=DEFAULT_VENDOR_PATH, description="tokenizer JSON 文件路径")


class EstimatorConfig(BaseModel):
    """字符长度估算配置。"""

    chars_per_token: float = Field(
        default=CHARS_PER_TOKEN,
        description="每个 Token 对应的字符数",
        gt=0.0,
    )


class RemoteCountConfig(BaseModel):
    """远程计数（AI21 tokenize API）配置。"""

    enabled: bool = Field(default=True, description="是否启用远程计数")
    url: str = Field(default=DEFAULT_REMOTE_URL, description="tokenize 接口地址")
    api_key_env: str = Field(
        default=DEFAULT_REMOTE_API_KEY_ENV,
        description="存放 API Key 的环境变量名",
    )
    timeout_seconds: float = Field(
        default=DEFAULT_REMOTE_TIMEOUT,
        description="请求超时（秒）",
        gt=0.0,
    )


class CacheConfig(BaseModel):
    """Tokenizer 缓存配置。"""

    serialize_backend_calls: bool = Field(
        default=False,
        description="是否对同一后端的 encode/decode 调用加锁串行化",
    )
    preload: list[str] = Field(
        default_factory=lambda: ["claude"],
        description="服务启动时预加载的命名 tokenizer",
    )


class TokenForgeConfig(BaseModel):
    """
    完整配置 — 对应 YAML 配置文件的根结构。

    每个字段都有合理的默认值，遵循"约定优于配置"原则。

    YAML 文件示例::

        version: "1.0"
        subword:
          llama: /srv/models/llama.model
        vendor:
          path: /srv/models/claude.json
        estimator:
          chars_per_token: 3.35
        remote:
          enabled: false
    """

    version: str = Field(default="1.0", description="配置版本")
    log_level: str = Field(default="INFO", description="日志级别")

    subword: SubwordModelsConfig = Field(default_factory=SubwordModelsConfig)
    vendor: VendorTokenizerConfig = Field(default_factory=VendorTokenizerConfig)
    estimator: EstimatorConfig = Field(default_factory=EstimatorConfig)
    remote: RemoteCountConfig = Field(default_factory=RemoteCountConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(
                f"log_level 必须是 {', '.join(_LOG_LEVELS)} 之一，实际为 '{value}'。"
            )
        return upper
