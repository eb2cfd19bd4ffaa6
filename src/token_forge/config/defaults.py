"""
默认配置与模型目录。

这里的常量来自各厂商的公开文档和历史行为，不能从 tokenizer 后端推导出来。

路径类默认值可以通过 YAML 配置覆盖，模型目录不能。
"""

from __future__ import annotations

# ============================================================
# 旧版补全模型目录
# 这些模型名按原样精确匹配，各自作为独立的 byte-pair 家族。
# ============================================================

TEXT_COMPLETION_MODELS: tuple[str, ...] = (
    "gpt-3.5-turbo-instruct",
    "gpt-3.5-turbo-instruct-0914",
    "text-davinci-003",
    "text-davinci-002",
    "text-davinci-001",
    "text-curie-001",
    "text-babbage-001",
    "text-ada-001",
    "code-davinci-002",
    "code-davinci-001",
    "code-cushman-002",
    "code-cushman-001",
    "text-davinci-edit-001",
    "code-davinci-edit-001",
    "text-embedding-ada-002",
    "text-similarity-davinci-001",
    "text-similarity-curie-001",
    "text-similarity-babbage-001",
    "text-similarity-ada-001",
    "text-search-davinci-doc-001",
    "text-search-curie-doc-001",
    "text-search-babbage-doc-001",
    "text-search-ada-doc-001",
    "code-search-babbage-code-001",
    "code-search-ada-code-001",
)

# 字符长度估算比率（每个 Token 约 3.35 个 UTF-16 码元）
CHARS_PER_TOKEN = 3.35

# ============================================================
# 模型文件默认路径（相对当前工作目录）
# ============================================================

DEFAULT_SUBWORD_PATHS: dict[str, str] = {
    "llama": "models/sentencepiece/llama.model",
    "nerdstash": "models/sentencepiece/nerdstash.model",
    "nerdstash_v2": "models/sentencepiece/nerdstash_v2.model",
    "mistral": "models/sentencepiece/mistral.model",
}

DEFAULT_VENDOR_PATH = "models/claude.json"

# 远程计数（AI21）
DEFAULT_REMOTE_URL = "https://api.ai21.com/studio/v1/tokenize"
DEFAULT_REMOTE_API_KEY_ENV = "AI21_API_KEY"
DEFAULT_REMOTE_TIMEOUT = 10.0

# ============================================================
# 配置文件发现
# ============================================================

# 环境变量优先于按目录搜索
CONFIG_PATH_ENV = "TOKEN_FORGE_CONFIG"

CONFIG_SEARCH_PATHS: tuple[str, ...] = (
    "token_forge.yaml",
    "token_forge.yml",
    ".token_forge/config.yaml",
)
