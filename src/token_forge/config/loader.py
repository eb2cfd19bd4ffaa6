"""
配置文件发现、加载与校验。

查找顺序：显式路径 > 环境变量 TOKEN_FORGE_CONFIG > 当前目录下的
token_forge.yaml / token_forge.yml / .token_forge/config.yaml > 内置默认值。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from token_forge.config.defaults import CONFIG_PATH_ENV, CONFIG_SEARCH_PATHS
from token_forge.config.schema import TokenForgeConfig
from token_forge.errors import ConfigLoadError, ConfigValidationError

logger = logging.getLogger(__name__)


def find_config_file(base_dir: str | Path | None = None) -> Path | None:
    """
    定位要使用的配置文件，找不到时返回 None。

    环境变量指向的文件即使不存在也会原样返回，由加载阶段报错。
    """
    from_env = os.environ.get(CONFIG_PATH_ENV)
    if from_env:
        return Path(from_env)

    root = Path(base_dir) if base_dir is not None else Path.cwd()
    for candidate in CONFIG_SEARCH_PATHS:
        path = root / candidate
        if path.is_file():
            return path
    return None


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> TokenForgeConfig:
    """
    加载并校验配置。

    参数:
        path: YAML 文件路径，None 时按 find_config_file() 的顺序查找
        overrides: 运行时覆盖项，深度合并到文件内容之上

    异常:
        ConfigLoadError: 文件不存在、不可读或不是 YAML 字典
        ConfigValidationError: 字段校验失败
    """
    source = Path(path) if path is not None else find_config_file()

    if source is None:
        logger.info("未找到配置文件，使用内置默认值。")
        raw: dict[str, Any] = {}
    else:
        logger.info("加载配置文件：%s", source)
        raw = _read_mapping(source)

    if overrides:
        raw = _deep_merge(raw, overrides)

    return _build(raw, str(source) if source is not None else "<default>")


def validate_config_file(path: str | Path) -> list[str]:
    """校验配置文件，不抛异常；返回错误信息列表，空列表表示通过。"""
    try:
        load_config(path=path)
    except (ConfigLoadError, ConfigValidationError) as e:
        return [e.full_message]
    return []


def _read_mapping(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigLoadError(
            what=f"配置文件 '{path}' 不存在。",
            why=f"在路径 '{path.absolute()}' 下未找到该文件。",
            how=f"检查路径或环境变量 {CONFIG_PATH_ENV}，或不指定配置以使用内置默认值。",
            file_path=str(path),
        )

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigLoadError(
            what=f"无法读取配置文件 '{path}'。",
            why=str(e),
            how="检查文件权限，文件需为 UTF-8 编码。",
            file_path=str(path),
        ) from e
    except yaml.YAMLError as e:
        raise ConfigLoadError(
            what=f"配置文件 '{path}' 不是合法的 YAML。",
            why=str(e),
            how="修正报错位置附近的缩进或括号。",
            file_path=str(path),
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(
            what=f"配置文件 '{path}' 的根元素必须是字典。",
            why=f"实际类型为 {type(data).__name__}。",
            how="根元素写成 subword / vendor / estimator / remote / cache 等分节，例如：\n"
                "  estimator:\n"
                "    chars_per_token: 3.35",
            file_path=str(path),
        )
    return data


def _build(raw: dict[str, Any], source: str) -> TokenForgeConfig:
    try:
        return TokenForgeConfig(**raw)
    except ValidationError as e:
        problems = [
            f"  字段 '{' → '.join(str(loc) for loc in err['loc'])}': {err['msg']}"
            for err in e.errors()
        ]
        raise ConfigValidationError(
            what=f"配置 '{source}' 校验失败（{len(problems)} 个错误）。",
            why="\n".join(problems),
            how="修正上述字段后运行 'token-forge validate <path>' 确认。",
            config_path=source,
        ) from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged
