"""
resolve / encode / decode / models 命令 — 查看模型解析结果和 Token 切分。
"""

from __future__ import annotations

import json

from rich.table import Table

from token_forge import TokenForge
from token_forge.cli.utils import (
    create_chunk_table,
    create_console,
    create_forge_from_options,
    create_summary_panel,
    handle_token_forge_error,
    print_warning,
)
from token_forge.errors import TokenForgeError
from token_forge.tokenizer.resolver import backend_key_for

console = create_console()


def _forge(config: str | None, verbose: bool = False) -> TokenForge:
    try:
        return create_forge_from_options(config_path=config, debug=verbose)
    except TokenForgeError as e:
        handle_token_forge_error(e)


def resolve_command(model: str, config: str | None = None, format: str = "rich") -> None:
    """显示模型名解析到的 tokenizer 家族和缓存键。"""
    forge = _forge(config)
    family = forge.resolve_family(model)
    key = backend_key_for(family)

    payload = {
        "model": model,
        "family": family.name,
        "kind": family.kind.value,
        "backend_key": str(key),
        "legacy_completion": model in forge.list_legacy_completion_models(),
    }

    if format == "json":
        console.print_json(json.dumps(payload, ensure_ascii=False))
        return

    console.print(create_summary_panel("模型解析", {
        "模型": model,
        "家族": family.name,
        "类型": family.kind.value,
        "缓存键": str(key),
        "旧版补全模型": "是" if payload["legacy_completion"] else "否",
    }))


def encode_command(
    model: str,
    text: str,
    config: str | None = None,
    format: str = "rich",
    verbose: bool = False,
) -> None:
    """
    编码文本并逐 Token 展示。

    后端不可用时结果为空，只打印警告，不视为错误。
    """
    forge = _forge(config, verbose)
    result = forge.encode_debug(model, text)

    if format == "json":
        console.print_json(json.dumps(result.to_dict(), ensure_ascii=False))
        return

    if not result.ids and text:
        print_warning(f"模型 '{model}' 的 tokenizer 不可用，无法展示 Token 切分。")
        return

    console.print(create_summary_panel("编码结果", {
        "模型": model,
        "家族": forge.resolve_family(model).name,
        "Token 数": result.count,
    }))
    console.print(create_chunk_table(result.ids, result.chunks))


def decode_command(
    model: str,
    ids: list[int],
    config: str | None = None,
    format: str = "rich",
    verbose: bool = False,
) -> None:
    """解码 Token ID 列表。"""
    forge = _forge(config, verbose)
    result = forge.decode_debug(model, ids)

    if format == "json":
        console.print_json(json.dumps(result.to_dict(), ensure_ascii=False))
        return

    if not result.text and ids:
        print_warning(f"模型 '{model}' 的 tokenizer 不可用，无法解码。")
        return

    console.print(result.text, markup=False, highlight=False)


def models_command(format: str = "rich") -> None:
    """列出按原名精确匹配的旧版补全模型目录。"""
    from token_forge.tokenizer.resolver import list_legacy_completion_models

    models = sorted(list_legacy_completion_models())

    if format == "json":
        console.print_json(json.dumps({"models": models}))
        return

    table = Table(
        title=f"旧版补全模型（{len(models)} 个）",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("模型", style="cyan")
    for index, name in enumerate(models, start=1):
        table.add_row(str(index), name)

    console.print(table)
