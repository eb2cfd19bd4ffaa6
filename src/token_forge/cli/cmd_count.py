"""
count 命令 — 计算文本或消息列表的 Token 数量。
"""

from __future__ import annotations

import json

from token_forge.cli.utils import (
    create_console,
    create_forge_from_options,
    create_summary_panel,
    handle_token_forge_error,
    load_messages,
    print_error,
)
from token_forge.errors import TokenForgeError

console = create_console()


def count_command(
    model: str,
    text: str | None = None,
    input_file: str | None = None,
    config: str | None = None,
    format: str = "rich",
    verbose: bool = False,
) -> None:
    """
    计算 Token 数量。

    --text 和 --input 二选一：前者按纯文本计数，后者按消息列表计数（含格式开销）。
    """
    if (text is None) == (input_file is None):
        print_error("请在 --text 和 --input 中指定且只指定一个。")

    try:
        forge = create_forge_from_options(config_path=config, debug=verbose)
    except TokenForgeError as e:
        handle_token_forge_error(e)

    family = forge.resolve_family(model)

    if text is not None:
        result = forge.count_text(model, text)
        payload = {"model": model, "family": family.name, **result.to_dict()}
        summary = {
            "模型": model,
            "家族": family.name,
            "Token 数": result.count,
            "精确计数": "是" if result.ids or not text else "否（估算）",
        }
    else:
        try:
            messages = load_messages(input_file or "")
        except (FileNotFoundError, ValueError) as e:
            print_error(str(e))
        result_messages = forge.count_messages(model, messages)
        payload = {"model": model, "family": family.name, **result_messages.to_dict()}
        summary = {
            "模型": model,
            "家族": family.name,
            "消息数": len(messages),
            "Token 数": result_messages.token_count,
        }

    if format == "json":
        console.print_json(json.dumps(payload, ensure_ascii=False))
    elif format == "text":
        console.print(str(payload.get("count", payload.get("token_count"))))
    else:
        console.print(create_summary_panel("Token 计数", summary))
