"""
CLI 共用工具：输出样式、消息文件读取、TokenForge 构造。
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, NoReturn

import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from token_forge import TokenForge
from token_forge.errors import TokenForgeError

_console: Console | None = None


def create_console() -> Console:
    """子命令共用一个 Console。"""
    global _console
    if _console is None:
        _console = Console()
    return _console


def print_error(message: str, exit_code: int = 1) -> NoReturn:
    """打印错误并以 exit_code 退出。"""
    create_console().print(f"[bold red]X 错误：[/bold red]{message}")
    sys.exit(exit_code)


def print_success(message: str) -> None:
    create_console().print(f"[bold green]OK[/bold green] {message}")


def print_warning(message: str) -> None:
    create_console().print(f"[bold yellow]![/bold yellow] {message}")


def handle_token_forge_error(error: TokenForgeError) -> NoReturn:
    """把 TokenForgeError 的 what / why / how 打印成红框面板并退出 1。"""
    create_console().print(
        Panel(error.full_message, title=type(error).__name__, border_style="red", expand=False)
    )
    sys.exit(1)


def load_messages(file_path: str | Path) -> list[Any]:
    """
    读取消息列表文件。

    .json 按 JSON 解析，其余扩展名按 YAML 解析。根元素可以是消息列表，
    也可以是 {"messages": [...]}。列表中的元素不在这里校验，
    格式不对的消息由计数器跳过。

    异常:
        FileNotFoundError: 文件不存在
        ValueError: 无法解析，或根元素不是消息列表
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"消息文件不存在：{path}")

    try:
        raw = path.read_text(encoding="utf-8")
        data = json.loads(raw) if path.suffix.lower() == ".json" else yaml.safe_load(raw)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"无法解析消息文件 {path}：{e}") from e

    if isinstance(data, dict):
        data = data.get("messages")
    if not isinstance(data, list):
        raise ValueError(f"{path} 的根元素必须是消息列表，或包含 'messages' 列表的字典。")
    return data


def create_forge_from_options(
    config_path: str | None = None,
    debug: bool = False,
) -> TokenForge:
    """按 --config / --verbose 构造 TokenForge；配置错误以 TokenForgeError 抛出。"""
    return TokenForge(
        config_path=Path(config_path) if config_path else None,
        debug=debug,
    )


def create_summary_panel(title: str, content: dict[str, Any]) -> Panel:
    """键值对摘要面板，整数按千分位显示。"""
    lines = [
        f"[bold]{key}:[/bold] {value:,}" if isinstance(value, int) and not isinstance(value, bool)
        else f"[bold]{key}:[/bold] {value}"
        for key, value in content.items()
    ]
    return Panel("\n".join(lines), title=title, border_style="blue", expand=False)


def create_chunk_table(ids: list[int], chunks: list[str]) -> Table:
    """逐 Token 展示 ID 和解码片段。"""
    table = Table(title="Tokens", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("片段", style="white")

    for index, (token_id, chunk) in enumerate(zip(ids, chunks)):
        table.add_row(str(index), str(token_id), repr(chunk))

    return table
