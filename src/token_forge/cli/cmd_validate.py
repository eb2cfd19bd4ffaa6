"""
validate 命令 — 校验配置文件。

支持：
- YAML 语法与字段校验
- 模型文件存在性检查（缺失时只警告，计数会降级为估算）
"""

from __future__ import annotations

import sys
from pathlib import Path

from rich.panel import Panel

from token_forge.cli.utils import create_console, print_error, print_success
from token_forge.config.loader import load_config, validate_config_file

console = create_console()


def validate_command(path: str = "token_forge.yaml", strict: bool = False) -> None:
    """
    校验 YAML 配置文件的语法和语义正确性。

    使用 --strict 可将警告也视为错误（CI 流程中推荐）。
    """
    path_obj = Path(path)

    if not path_obj.exists():
        print_error(f"文件不存在：{path}")

    console.print(f"[bold]校验配置文件：[/bold] {path}\n")

    errors = validate_config_file(path_obj)
    if errors:
        console.print(Panel(
            "\n".join(f"[red]X[/red] {err}" for err in errors),
            title=f"[bold red]校验失败（{len(errors)} 个错误）[/bold red]",
            border_style="red",
        ))
        sys.exit(1)

    warnings = _missing_model_files(path_obj)
    if warnings:
        console.print(Panel(
            "\n".join(f"[yellow]![/yellow] {w}" for w in warnings),
            title=f"[bold yellow]警告（{len(warnings)} 条）[/bold yellow]",
            border_style="yellow",
        ))
        if strict:
            console.print("\n[bold red]严格模式下警告视为错误。[/bold red]")
            sys.exit(1)

    print_success(f"{path} 校验通过")
    if warnings:
        console.print(f"[dim]（有 {len(warnings)} 条警告，对应模型将使用估算值）[/dim]")


def _missing_model_files(path: Path) -> list[str]:
    """列出配置中指向不存在文件的模型路径。"""
    config = load_config(path=path)
    candidates = {
        f"subword.{name}": config.subword.path_for(name)
        for name in type(config.subword).model_fields
    }
    candidates["vendor.path"] = config.vendor.path

    return [
        f"{field} 指向的模型文件不存在：{model_path}"
        for field, model_path in candidates.items()
        if not Path(model_path).exists()
    ]
