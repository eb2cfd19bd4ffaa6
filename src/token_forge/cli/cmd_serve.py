"""
serve 命令 — 用 uvicorn 运行 Token Forge HTTP API。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from fastapi.routing import APIRoute
from rich.table import Table

from token_forge import __version__
from token_forge.cli.utils import create_console
from token_forge.config.loader import find_config_file

console = create_console()


def _route_table(app: Any) -> Table:
    """列出应用实际注册的 API 路由。"""
    table = Table(title="可用端点", show_header=True, header_style="bold green")
    table.add_column("方法", style="green")
    table.add_column("路径", style="cyan")
    table.add_column("说明")
    for route in app.routes:
        if isinstance(route, APIRoute):
            table.add_row(", ".join(sorted(route.methods)), route.path, route.summary or "")
    return table


def serve_command(
    host: str = "127.0.0.1",
    port: int = 8000,
    config: str | None = None,
    cors: bool = False,
    reload: bool = False,
) -> None:
    """
    启动 HTTP API 服务器。

    示例:

        token-forge serve --port 8080 --config token_forge.yaml --cors
    """
    config_path = Path(config) if config else None
    if config_path is not None and not config_path.is_file():
        console.print(f"[red]配置文件不存在：{config_path}[/red]")
        raise typer.Exit(1)

    import uvicorn

    from token_forge.cli.server import create_app

    app = create_app(
        config_path=str(config_path) if config_path else None,
        enable_cors=cors,
    )

    source = config_path or find_config_file()
    console.print(f"\n[bold cyan]Token Forge API[/bold cyan] [dim]v{__version__}[/dim]")
    console.print(f"  地址：http://{host}:{port}  （文档 /docs）")
    console.print(f"  配置：{source if source else '内置默认值'}")
    console.print(f"  CORS：{'开' if cors else '关'}  热重载：{'开' if reload else '关'}\n")
    console.print(_route_table(app))

    try:
        uvicorn.run(app, host=host, port=port, reload=reload, log_level="info")
    except KeyboardInterrupt:
        console.print("\n[yellow]服务器已停止[/yellow]")
        raise typer.Exit(0) from None
