"""
Token Forge CLI — 命令行工具入口。

提供 resolve / count / encode / decode / models / validate / serve 子命令。

用法::

    token-forge --help
    token-forge resolve gpt-4-0613
    token-forge count -m gpt-3.5-turbo --text "Hello"
    token-forge count -m claude-2 --input messages.json
    token-forge encode -m llama-2-7b "Hello world"
    token-forge decode -m gpt-4 9906 1917
    token-forge validate token_forge.yaml
    token-forge serve --port 8080
"""

from __future__ import annotations

import typer

from token_forge.cli.utils import create_console

# 创建主应用
app = typer.Typer(
    name="token-forge",
    help="Token Forge — 多后端 Token 计数引擎 CLI",
    add_completion=False,
    no_args_is_help=True,
)

console = create_console()


# ============================================================
# 子命令注册
# ============================================================

@app.command(name="resolve")
def resolve(
    model: str = typer.Argument(..., help="模型名称"),
    config: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="配置文件路径（默认自动搜索）",
    ),
    format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="输出格式：rich（Rich 面板）/ json",
    ),
) -> None:
    """显示模型名解析到的 tokenizer 家族。"""
    from token_forge.cli.cmd_inspect import resolve_command
    resolve_command(model=model, config=config, format=format)


@app.command(name="count")
def count(
    model: str = typer.Option(
        "gpt-3.5-turbo",
        "--model",
        "-m",
        help="目标模型名称",
    ),
    text: str | None = typer.Option(
        None,
        "--text",
        "-t",
        help="待计数的纯文本",
    ),
    input_file: str | None = typer.Option(
        None,
        "--input",
        "-i",
        help="消息列表文件路径（JSON 或 YAML）",
    ),
    config: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="配置文件路径（默认自动搜索）",
    ),
    format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="输出格式：text（仅数字）/ json / rich（Rich 面板）",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="详细输出（显示调试信息）",
    ),
) -> None:
    """计算文本或消息列表的 Token 数量。"""
    from token_forge.cli.cmd_count import count_command
    count_command(
        model=model,
        text=text,
        input_file=input_file,
        config=config,
        format=format,
        verbose=verbose,
    )


@app.command(name="encode")
def encode(
    text: str = typer.Argument(..., help="待编码文本"),
    model: str = typer.Option(
        "gpt-3.5-turbo",
        "--model",
        "-m",
        help="目标模型名称",
    ),
    config: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="配置文件路径（默认自动搜索）",
    ),
    format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="输出格式：rich（逐 Token 表格）/ json",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="详细输出（显示调试信息）",
    ),
) -> None:
    """编码文本并逐 Token 展示切分结果。"""
    from token_forge.cli.cmd_inspect import encode_command
    encode_command(model=model, text=text, config=config, format=format, verbose=verbose)


@app.command(name="decode")
def decode(
    ids: list[int] = typer.Argument(..., help="Token ID 列表"),
    model: str = typer.Option(
        "gpt-3.5-turbo",
        "--model",
        "-m",
        help="目标模型名称",
    ),
    config: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="配置文件路径（默认自动搜索）",
    ),
    format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="输出格式：rich（纯文本）/ json",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="详细输出（显示调试信息）",
    ),
) -> None:
    """把 Token ID 列表解码为文本。"""
    from token_forge.cli.cmd_inspect import decode_command
    decode_command(model=model, ids=ids, config=config, format=format, verbose=verbose)


@app.command(name="models")
def models(
    format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="输出格式：rich（表格）/ json",
    ),
) -> None:
    """列出按原名精确匹配的旧版补全模型。"""
    from token_forge.cli.cmd_inspect import models_command
    models_command(format=format)


@app.command(name="validate")
def validate(
    path: str = typer.Argument(
        "token_forge.yaml",
        help="YAML 配置文件路径",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="严格模式：将警告（如模型文件缺失）视为错误",
    ),
) -> None:
    """校验 YAML 配置文件。"""
    from token_forge.cli.cmd_validate import validate_command
    validate_command(path=path, strict=strict)


@app.command(name="serve")
def serve(
    host: str = typer.Option(
        "127.0.0.1",
        "--host",
        "-h",
        help="监听地址",
    ),
    port: int = typer.Option(
        8000,
        "--port",
        "-p",
        help="监听端口",
    ),
    config: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="配置文件路径（默认自动搜索）",
    ),
    cors: bool = typer.Option(
        False,
        "--cors",
        help="启用 CORS（跨域资源共享）",
    ),
    reload: bool = typer.Option(
        False,
        "--reload",
        help="启用热重载（开发模式）",
    ),
) -> None:
    """启动 HTTP API 服务器。"""
    from token_forge.cli.cmd_serve import serve_command
    serve_command(host=host, port=port, config=config, cors=cors, reload=reload)


@app.command(name="version")
def version() -> None:
    """显示版本信息。"""
    from token_forge import __version__
    console.print(f"Token Forge v{__version__}")


# ============================================================
# CLI 入口点
# ============================================================

def main() -> None:
    """CLI 入口点。"""
    app()


if __name__ == "__main__":
    main()
