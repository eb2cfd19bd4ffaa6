"""
Token Forge CLI — 命令行工具。

提供完整的 CLI 工具链，包括：
- resolve: 查看模型解析结果
- count: 计算文本或消息列表的 Token 数量
- encode / decode: 调试 Token 切分
- models: 列出旧版补全模型
- validate: 校验配置文件
- serve: HTTP API 服务器
"""

from token_forge.cli.app import app, main

__all__ = ["app", "main"]
