"""
结构化异常：每条错误给出 what（发生了什么）、why（原因）、how（修复建议）。

计数路径上的异常（加载失败、编码失败）永远不会越过核心边界：
TokenCounter 会捕获它们并降级为字符长度估算。
配置相关异常发生在组装阶段，会正常向调用方抛出。

示例::

    BackendLoadError(
        what="Tokenizer 'llama' 加载失败。",
        why="模型文件 'models/sentencepiece/llama.model' 不存在。",
        how="检查配置项 subword.llama 指向的路径。",
        backend_key="subword:llama",
    )
"""

from __future__ import annotations

from typing import Any


class TokenForgeError(Exception):
    """
    Token Forge 异常基类。

    属性:
        what: 发生了什么
        why: 为什么发生
        how: 怎么修复
        details: 额外的上下文信息（用于调试）
    """

    def __init__(
        self,
        what: str,
        why: str = "",
        how: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.what = what
        self.why = why
        self.how = how
        self.details = details or {}

        parts = [what]
        if why:
            parts.append(f"→ 原因：{why}")
        if how:
            parts.append(f"→ 修复建议：{how}")

        self.full_message = "\n".join(parts)
        super().__init__(self.full_message)

    def __str__(self) -> str:
        return self.full_message

    def to_dict(self) -> dict[str, Any]:
        """转换为字典格式，用于 JSON API 响应。"""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "what": self.what,
        }
        if self.why:
            result["why"] = self.why
        if self.how:
            result["how"] = self.how
        if self.details:
            result["details"] = self.details
        return result


class _ContextualError(TokenForgeError):
    """带一个具名上下文字段的异常；该字段同时写入属性和 details。"""

    context_field = ""

    def __init__(self, what: str, why: str = "", how: str = "", **context: Any) -> None:
        value = context.pop(self.context_field, "")
        details = {self.context_field: value, **context}
        super().__init__(what=what, why=why, how=how, details=details)
        setattr(self, self.context_field, value)


# === Tokenizer 后端 ===


class BackendLoadError(_ContextualError):
    """
    后端加载失败：模型文件缺失或损坏，或 tiktoken 不认识该模型名。

    TokenizerCache 捕获后把句柄置为 LOAD_FAILED，之后不再重试。
    """

    context_field = "backend_key"
    backend_key: str


class EncodeError(_ContextualError):
    """编码 / 解码失败。消息计数时跳过该条消息，文本计数时回退到估算。"""

    context_field = "backend_key"
    backend_key: str


# === 配置 ===


class ConfigLoadError(_ContextualError):
    """配置文件不存在、不可读或不是 YAML 字典。"""

    context_field = "file_path"
    file_path: str


class ConfigValidationError(_ContextualError):
    """配置字段校验失败，why 中逐行列出出错字段。"""

    context_field = "config_path"
    config_path: str
