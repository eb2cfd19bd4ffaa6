"""
把消息列表转换成 Claude 文本补全接口的单一 prompt 格式。

    \\n\\nHuman: 你好\\n\\nAssistant: 你好！有什么可以帮你？

system 消息没有专门的标记；few-shot 示例用 H: / A: 缩写区分。
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

HUMAN_PREFIX = "\n\nHuman: "
ASSISTANT_PREFIX = "\n\nAssistant: "

_ROLE_PREFIXES = {
    "assistant": ASSISTANT_PREFIX,
    "user": HUMAN_PREFIX,
}

_SYSTEM_NAME_PREFIXES = {
    "example_assistant": "\n\nA: ",
    "example_user": "\n\nH: ",
}


def _prefix_for(message: Mapping[str, Any]) -> str:
    role = message.get("role")
    if role == "system":
        return _SYSTEM_NAME_PREFIXES.get(message.get("name") or "", "\n\n")
    return _ROLE_PREFIXES.get(role or "", "")


def _content_of(message: Mapping[str, Any]) -> str:
    content = message.get("content")
    return "" if content is None else str(content)


def to_vendor_prompt(
    messages: Iterable[Mapping[str, Any]],
    add_human_prefix: bool = False,
    add_assistant_postfix: bool = False,
) -> str:
    """
    转换消息列表为单一 prompt 字符串。

    参数:
        messages: 消息列表
        add_human_prefix: 是否在开头补一个 Human 标记
        add_assistant_postfix: 是否在结尾补一个 Assistant 标记（引导回复）

    返回:
        prompt 字符串
    """
    prompt = "".join(
        _prefix_for(message) + _content_of(message) for message in messages
    )
    if add_human_prefix:
        prompt = HUMAN_PREFIX + prompt
    if add_assistant_postfix:
        prompt = prompt + ASSISTANT_PREFIX
    return prompt
