"""
聊天消息的格式开销规则。

Chat Completion 接口在消息内容之外还会注入分隔符和角色标记，
这些额外 Token 由厂商在文档中给出，tokenizer 后端无法报告，只能硬编码。

参考：https://cookbook.openai.com/examples/how_to_count_tokens_with_tiktoken
"""

from __future__ import annotations

from dataclasses import dataclass

LEGACY_CHAT_MARKER = "gpt-3.5-turbo-0301"


@dataclass(frozen=True)
class FramingRule:
    """
    一个家族的格式开销常量。

    属性:
        tokens_per_message: 每条消息的固定开销
        tokens_per_name: 出现 name 字段时的额外开销（可为负）
        tokens_padding: 回复引导的固定开销（整个请求一次）
        surcharge: 历史遗留的额外开销（整个请求一次）
    """

    tokens_per_message: int
    tokens_per_name: int
    tokens_padding: int = 3
    surcharge: int = 0


STANDARD_RULE = FramingRule(tokens_per_message=3, tokens_per_name=1)

# gpt-3.5-turbo-0301：name 字段取代 role，所以 tokens_per_name 为 -1。
# 自 2023-10-14 起该模型每个请求额外多出 7~9 个 Token，按 9 计。
# https://community.openai.com/t/gpt-3-5-turbo-0301-showing-different-behavior-suddenly/431326/14
LEGACY_CHAT_RULE = FramingRule(tokens_per_message=4, tokens_per_name=-1, surcharge=9)


def framing_rule_for(requested_model: str) -> FramingRule:
    """按调用方传入的原始模型名（解析前）选择格式开销规则。"""
    if LEGACY_CHAT_MARKER in requested_model:
        return LEGACY_CHAT_RULE
    return STANDARD_RULE
