"""
基于字符长度的 Token 估算（Fallback）。

当后端加载失败、编码抛出异常，或计数流程中出现任何未预期错误时使用。
公式固定为 `ceil(UTF-16 码元数 / 3.35)`，保证结果确定、单调、空串为 0。

长度按 UTF-16 码元计（与 JavaScript String.length 相同），不是 Python 字符数。
"""

from __future__ import annotations

import math

from token_forge.config.defaults import CHARS_PER_TOKEN


def utf16_length(text: str) -> int:
    """返回文本的 UTF-16 码元数（BMP 外字符计 2）。"""
    return len(text.encode("utf-16-le")) // 2


def estimate_tokens(text: str, chars_per_token: float = CHARS_PER_TOKEN) -> int:
    """
    估算文本的 Token 数量。

    参数:
        text: 待估算的文本
        chars_per_token: 每个 Token 对应的字符数

    返回:
        估算的 Token 数量
    """
    if not text:
        return 0
    return math.ceil(utf16_length(text) / chars_per_token)


class LengthEstimator:
    """
    字符长度估算器。

    零外部依赖，是所有计数路径的最后一道保障。

    用法::

        estimator = LengthEstimator()
        estimator.estimate("Hello, world!")  # 4
    """

    def __init__(self, chars_per_token: float = CHARS_PER_TOKEN) -> None:
        if chars_per_token <= 0:
            raise ValueError(f"chars_per_token 必须大于 0，实际为 {chars_per_token}")
        self._chars_per_token = chars_per_token

    @property
    def chars_per_token(self) -> float:
        return self._chars_per_token

    def estimate(self, text: str) -> int:
        """估算文本的 Token 数量。"""
        return estimate_tokens(text, self._chars_per_token)

    @property
    def name(self) -> str:
        """估算器名称标识。"""
        return f"length_estimate:{self._chars_per_token}"
