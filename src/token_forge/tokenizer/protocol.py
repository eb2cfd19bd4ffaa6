"""
Backend 协议定义。

不同厂商使用完全不同的 tokenizer 实现（BPE、SentencePiece、专有 JSON 格式），
本模块把它们收敛到一个最窄的能力接口：encode / decode。

实现 encode / decode 的任意对象都满足协议，无需继承。
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Backend(Protocol):
    """
    Tokenizer 后端协议。

    内置三种实现：
    - TiktokenBackend：byte-pair，按厂商模型名加载
    - SentencePieceBackend：subword/unigram，加载固定模型文件
    - VendorBackend：厂商专有 tokenizer JSON

    最小实现示例::

        class MyBackend:
            def encode(self, text: str) -> list[int]:
                return [ord(c) for c in text]

            def decode(self, ids: list[int]) -> str:
                return "".join(chr(i) for i in ids)

            @property
            def name(self) -> str:
                return "my_backend"
    """

    def encode(self, text: str) -> list[int]:
        """
        将文本编码为 Token ID 列表。

        异常:
            EncodeError: 输入无法编码（例如不是字符串）
        """
        ...

    def decode(self, ids: list[int]) -> str:
        """
        将 Token ID 列表解码为文本。

        异常:
            EncodeError: ID 无法解码
        """
        ...

    @property
    def name(self) -> str:
        """后端名称标识。"""
        ...
