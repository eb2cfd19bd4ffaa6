"""
基于 tiktoken 的 byte-pair 后端。

tiktoken 是 OpenAI 官方的 tokenizer 库。后端按厂商模型名（如 "gpt-4"、
"gpt-3.5-turbo-0301"、"text-davinci-003"）加载，tiktoken 内部负责
把模型名映射到 cl100k_base / p50k_base / r50k_base 等编码方案。

tiktoken 的 Encoding 对象是线程安全的，可以在并发请求间共享。
"""

from __future__ import annotations

import tiktoken

from token_forge.errors import BackendLoadError, EncodeError


class TiktokenBackend:
    """
    tiktoken byte-pair 后端。

    用法::

        backend = TiktokenBackend("gpt-4")
        ids = backend.encode("Hello, world!")
        text = backend.decode(ids)

    属性:
        model_name: 加载时使用的厂商模型名
    """

    def __init__(self, model_name: str) -> None:
        """
        加载指定模型的编码方案。

        参数:
            model_name: 厂商模型名

        异常:
            BackendLoadError: tiktoken 不认识该模型名，或编码文件获取失败
        """
        self._model_name = model_name
        try:
            self._encoding = tiktoken.encoding_for_model(model_name)
        except KeyError as e:
            raise BackendLoadError(
                what=f"tiktoken 无法为模型 '{model_name}' 选择编码方案。",
                why="该模型名不在 tiktoken 的模型映射表中。",
                how="使用 resolve_family() 解析后的规范模型名，或升级 tiktoken。",
                backend_key=model_name,
            ) from e
        except Exception as e:
            raise BackendLoadError(
                what=f"tiktoken 编码方案加载失败（模型 '{model_name}'）。",
                why=str(e),
                how="检查网络或 TIKTOKEN_CACHE_DIR 中的编码缓存文件。",
                backend_key=model_name,
            ) from e

    def encode(self, text: str) -> list[int]:
        """
        将文本编码为 Token ID 列表。

        特殊 token 字面量（如 "<|endoftext|>"）按普通文本编码，不会抛出异常。
        """
        if not isinstance(text, str):
            raise EncodeError(
                what=f"无法编码类型为 {type(text).__name__} 的值。",
                why="tiktoken 只接受字符串输入。",
                backend_key=self._model_name,
            )
        return self._encoding.encode(text, disallowed_special=())

    def decode(self, ids: list[int]) -> str:
        """将 Token ID 列表解码为文本（非法 UTF-8 字节替换为 U+FFFD）。"""
        try:
            return self._encoding.decode(list(ids))
        except (KeyError, ValueError, TypeError) as e:
            raise EncodeError(
                what="Token ID 解码失败。",
                why=str(e),
                backend_key=self._model_name,
            ) from e

    @property
    def name(self) -> str:
        """后端名称标识。"""
        return f"tiktoken:{self._model_name}"
