"""
厂商专有 tokenizer 后端（Claude）。

Anthropic 以 HuggingFace tokenizers 的 JSON 格式发布过 Claude 的 tokenizer，
这里用 `tokenizers.Tokenizer.from_file` 加载该文件。
"""

from __future__ import annotations

from pathlib import Path

from tokenizers import Tokenizer

from token_forge.errors import BackendLoadError, EncodeError


class VendorBackend:
    """
    HuggingFace tokenizers JSON 后端。

    用法::

        backend = VendorBackend("models/claude.json")
        ids = backend.encode("\\n\\nHuman: Hello")
    """

    def __init__(self, artifact_path: str | Path) -> None:
        self._artifact_path = Path(artifact_path)
        if not self._artifact_path.is_file():
            raise BackendLoadError(
                what=f"厂商 tokenizer 文件 '{self._artifact_path}' 不存在。",
                why=f"在路径 '{self._artifact_path.absolute()}' 下未找到该文件。",
                how="检查配置项 vendor.path 指向的 JSON 文件路径。",
                backend_key="claude",
            )
        try:
            self._tokenizer = Tokenizer.from_file(str(self._artifact_path))
        except Exception as e:
            raise BackendLoadError(
                what=f"厂商 tokenizer 文件 '{self._artifact_path}' 解析失败。",
                why=str(e),
                how="确认文件是 HuggingFace tokenizers 格式的 JSON。",
                backend_key="claude",
            ) from e

    def encode(self, text: str) -> list[int]:
        """将文本编码为 Token ID 列表。"""
        if not isinstance(text, str):
            raise EncodeError(
                what=f"无法编码类型为 {type(text).__name__} 的值。",
                why="tokenizers 只接受字符串输入。",
                backend_key="claude",
            )
        return list(self._tokenizer.encode(text).ids)

    def decode(self, ids: list[int]) -> str:
        """将 Token ID 列表解码为文本。"""
        try:
            return self._tokenizer.decode([int(i) for i in ids])
        except (TypeError, ValueError, OverflowError) as e:
            raise EncodeError(
                what="Token ID 解码失败。",
                why=str(e),
                backend_key="claude",
            ) from e

    @property
    def name(self) -> str:
        """后端名称标识。"""
        return f"vendor:{self._artifact_path.stem}"
