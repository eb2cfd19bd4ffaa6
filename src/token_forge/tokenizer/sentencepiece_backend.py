"""
基于 SentencePiece 的 subword/unigram 后端。

LLaMA、Mistral、NerdStash 系列模型都发布了 SentencePiece 模型文件，
这里按固定路径加载，每个文件在进程内最多加载一次（由 TokenizerCache 保证）。
"""

from __future__ import annotations

from pathlib import Path

import sentencepiece

from token_forge.errors import BackendLoadError, EncodeError


class SentencePieceBackend:
    """
    SentencePiece 后端。

    用法::

        backend = SentencePieceBackend("models/sentencepiece/llama.model")
        ids = backend.encode("Hello")
    """

    def __init__(self, model_path: str | Path) -> None:
        self._model_path = Path(model_path)
        if not self._model_path.is_file():
            raise BackendLoadError(
                what=f"SentencePiece 模型文件 '{self._model_path}' 不存在。",
                why=f"在路径 '{self._model_path.absolute()}' 下未找到该文件。",
                how="检查配置项 subword.* 指向的模型文件路径。",
                backend_key=self._model_path.stem,
            )
        try:
            self._processor = sentencepiece.SentencePieceProcessor(
                model_file=str(self._model_path)
            )
        except (OSError, RuntimeError) as e:
            raise BackendLoadError(
                what=f"SentencePiece 模型文件 '{self._model_path}' 加载失败。",
                why=str(e),
                how="确认文件是有效的 .model 文件且未损坏。",
                backend_key=self._model_path.stem,
            ) from e

    def encode(self, text: str) -> list[int]:
        """将文本编码为 Token ID 列表（不做任何文本清洗）。"""
        if not isinstance(text, str):
            raise EncodeError(
                what=f"无法编码类型为 {type(text).__name__} 的值。",
                why="SentencePiece 只接受字符串输入。",
                backend_key=self.name,
            )
        return list(self._processor.encode(text, out_type=int))

    def decode(self, ids: list[int]) -> str:
        """将 Token ID 列表解码为文本。"""
        try:
            return self._processor.decode([int(i) for i in ids])
        except (IndexError, RuntimeError, TypeError, ValueError) as e:
            raise EncodeError(
                what="Token ID 解码失败。",
                why=str(e),
                backend_key=self.name,
            ) from e

    @property
    def name(self) -> str:
        """后端名称标识。"""
        return f"sentencepiece:{self._model_path.stem}"
