"""
Tokenizer 后端适配器单元测试。

第三方库的加载入口被替换为替身，测试不需要模型文件或网络。

覆盖范围:
- tokenizer/tiktoken_backend.py: TiktokenBackend
- tokenizer/sentencepiece_backend.py: SentencePieceBackend
- tokenizer/vendor_backend.py: VendorBackend
- tokenizer/protocol.py: Backend Protocol
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from token_forge.errors import BackendLoadError, EncodeError
from token_forge.tokenizer import sentencepiece_backend, tiktoken_backend, vendor_backend
from token_forge.tokenizer.protocol import Backend
from token_forge.tokenizer.sentencepiece_backend import SentencePieceBackend
from token_forge.tokenizer.tiktoken_backend import TiktokenBackend
from token_forge.tokenizer.vendor_backend import VendorBackend


# === 第三方库替身 ===


class FakeEncoding:
    """模拟 tiktoken.Encoding。"""

    def __init__(self) -> None:
        self.encode_kwargs: dict[str, Any] = {}

    def encode(self, text: str, **kwargs: Any) -> list[int]:
        self.encode_kwargs = kwargs
        return [ord(ch) for ch in text]

    def decode(self, ids: list[int]) -> str:
        return "".join(chr(i) for i in ids)


class FakeProcessor:
    """模拟 sentencepiece.SentencePieceProcessor。"""

    def __init__(self, model_file: str) -> None:
        self.model_file = model_file

    def encode(self, text: str, out_type: type = int) -> list[Any]:
        return [len(word) for word in text.split()]

    def decode(self, ids: list[int]) -> str:
        if any(i < 0 for i in ids):
            raise IndexError("piece id is out of range.")
        return " ".join("x" * i for i in ids)


class FakeEncodingResult:
    def __init__(self, ids: list[int]) -> None:
        self.ids = ids


class FakeHFTokenizer:
    """模拟 tokenizers.Tokenizer。"""

    @classmethod
    def from_file(cls, path: str) -> FakeHFTokenizer:
        return cls()

    def encode(self, text: str) -> FakeEncodingResult:
        return FakeEncodingResult([ord(ch) for ch in text])

    def decode(self, ids: list[int]) -> str:
        return "".join(chr(i) for i in ids)


# === TiktokenBackend ===


class TestTiktokenBackend:
    """TiktokenBackend 测试。"""

    @pytest.fixture
    def encoding(self, monkeypatch: pytest.MonkeyPatch) -> FakeEncoding:
        encoding = FakeEncoding()
        monkeypatch.setattr(
            tiktoken_backend.tiktoken,
            "encoding_for_model",
            lambda model_name: encoding,
        )
        return encoding

    def test_encode_decode(self, encoding: FakeEncoding) -> None:
        backend = TiktokenBackend("gpt-4")
        assert backend.encode("Hi") == [72, 105]
        assert backend.decode([72, 105]) == "Hi"

    def test_special_tokens_are_plain_text(self, encoding: FakeEncoding) -> None:
        """测试特殊 token 字面量按普通文本编码。"""
        TiktokenBackend("gpt-4").encode("<|endoftext|>")
        assert encoding.encode_kwargs == {"disallowed_special": ()}

    def test_name(self, encoding: FakeEncoding) -> None:
        backend = TiktokenBackend("gpt-3.5-turbo")
        assert backend.name == "tiktoken:gpt-3.5-turbo"
        assert isinstance(backend, Backend)

    def test_unknown_model(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def raise_key_error(model_name: str) -> FakeEncoding:
            raise KeyError(model_name)

        monkeypatch.setattr(tiktoken_backend.tiktoken, "encoding_for_model", raise_key_error)
        with pytest.raises(BackendLoadError) as exc_info:
            TiktokenBackend("not-a-model")
        assert exc_info.value.backend_key == "not-a-model"

    def test_download_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def raise_os_error(model_name: str) -> FakeEncoding:
            raise OSError("network unreachable")

        monkeypatch.setattr(tiktoken_backend.tiktoken, "encoding_for_model", raise_os_error)
        with pytest.raises(BackendLoadError, match="network unreachable"):
            TiktokenBackend("gpt-4")

    def test_encode_non_string(self, encoding: FakeEncoding) -> None:
        with pytest.raises(EncodeError):
            TiktokenBackend("gpt-4").encode(None)  # type: ignore[arg-type]


# === SentencePieceBackend ===


class TestSentencePieceBackend:
    """SentencePieceBackend 测试。"""

    @pytest.fixture
    def model_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        path = tmp_path / "llama.model"
        path.write_bytes(b"\x00")
        monkeypatch.setattr(
            sentencepiece_backend.sentencepiece,
            "SentencePieceProcessor",
            FakeProcessor,
        )
        return path

    def test_encode_decode(self, model_file: Path) -> None:
        backend = SentencePieceBackend(model_file)
        assert backend.encode("ab cde") == [2, 3]
        assert backend.decode([2, 3]) == "xx xxx"

    def test_name(self, model_file: Path) -> None:
        backend = SentencePieceBackend(str(model_file))
        assert backend.name == "sentencepiece:llama"
        assert isinstance(backend, Backend)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(BackendLoadError, match="不存在"):
            SentencePieceBackend(tmp_path / "missing.model")

    def test_corrupt_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "mistral.model"
        path.write_bytes(b"garbage")

        def broken_processor(model_file: str) -> FakeProcessor:
            raise RuntimeError("Internal: could not parse ModelProto")

        monkeypatch.setattr(
            sentencepiece_backend.sentencepiece,
            "SentencePieceProcessor",
            broken_processor,
        )
        with pytest.raises(BackendLoadError) as exc_info:
            SentencePieceBackend(path)
        assert exc_info.value.backend_key == "mistral"

    def test_decode_out_of_range(self, model_file: Path) -> None:
        with pytest.raises(EncodeError):
            SentencePieceBackend(model_file).decode([-5])


# === VendorBackend ===


class TestVendorBackend:
    """VendorBackend 测试。"""

    @pytest.fixture
    def artifact(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        path = tmp_path / "claude.json"
        path.write_text("{}", encoding="utf-8")
        monkeypatch.setattr(vendor_backend, "Tokenizer", FakeHFTokenizer)
        return path

    def test_encode_decode(self, artifact: Path) -> None:
        backend = VendorBackend(artifact)
        assert backend.encode("\n\nHuman: Hi")[-2:] == [72, 105]
        assert backend.decode([72, 105]) == "Hi"

    def test_name(self, artifact: Path) -> None:
        backend = VendorBackend(artifact)
        assert backend.name == "vendor:claude"
        assert isinstance(backend, Backend)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(BackendLoadError) as exc_info:
            VendorBackend(tmp_path / "nope.json")
        assert exc_info.value.backend_key == "claude"

    def test_invalid_json(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "claude.json"
        path.write_text("not json", encoding="utf-8")

        class BrokenTokenizer:
            @classmethod
            def from_file(cls, file_path: str) -> FakeHFTokenizer:
                raise Exception("expected value at line 1 column 1")

        monkeypatch.setattr(vendor_backend, "Tokenizer", BrokenTokenizer)
        with pytest.raises(BackendLoadError, match="解析失败"):
            VendorBackend(path)

    def test_encode_non_string(self, artifact: Path) -> None:
        with pytest.raises(EncodeError):
            VendorBackend(artifact).encode(42)  # type: ignore[arg-type]
