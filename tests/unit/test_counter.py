"""
Token 计数服务单元测试。

FakeBackend 每个字符一个 Token，期望值按字符数计算。

覆盖范围:
- tokenizer/counter.py: TokenCounter
  - count_text(): 精确计数与估算降级
  - count_messages(): byte-pair 格式开销、subword 拼接、Claude prompt、异常降级
  - encode_debug() / decode_debug() / encode_named() / decode_named()
"""

from __future__ import annotations

import json
from typing import Any

import pytest

from token_forge.tokenizer.cache import BackendKey, LoadState
from token_forge.tokenizer.counter import (
    DecodeResult,
    EncodeResult,
    MessageCount,
    TextCount,
    TokenCounter,
)
from token_forge.tokenizer.fallback import LengthEstimator, estimate_tokens


def _payload_estimate(messages: Any) -> int:
    return estimate_tokens(json.dumps(messages, ensure_ascii=False, separators=(",", ":")))


# === count_text ===


class TestCountText:
    """count_text() 测试。"""

    def test_exact_count(self, counter: TokenCounter) -> None:
        result = counter.count_text("gpt-4", "Hello")
        assert result == TextCount(ids=[72, 101, 108, 108, 111], count=5)

    def test_empty_text(self, counter: TokenCounter) -> None:
        assert counter.count_text("gpt-4", "") == TextCount(ids=[], count=0)

    def test_fallback_when_backend_unavailable(self, failing_counter: TokenCounter) -> None:
        """测试后端加载失败时返回估算值，ids 为空。"""
        text = "x" * 100
        result = failing_counter.count_text("llama-2-7b", text)
        assert result.ids == []
        assert result.count == estimate_tokens(text) == 30

    def test_fallback_when_encode_raises(self, counter: TokenCounter) -> None:
        """测试编码抛出异常时整体回退到估算。"""
        result = counter.count_text("gpt-4", 12345)  # type: ignore[arg-type]
        assert result.ids == []
        assert result.count == estimate_tokens("12345")

    def test_custom_estimator(self, failing_cache: Any) -> None:
        counter = TokenCounter(failing_cache, estimator=LengthEstimator(4.0))
        assert counter.count_text("gpt-4", "abcdefgh").count == 2

    def test_family_shares_backend(self, counter: TokenCounter, loaders: dict[str, Any]) -> None:
        """测试同一家族的不同模型名只加载一次后端。"""
        counter.count_text("gpt-4-0613", "a")
        counter.count_text("gpt-4-0314", "b")
        assert loaders["byte_pair"].calls == ["gpt-4"]

    def test_to_dict(self, counter: TokenCounter) -> None:
        assert counter.count_text("gpt-4", "Hi").to_dict() == {"ids": [72, 105], "count": 2}


# === count_messages ===


class TestCountMessagesBytePair:
    """byte-pair 家族的消息计数测试。"""

    def test_standard_framing(self, counter: TokenCounter) -> None:
        """3（每条消息）+ 4（"user"）+ 2（"Hi"）+ 3（回复引导）。"""
        messages = [{"role": "user", "content": "Hi"}]
        assert counter.count_messages("gpt-4", messages) == MessageCount(token_count=12)

    def test_legacy_0301_framing(self, counter: TokenCounter) -> None:
        """4 + len("user") + len("Hi") + 3 + 9。"""
        messages = [{"role": "user", "content": "Hi"}]
        assert counter.count_messages("gpt-3.5-turbo-0301", messages).token_count == 4 + 4 + 2 + 3 + 9

    def test_name_field_standard(self, counter: TokenCounter) -> None:
        messages = [{"role": "user", "name": "bob", "content": "Hi"}]
        # 3 + 4 + 3 + 1（name）+ 2 + 3
        assert counter.count_messages("gpt-4", messages).token_count == 16

    def test_name_field_legacy(self, counter: TokenCounter) -> None:
        messages = [{"role": "user", "name": "bob", "content": "Hi"}]
        # 4 + 4 + 3 - 1（name）+ 2 + 3 + 9
        assert counter.count_messages("gpt-3.5-turbo-0301", messages).token_count == 24

    def test_empty_messages(self, counter: TokenCounter) -> None:
        assert counter.count_messages("gpt-4", []).token_count == 3
        assert counter.count_messages("gpt-3.5-turbo-0301", []).token_count == 12

    def test_multiple_messages(self, counter: TokenCounter) -> None:
        messages = [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello"},
        ]
        expected = (3 + 6 + 9) + (3 + 4 + 2) + (3 + 9 + 5) + 3
        assert counter.count_messages("gpt-3.5-turbo", messages).token_count == expected

    def test_framing_uses_requested_name(self, counter: TokenCounter) -> None:
        """测试格式开销规则依据调用方传入的原始模型名。"""
        messages = [{"role": "user", "content": "Hi"}]
        legacy = counter.count_messages("azure-gpt-3.5-turbo-0301-deploy", messages)
        assert legacy.token_count == 22

    def test_malformed_message_is_skipped(
        self,
        counter: TokenCounter,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """测试内容不是文本的消息整条跳过，其余消息继续计数。"""
        messages = [
            {"role": "user", "content": 123},
            {"role": "user", "content": "Hi"},
            "not a message",
        ]
        with caplog.at_level("WARNING", logger="token_forge"):
            result = counter.count_messages("gpt-4", messages)  # type: ignore[arg-type]

        assert result.token_count == 3 + 4 + 2 + 3
        assert "已跳过" in caplog.text

    def test_all_malformed_still_counts_padding(self, counter: TokenCounter) -> None:
        messages = [{"role": "user", "content": None}]
        assert counter.count_messages("gpt-4", messages).token_count >= 3

    def test_backend_unavailable_estimates_payload(self, failing_counter: TokenCounter) -> None:
        messages = [{"role": "user", "content": "Hello there"}]
        result = failing_counter.count_messages("gpt-4", messages)
        assert result.token_count == _payload_estimate(messages)


class TestCountMessagesSubword:
    """subword 家族的消息计数测试。"""

    def test_join_matches_count_text(self, counter: TokenCounter) -> None:
        """测试 llama 消息计数等于拼接字符串的文本计数。"""
        messages = [{"role": "user", "content": "Hello"}]
        expected = counter.count_text("llama-2-7b", "user\n\nHello").count
        assert counter.count_messages("llama-2-7b", messages).token_count == expected == 11

    def test_join_across_messages(self, counter: TokenCounter) -> None:
        messages = [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Yo"},
        ]
        joined = "user\n\nHi\n\nassistant\n\nYo"
        assert counter.count_messages("mistral-7b", messages).token_count == len(joined)

    def test_no_framing_overhead(self, counter: TokenCounter) -> None:
        assert counter.count_messages("llama-2-7b", []).token_count == 0

    def test_none_and_numbers_flattened(self, counter: TokenCounter) -> None:
        messages = [{"role": "user", "content": None, "index": 7}]
        assert counter.count_messages("llama-2-7b", messages).token_count == len("user\n\n\n\n7")

    def test_backend_unavailable_estimates_joined_text(self, failing_counter: TokenCounter) -> None:
        messages = [{"role": "user", "content": "Hello"}]
        assert failing_counter.count_messages("llama-2-7b", messages).token_count == estimate_tokens(
            "user\n\nHello"
        )


class TestCountMessagesVendor:
    """Claude 家族的消息计数测试。"""

    def test_prompt_format(self, counter: TokenCounter) -> None:
        messages = [{"role": "user", "content": "Hi"}]
        assert counter.count_messages("claude-2", messages).token_count == len("\n\nHuman: Hi")

    def test_no_assistant_postfix(self, counter: TokenCounter) -> None:
        messages = [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello"},
        ]
        prompt = "\n\nHuman: Hi\n\nAssistant: Hello"
        assert counter.count_messages("claude-instant-1", messages).token_count == len(prompt)

    def test_backend_unavailable_estimates_prompt(self, failing_counter: TokenCounter) -> None:
        messages = [{"role": "user", "content": "Hi"}]
        result = failing_counter.count_messages("claude-2", messages)
        assert result.token_count == estimate_tokens("\n\nHuman: Hi")


class TestCountMessagesNeverRaises:
    """count_messages() 永不抛出异常。"""

    @pytest.mark.parametrize("model", ["gpt-4", "llama-2-7b", "claude-2"])
    def test_non_iterable_payload(self, counter: TokenCounter, model: str) -> None:
        result = counter.count_messages(model, None)  # type: ignore[arg-type]
        assert result.token_count == estimate_tokens("null")

    def test_unserializable_payload(self, failing_counter: TokenCounter) -> None:
        messages = [{"role": "user", "content": object()}]
        result = failing_counter.count_messages("gpt-4", messages)
        assert result.token_count > 0


# === 调试编码 / 解码 ===


class TestDebugSurface:
    """encode_debug() / decode_debug() 测试。"""

    def test_encode_debug(self, counter: TokenCounter) -> None:
        result = counter.encode_debug("gpt-4", "Hi!")
        assert result == EncodeResult(ids=[72, 105, 33], count=3, chunks=["H", "i", "!"])

    def test_chunks_concatenate_to_text(self, counter: TokenCounter) -> None:
        text = "Hello, 世界"
        result = counter.encode_debug("llama-2-7b", text)
        assert "".join(result.chunks) == text
        assert len(result.chunks) == result.count == len(result.ids)

    def test_encode_debug_unavailable(self, failing_counter: TokenCounter) -> None:
        assert failing_counter.encode_debug("gpt-4", "Hi") == EncodeResult()

    def test_decode_debug(self, counter: TokenCounter) -> None:
        assert counter.decode_debug("gpt-4", [72, 105]) == DecodeResult(text="Hi")

    def test_decode_roundtrip(self, counter: TokenCounter) -> None:
        ids = counter.encode_debug("claude-2", "round trip").ids
        assert counter.decode_debug("claude-2", ids).text == "round trip"

    def test_decode_debug_unavailable(self, failing_counter: TokenCounter) -> None:
        assert failing_counter.decode_debug("gpt-4", [1, 2, 3]) == DecodeResult(text="")

    def test_decode_invalid_ids(self, counter: TokenCounter) -> None:
        """测试解码失败返回空文本而不是抛出异常。"""
        assert counter.decode_debug("gpt-4", [-1]).text == ""


class TestNamedTokenizers:
    """encode_named() / decode_named() 测试。"""

    @pytest.mark.parametrize(
        ("name", "key"),
        [
            ("llama", BackendKey.subword("llama")),
            ("nerdstash", BackendKey.subword("nerdstash")),
            ("nerdstash_v2", BackendKey.subword("nerdstash_v2")),
            ("mistral", BackendKey.subword("mistral")),
            ("gpt2", BackendKey.byte_pair("gpt2")),
            ("claude", BackendKey.vendor()),
        ],
    )
    def test_named_key(self, counter: TokenCounter, name: str, key: BackendKey) -> None:
        assert counter.named_key(name) == key

    def test_named_key_from_model_file(self, counter: TokenCounter) -> None:
        assert counter.named_key("nerdstash_v2.model") == BackendKey.subword("nerdstash_v2")

    def test_unknown_name(self, counter: TokenCounter) -> None:
        assert counter.named_key("unknown") is None
        assert counter.encode_named("unknown", "Hi") == EncodeResult()
        assert counter.decode_named("unknown", [72]) == DecodeResult()

    def test_encode_named(self, counter: TokenCounter) -> None:
        result = counter.encode_named("nerdstash", "ab")
        assert result.ids == [97, 98]
        assert result.chunks == ["a", "b"]
        assert counter.cache.peek(BackendKey.subword("nerdstash")).state is LoadState.LOADED

    def test_decode_named(self, counter: TokenCounter) -> None:
        assert counter.decode_named("gpt2", [97, 98]).text == "ab"


class TestLegacyCatalog:
    def test_list(self, counter: TokenCounter) -> None:
        assert "text-davinci-003" in counter.list_legacy_completion_models()
