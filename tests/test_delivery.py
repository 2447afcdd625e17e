"""
Tests for adaptive delivery — token estimate and inline/file switching
"""

from pathlib import Path

import pytest

from logscope.delivery import (
    AdaptiveDeliveryController, DeliveryMode, choose_mode, estimate_tokens,
    TEMP_PREFIX, LOG_FILE_NAME,
)
from logscope.errors import DeliveryIOError


class TestEstimateTokens:
    """Four characters per token, rounded down."""

    @pytest.mark.parametrize("text, expected", [
        ("", 0),
        ("abc", 0),
        ("abcd", 1),
        ("a" * 2000, 500),
        ("a" * 2003, 500),
    ])
    def test_estimate(self, text, expected):
        assert estimate_tokens(text) == expected

    def test_monotonic(self):
        sizes = [estimate_tokens("x" * n) for n in range(0, 200)]
        assert sizes == sorted(sizes)


class TestChooseMode:
    """File mode iff threshold > 0 and estimate > threshold."""

    @pytest.mark.parametrize("tokens, threshold, mode", [
        (10_000, 0, DeliveryMode.INLINE),
        (10_000, -5, DeliveryMode.INLINE),
        (100, 100, DeliveryMode.INLINE),
        (101, 100, DeliveryMode.FILE),
        (0, 1, DeliveryMode.INLINE),
    ])
    def test_rule(self, tokens, threshold, mode):
        assert choose_mode(tokens, threshold) is mode


class TestController:
    """End-to-end delivery decisions."""

    def test_threshold_zero_always_inline(self, tmp_path):
        controller = AdaptiveDeliveryController(0, temp_root=tmp_path)
        result = controller.deliver("x" * 100_000)
        assert result.mode is DeliveryMode.INLINE
        assert result.content == "x" * 100_000
        assert list(tmp_path.iterdir()) == []

    def test_under_threshold_inline(self, tmp_path):
        result = AdaptiveDeliveryController(100, temp_root=tmp_path).deliver("short log")
        assert result.mode is DeliveryMode.INLINE
        assert result.to_dict() == {
            "delivery_mode": "inline",
            "content": "short log",
            "estimated_tokens": 2,
        }

    def test_scenario_d(self, tmp_path):
        """Threshold 100, ~500-token text: written to a file, byte for byte."""
        text = "line of log output\n" * 105  # 1995 chars, 498 tokens
        result = AdaptiveDeliveryController(100, temp_root=tmp_path).deliver(text)

        assert result.mode is DeliveryMode.FILE
        assert result.content is None
        assert result.estimated_tokens == estimate_tokens(text)

        path = Path(result.file_path)
        assert path.is_absolute()
        assert path.name == LOG_FILE_NAME
        assert path.parent.name.startswith(TEMP_PREFIX)
        assert path.read_bytes() == text.encode("utf-8")
        assert result.file_size_bytes == len(text.encode("utf-8"))
        assert result.reason == "Log exceeded 100 token threshold, saved to file"

    def test_file_payload_keys(self, tmp_path):
        result = AdaptiveDeliveryController(1, temp_root=tmp_path).deliver("x" * 40)
        payload = result.to_dict()
        assert payload["delivery_mode"] == "file"
        assert "content" not in payload
        assert set(payload) == {"delivery_mode", "file_path", "file_size_bytes", "estimated_tokens", "reason"}

    def test_each_delivery_gets_own_directory(self, tmp_path):
        controller = AdaptiveDeliveryController(1, temp_root=tmp_path)
        first = controller.deliver("x" * 40)
        second = controller.deliver("y" * 40)
        assert first.file_path != second.file_path
        assert Path(first.file_path).read_text() == "x" * 40

    def test_non_ascii_written_as_utf8(self, tmp_path):
        text = "✓ passed " * 20
        result = AdaptiveDeliveryController(1, temp_root=tmp_path).deliver(text)
        assert Path(result.file_path).read_text(encoding="utf-8") == text
        assert result.file_size_bytes == len(text.encode("utf-8"))

    def test_unwritable_root_raises(self, tmp_path):
        """No fallback to inline when the file cannot be created."""
        missing_root = tmp_path / "does-not-exist"
        controller = AdaptiveDeliveryController(1, temp_root=missing_root)
        with pytest.raises(DeliveryIOError) as exc_info:
            controller.deliver("x" * 40)
        assert "temporary output directory" in exc_info.value.message
