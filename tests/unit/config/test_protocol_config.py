"""Unit tests for engine configuration."""

from __future__ import annotations

import pytest

from verum.config.protocol_config import (
    DEFAULT_PUBLISH_CONFIG,
    TEST_PUBLISH_CONFIG,
    ChunkerConfig,
    PublishConfig,
    TraversalConfig,
)


class TestChunkerConfig:
    """Tests for ChunkerConfig."""

    def test_defaults(self) -> None:
        config = ChunkerConfig()

        assert config.max_payload_bytes == 1000
        assert config.safety_margin_bytes == 50
        assert config.max_segments == 20

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_payload_bytes": 0},
            {"safety_margin_bytes": -1},
            {"max_segments": 0},
            {"break_search_ratio": 1.0},
            {"shrink_factor": 1.0},
            {"min_chunk_chars": 0},
        ],
    )
    def test_rejects_invalid_values(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            ChunkerConfig(**kwargs)

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VERUM_MAX_SEGMENTS", "0")
        monkeypatch.setenv("VERUM_SAFETY_MARGIN_BYTES", "80")
        monkeypatch.setenv("VERUM_BREAK_SEARCH_RATIO", "not-a-number")

        config = ChunkerConfig.from_environment()

        assert config.max_segments is None
        assert config.safety_margin_bytes == 80
        assert config.break_search_ratio == 0.7


class TestPublishConfig:
    """Tests for PublishConfig."""

    def test_test_preset_never_waits(self) -> None:
        assert TEST_PUBLISH_CONFIG.max_attempts == DEFAULT_PUBLISH_CONFIG.max_attempts
        assert TEST_PUBLISH_CONFIG.base_retry_delay == 0.0
        assert TEST_PUBLISH_CONFIG.settle_delay == 0.0

    def test_poll_interval_backs_off(self) -> None:
        config = PublishConfig()

        intervals = [config.poll_interval(n) for n in range(10)]

        assert intervals == [0.5] * 3 + [1.0] * 5 + [2.0] * 2

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"settle_delay": -1.0},
            {"fast_poll_interval": 0.0},
            {"max_priority_fee": 500},
            {"priority_fee_step_bytes": 0},
        ],
    )
    def test_rejects_invalid_values(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            PublishConfig(**kwargs)

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("ON", True), ("0", False), ("maybe", False)],
    )
    def test_wait_for_confirmation_from_environment(
        self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool
    ) -> None:
        monkeypatch.setenv("VERUM_WAIT_FOR_CONFIRMATION", raw)

        assert PublishConfig.from_environment().wait_for_confirmation is expected

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VERUM_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("VERUM_RETRY_MAX_DELAY", "4.5")

        config = PublishConfig.from_environment()

        assert config.max_attempts == 5
        assert config.max_retry_delay == 4.5
        assert config.base_retry_delay == 2.0


class TestTraversalConfig:
    """Tests for TraversalConfig."""

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VERUM_SCAN_LIMIT", "1000")

        config = TraversalConfig.from_environment()

        assert config.scan_limit == 1000
        assert config.default_max_count == 50

    def test_rejects_non_positive_limits(self) -> None:
        with pytest.raises(ValueError, match="scan_limit"):
            TraversalConfig(scan_limit=0)
