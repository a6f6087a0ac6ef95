"""Verum engine configuration.

This module defines the operational tuning for chunking, publishing and
chain traversal, with environment variable overrides. None of these
values are protocol rules: the protocol itself only fixes the payload
byte ceiling and the wire format (see verum.domain.constants).

Environment Variables (Chunker):
- VERUM_MAX_PAYLOAD_BYTES: Serialized payload ceiling (default: 1000)
- VERUM_SAFETY_MARGIN_BYTES: Bytes kept free in every segment (default: 50)
- VERUM_MAX_SEGMENTS: Soft ceiling on story segments, 0 disables (default: 20)
- VERUM_BREAK_SEARCH_RATIO: Where break search starts in a window (default: 0.7)

Environment Variables (Publish):
- VERUM_MAX_ATTEMPTS: Submission attempts per segment (default: 3)
- VERUM_RETRY_BASE_DELAY: Seconds per attempt in the retry delay (default: 2.0)
- VERUM_RETRY_INDEX_STEP: Seconds per segment index in the delay (default: 0.5)
- VERUM_RETRY_MAX_DELAY: Retry delay cap in seconds (default: 10.0)
- VERUM_WAIT_FOR_CONFIRMATION: Poll the indexer after each segment (default: false)
- VERUM_CONFIRMATION_TIMEOUT: Confirmation wait ceiling in seconds (default: 15.0)
- VERUM_SETTLE_DELAY: Pause between segments without confirmation (default: 1.0)

Environment Variables (Traversal):
- VERUM_SCAN_LIMIT: Transactions fetched per address (default: 500)
- VERUM_DEFAULT_MAX_COUNT: Default chain walk length (default: 50)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from verum.domain.constants import MAX_PAYLOAD_BYTES, VERUM_PROTOCOL_CREATION_DATE


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed float value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean environment variable with default.

    Accepts 1/0, true/false, yes/no and on/off in any case.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed boolean value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in ("1", "true", "yes", "on"):
        return True
    if normalized in ("0", "false", "no", "off"):
        return False
    return default


@dataclass(frozen=True)
class ChunkerConfig:
    """Configuration for splitting story content into segments.

    Attributes:
        max_payload_bytes: Serialized payload ceiling per segment.
        safety_margin_bytes: Bytes left free below the ceiling.
        min_window_bytes: Floor for the per-segment content budget.
        max_segments: Soft ceiling on segments per story. None disables it.
        break_search_ratio: Fraction of the window skipped before looking
            for a natural break. 0.7 searches the last 30%.
        shrink_factor: Multiplier applied when a segment overflows.
        max_shrink_attempts: Shrinks tried before giving up on a segment.
        min_chunk_chars: Smallest segment a shrink may produce.
        placeholder_id_length: Length of the ids assumed when sizing
            payload overhead.
    """

    max_payload_bytes: int = MAX_PAYLOAD_BYTES
    safety_margin_bytes: int = 50
    min_window_bytes: int = 300
    max_segments: int | None = 20
    break_search_ratio: float = 0.7
    shrink_factor: float = 0.8
    max_shrink_attempts: int = 5
    min_chunk_chars: int = 50
    placeholder_id_length: int = 64

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_payload_bytes < 1:
            raise ValueError(
                f"max_payload_bytes must be positive, got {self.max_payload_bytes}"
            )
        if self.safety_margin_bytes < 0:
            raise ValueError(
                "safety_margin_bytes must be non-negative, "
                f"got {self.safety_margin_bytes}"
            )
        if self.min_window_bytes < 1:
            raise ValueError(
                f"min_window_bytes must be positive, got {self.min_window_bytes}"
            )
        if self.max_segments is not None and self.max_segments < 1:
            raise ValueError(
                f"max_segments must be positive or None, got {self.max_segments}"
            )
        if not 0.0 <= self.break_search_ratio < 1.0:
            raise ValueError(
                "break_search_ratio must be in [0, 1), "
                f"got {self.break_search_ratio}"
            )
        if not 0.0 < self.shrink_factor < 1.0:
            raise ValueError(
                f"shrink_factor must be in (0, 1), got {self.shrink_factor}"
            )
        if self.max_shrink_attempts < 0:
            raise ValueError(
                "max_shrink_attempts must be non-negative, "
                f"got {self.max_shrink_attempts}"
            )
        if self.min_chunk_chars < 1:
            raise ValueError(
                f"min_chunk_chars must be positive, got {self.min_chunk_chars}"
            )
        if self.placeholder_id_length < 1:
            raise ValueError(
                "placeholder_id_length must be positive, "
                f"got {self.placeholder_id_length}"
            )

    @classmethod
    def from_environment(cls) -> ChunkerConfig:
        """Create config from environment variables with defaults.

        Returns:
            ChunkerConfig with values from environment or defaults.
        """
        max_segments = _get_int_env("VERUM_MAX_SEGMENTS", 20)
        return cls(
            max_payload_bytes=_get_int_env("VERUM_MAX_PAYLOAD_BYTES", MAX_PAYLOAD_BYTES),
            safety_margin_bytes=_get_int_env("VERUM_SAFETY_MARGIN_BYTES", 50),
            max_segments=max_segments if max_segments > 0 else None,
            break_search_ratio=_get_float_env("VERUM_BREAK_SEARCH_RATIO", 0.7),
        )


@dataclass(frozen=True)
class PublishConfig:
    """Configuration for submitting transactions and publishing stories.

    Attributes:
        max_attempts: Submission attempts per segment.
        base_retry_delay: Seconds added per attempt to the retry delay.
        retry_index_step: Seconds added per segment index to the delay.
        max_retry_delay: Retry delay cap in seconds.
        health_probe_after_segment: Probe sender health before segments
            beyond this index. None disables probing.
        slow_probe_threshold: Probe latency in seconds considered slow.
        slow_probe_extra_delay: Extra pause after a slow probe.
        wait_for_confirmation: Poll the indexer for each segment before
            submitting the next one.
        confirmation_timeout: Ceiling for one confirmation wait.
        fast_poll_interval: Interval for the first fast_polls polls.
        fast_polls: Number of polls at fast_poll_interval.
        medium_poll_interval: Interval for the next medium_polls polls.
        medium_polls: Number of polls at medium_poll_interval.
        slow_poll_interval: Interval for every later poll.
        settle_delay: Pause between segments when not waiting for
            confirmation.
        base_priority_fee: Priority fee per size step, in sompi.
        max_priority_fee: Priority fee cap, in sompi.
        priority_fee_step_bytes: Payload bytes per priority fee step.
    """

    max_attempts: int = 3
    base_retry_delay: float = 2.0
    retry_index_step: float = 0.5
    max_retry_delay: float = 10.0
    health_probe_after_segment: int | None = 3
    slow_probe_threshold: float = 5.0
    slow_probe_extra_delay: float = 3.0
    wait_for_confirmation: bool = False
    confirmation_timeout: float = 15.0
    fast_poll_interval: float = 0.5
    fast_polls: int = 3
    medium_poll_interval: float = 1.0
    medium_polls: int = 5
    slow_poll_interval: float = 2.0
    settle_delay: float = 1.0
    base_priority_fee: int = 1000
    max_priority_fee: int = 5000
    priority_fee_step_bytes: int = 200

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        for name in (
            "base_retry_delay",
            "retry_index_step",
            "max_retry_delay",
            "slow_probe_threshold",
            "slow_probe_extra_delay",
            "confirmation_timeout",
            "settle_delay",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        for name in ("fast_poll_interval", "medium_poll_interval", "slow_poll_interval"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.fast_polls < 0 or self.medium_polls < 0:
            raise ValueError("poll counts must be non-negative")
        if self.base_priority_fee < 0:
            raise ValueError(
                f"base_priority_fee must be non-negative, got {self.base_priority_fee}"
            )
        if self.max_priority_fee < self.base_priority_fee:
            raise ValueError(
                f"max_priority_fee ({self.max_priority_fee}) must be at least "
                f"base_priority_fee ({self.base_priority_fee})"
            )
        if self.priority_fee_step_bytes < 1:
            raise ValueError(
                "priority_fee_step_bytes must be positive, "
                f"got {self.priority_fee_step_bytes}"
            )

    def poll_interval(self, poll_number: int) -> float:
        """Return the wait before the given 0-based confirmation poll."""
        if poll_number < self.fast_polls:
            return self.fast_poll_interval
        if poll_number < self.fast_polls + self.medium_polls:
            return self.medium_poll_interval
        return self.slow_poll_interval

    @classmethod
    def from_environment(cls) -> PublishConfig:
        """Create config from environment variables with defaults.

        Returns:
            PublishConfig with values from environment or defaults.
        """
        return cls(
            max_attempts=_get_int_env("VERUM_MAX_ATTEMPTS", 3),
            base_retry_delay=_get_float_env("VERUM_RETRY_BASE_DELAY", 2.0),
            retry_index_step=_get_float_env("VERUM_RETRY_INDEX_STEP", 0.5),
            max_retry_delay=_get_float_env("VERUM_RETRY_MAX_DELAY", 10.0),
            wait_for_confirmation=_get_bool_env("VERUM_WAIT_FOR_CONFIRMATION", False),
            confirmation_timeout=_get_float_env("VERUM_CONFIRMATION_TIMEOUT", 15.0),
            settle_delay=_get_float_env("VERUM_SETTLE_DELAY", 1.0),
        )


@dataclass(frozen=True)
class TraversalConfig:
    """Configuration for walking an author's transaction chains.

    Attributes:
        scan_limit: Transactions fetched per address for one walk.
        default_max_count: Chain hops when the caller gives no limit.
        protocol_creation_time: Transactions older than this are ignored.
    """

    scan_limit: int = 500
    default_max_count: int = 50
    protocol_creation_time: int = VERUM_PROTOCOL_CREATION_DATE

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.scan_limit < 1:
            raise ValueError(f"scan_limit must be positive, got {self.scan_limit}")
        if self.default_max_count < 1:
            raise ValueError(
                f"default_max_count must be positive, got {self.default_max_count}"
            )
        if self.protocol_creation_time < 0:
            raise ValueError(
                "protocol_creation_time must be non-negative, "
                f"got {self.protocol_creation_time}"
            )

    @classmethod
    def from_environment(cls) -> TraversalConfig:
        """Create config from environment variables with defaults.

        Returns:
            TraversalConfig with values from environment or defaults.
        """
        return cls(
            scan_limit=_get_int_env("VERUM_SCAN_LIMIT", 500),
            default_max_count=_get_int_env("VERUM_DEFAULT_MAX_COUNT", 50),
        )


# Pre-defined configurations for common use cases

# Default production configs
DEFAULT_CHUNKER_CONFIG = ChunkerConfig()
DEFAULT_PUBLISH_CONFIG = PublishConfig()
DEFAULT_TRAVERSAL_CONFIG = TraversalConfig()

# Testing configs: same limits, no waiting
TEST_CHUNKER_CONFIG = ChunkerConfig()
TEST_PUBLISH_CONFIG = PublishConfig(
    base_retry_delay=0.0,
    retry_index_step=0.0,
    max_retry_delay=0.0,
    slow_probe_extra_delay=0.0,
    settle_delay=0.0,
)
TEST_TRAVERSAL_CONFIG = TraversalConfig(scan_limit=100, default_max_count=50)
