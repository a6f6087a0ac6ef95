"""Configuration for the Verum engine.

Frozen dataclasses with environment overrides and test presets.
"""

from verum.config.protocol_config import (
    DEFAULT_CHUNKER_CONFIG,
    DEFAULT_PUBLISH_CONFIG,
    DEFAULT_TRAVERSAL_CONFIG,
    TEST_CHUNKER_CONFIG,
    TEST_PUBLISH_CONFIG,
    TEST_TRAVERSAL_CONFIG,
    ChunkerConfig,
    PublishConfig,
    TraversalConfig,
)

__all__: list[str] = [
    "DEFAULT_CHUNKER_CONFIG",
    "DEFAULT_PUBLISH_CONFIG",
    "DEFAULT_TRAVERSAL_CONFIG",
    "TEST_CHUNKER_CONFIG",
    "TEST_PUBLISH_CONFIG",
    "TEST_TRAVERSAL_CONFIG",
    "ChunkerConfig",
    "PublishConfig",
    "TraversalConfig",
]
