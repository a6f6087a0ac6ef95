"""Content chunker for long-form stories.

Splits text into segments that each fit the payload byte ceiling once
wrapped in a story payload with worst-case chain links.

Algorithm:
1. Size the payload overhead for a first segment (prev_tx_id,
   last_subscribe, start_tx_id) and for a continuation (parent_id,
   start_tx_id), using placeholder ids of the longest expected length.
   The per-segment content budget is
   max(min_window_bytes, max_payload_bytes - overhead - safety_margin).
2. From the current position take the longest run of characters whose
   JSON-escaped UTF-8 size fits the budget (the window).
3. Unless the window reaches the end of the text, look for a break in the
   tail of the window: newline first, then sentence punctuation followed
   by whitespace, then any whitespace. Without one, cut at the window
   edge. Break whitespace stays with the earlier segment, so joining the
   segments returns the trimmed input exactly.
4. Serialize the candidate segment and shrink it until it fits.
5. Backfill total and is_final once the count is known, and enforce the
   operational segment ceiling.
"""

from __future__ import annotations

import json

import structlog

from verum.config.protocol_config import ChunkerConfig
from verum.domain.constants import VERUM_VERSION
from verum.domain.errors.chunking import ChunkingError, ContentTooLargeError
from verum.domain.models.chunk import Chunk
from verum.domain.payloads import StoryParams, StoryPayload
from verum.domain.services.payload_codec import PayloadCodec

logger = structlog.get_logger(__name__)

# Ten digit Unix timestamps last until 2286
_PLACEHOLDER_TIMESTAMP = 9_999_999_999

_SENTENCE_END = ".!?"


class ContentChunker:
    """Splits story content into byte-bounded, chain-linkable chunks.

    Example:
        >>> chunker = ContentChunker()
        >>> chunks = chunker.split("A short story.")
        >>> (chunks[0].segment_index, chunks[0].total, chunks[0].is_final)
        (1, 1, True)
    """

    def __init__(
        self,
        config: ChunkerConfig | None = None,
        codec: PayloadCodec | None = None,
        version: str = VERUM_VERSION,
    ) -> None:
        """Initialize the chunker.

        Args:
            config: Chunking limits. Defaults to ChunkerConfig().
            codec: Codec used to measure payloads.
            version: Protocol version written into measured payloads.
        """
        self._config = config or ChunkerConfig()
        self._codec = codec or PayloadCodec()
        self._version = version
        self._placeholder_id = "f" * self._config.placeholder_id_length
        self._placeholder_segment = max(self._config.max_segments or 0, 999)
        self._char_costs: dict[str, int] = {}

        overhead = max(
            self._codec.encoded_size(self._measure_payload("", 1)),
            self._codec.encoded_size(self._measure_payload("", 2)),
        )
        self._max_content_bytes = max(
            self._config.min_window_bytes,
            self._config.max_payload_bytes
            - overhead
            - self._config.safety_margin_bytes,
        )

    @property
    def max_content_bytes(self) -> int:
        """Serialized content bytes available to each segment."""
        return self._max_content_bytes

    @property
    def config(self) -> ChunkerConfig:
        """The limits this chunker applies."""
        return self._config

    def split(self, content: str) -> list[Chunk]:
        """Split content into chunks.

        Args:
            content: Story text. Leading and trailing whitespace is dropped.

        Returns:
            Chunks in order. Empty if content is blank.

        Raises:
            ContentTooLargeError: If more segments than max_segments are needed.
            ChunkingError: If a segment cannot be made to fit.
        """
        text = content.strip()
        if not text:
            return []

        pieces = self._partition(text)
        limit = self._config.max_segments
        if limit is not None and len(pieces) > limit:
            logger.info(
                "content_exceeds_segment_limit",
                estimated_segments=len(pieces),
                limit=limit,
            )
            raise ContentTooLargeError(
                estimated_segments=len(pieces),
                limit=limit,
                content_bytes=self._text_bytes(text),
                max_content_bytes=self._max_content_bytes,
            )

        total = len(pieces)
        return [
            Chunk(
                content=piece,
                segment_index=index,
                total=total,
                is_final=index == total,
            )
            for index, piece in enumerate(pieces, start=1)
        ]

    def estimate_segments(self, content: str) -> int:
        """Return how many segments content needs, ignoring max_segments.

        Never raises for oversized content. Falls back to a byte-based
        estimate if a segment cannot be made to fit.
        """
        text = content.strip()
        if not text:
            return 0
        try:
            return len(self._partition(text))
        except ChunkingError:
            return -(-self._text_bytes(text) // self._max_content_bytes)

    def is_within_limits(self, content: str) -> bool:
        """True if content fits within the configured segment ceiling."""
        limit = self._config.max_segments
        return limit is None or self.estimate_segments(content) <= limit

    def _partition(self, text: str) -> list[str]:
        """Cut text into segment strings without applying max_segments."""
        costs = [self._char_cost(ch) for ch in text]
        pieces: list[str] = []
        position = 0
        length = len(text)

        while position < length:
            window_end = self._window_end(costs, position)
            end = window_end
            if window_end < length:
                end = self._find_break(text, position, window_end)
            end = self._fit(text, position, end, len(pieces) + 1)
            pieces.append(text[position:end])
            position = end

        return pieces

    def _window_end(self, costs: list[int], start: int) -> int:
        """Return the exclusive end of the longest run that fits the budget."""
        budget = self._max_content_bytes
        used = 0
        index = start
        while index < len(costs) and used + costs[index] <= budget:
            used += costs[index]
            index += 1
        # A single character always fits the floor budget
        return max(index, start + 1)

    def _find_break(self, text: str, start: int, end: int) -> int:
        """Return the exclusive end of the chunk within [start, end)."""
        search_from = start + int((end - start) * self._config.break_search_ratio)
        search_from = max(search_from, start + 1)

        newline = text.rfind("\n", search_from, end)
        if newline >= 0:
            return self._consume_whitespace(text, newline + 1, end)

        for index in range(end - 2, search_from - 1, -1):
            if text[index] in _SENTENCE_END and text[index + 1].isspace():
                return self._consume_whitespace(text, index + 2, end)

        for index in range(end - 1, search_from - 1, -1):
            if text[index].isspace():
                return self._consume_whitespace(text, index + 1, end)

        return end

    @staticmethod
    def _consume_whitespace(text: str, index: int, end: int) -> int:
        """Extend a break over following whitespace, staying inside the window."""
        while index < end and text[index].isspace():
            index += 1
        return index

    def _fit(self, text: str, start: int, end: int, segment_index: int) -> int:
        """Shrink [start, end) until its payload fits max_payload_bytes."""
        limit = self._config.max_payload_bytes
        attempts = 0
        while (
            self._codec.encoded_size(
                self._measure_payload(text[start:end], segment_index)
            )
            > limit
        ):
            if attempts >= self._config.max_shrink_attempts:
                raise ChunkingError(
                    f"segment {segment_index} still exceeds {limit} bytes "
                    f"after {attempts} shrink attempts",
                    position=start,
                )
            shrunk = int((end - start) * self._config.shrink_factor)
            if shrunk < self._config.min_chunk_chars:
                raise ChunkingError(
                    f"segment {segment_index} cannot shrink below "
                    f"{self._config.min_chunk_chars} characters",
                    position=start,
                )
            attempts += 1
            end = start + shrunk
            logger.debug(
                "segment_shrunk",
                segment_index=segment_index,
                attempt=attempts,
                chars=shrunk,
            )
        return end

    def _measure_payload(self, content: str, segment_index: int) -> StoryPayload:
        """Build a worst-case payload for sizing a segment."""
        params = StoryParams(
            segment=max(segment_index, self._placeholder_segment),
            total=self._placeholder_segment,
            is_final=False,
        )
        if segment_index == 1:
            return StoryPayload(
                version=self._version,
                timestamp=_PLACEHOLDER_TIMESTAMP,
                content=content,
                prev_tx_id=self._placeholder_id,
                last_subscribe_id=self._placeholder_id,
                start_tx_id=self._placeholder_id,
                params=params,
            )
        return StoryPayload(
            version=self._version,
            timestamp=_PLACEHOLDER_TIMESTAMP,
            content=content,
            parent_id=self._placeholder_id,
            start_tx_id=self._placeholder_id,
            params=params,
        )

    def _char_cost(self, ch: str) -> int:
        """Return the JSON-escaped UTF-8 size of one character."""
        cost = self._char_costs.get(ch)
        if cost is None:
            cost = len(json.dumps(ch, ensure_ascii=False).encode("utf-8")) - 2
            self._char_costs[ch] = cost
        return cost

    def _text_bytes(self, text: str) -> int:
        """Return the JSON-escaped UTF-8 size of text."""
        return sum(self._char_cost(ch) for ch in text)
