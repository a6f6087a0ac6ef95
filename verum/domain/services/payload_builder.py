"""Payload builder for every Verum transaction kind.

Each method returns a ready-to-encode payload linked into the author's
chains through ChainPointers. Text content is trimmed, except story
segments: their whitespace is part of the story and must survive so the
segments join back into the original text.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from typing import Any

from verum.domain.constants import VERUM_VERSION
from verum.domain.models.chain import ChainPointers
from verum.domain.models.chunk import Chunk
from verum.domain.payloads import (
    CommentPayload,
    LikePayload,
    NotePayload,
    PostPayload,
    StartPayload,
    StoryParams,
    StoryPayload,
    SubscribePayload,
    UnsubscribePayload,
)


class PayloadBuilder:
    """Builds protocol payloads stamped with the current time.

    Example:
        >>> builder = PayloadBuilder(clock=lambda: 1722470500)
        >>> post = builder.post("hello", ChainPointers(last_tx_id="ab" * 32))
        >>> post.prev_tx_id == "ab" * 32
        True
    """

    def __init__(
        self,
        version: str = VERUM_VERSION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the builder.

        Args:
            version: Protocol version written into every payload.
            clock: Returns the current Unix time in seconds.
        """
        self._version = version
        self._clock = clock

    def start(self, nickname: str, avatar: str | None = None) -> StartPayload:
        """Build a profile creation payload. Start payloads carry no links."""
        profile: dict[str, Any] = {"nickname": nickname.strip()}
        if avatar:
            profile["avatar"] = avatar
        return StartPayload(
            version=self._version,
            timestamp=self._now(),
            content=json.dumps(profile, separators=(",", ":"), ensure_ascii=False),
        )

    def post(self, content: str, pointers: ChainPointers) -> PostPayload:
        """Build a post payload."""
        return PostPayload(
            version=self._version,
            timestamp=self._now(),
            content=content.strip(),
            **self._links(pointers),
        )

    def comment(
        self, target_id: str, content: str, pointers: ChainPointers
    ) -> CommentPayload:
        """Build a comment on target_id."""
        return CommentPayload(
            version=self._version,
            timestamp=self._now(),
            content=content.strip(),
            parent_id=target_id,
            **self._links(pointers),
        )

    def like(self, target_id: str, pointers: ChainPointers) -> LikePayload:
        """Build a like of target_id."""
        return LikePayload(
            version=self._version,
            timestamp=self._now(),
            parent_id=target_id,
            **self._links(pointers),
        )

    def subscribe(self, target: str, pointers: ChainPointers) -> SubscribePayload:
        """Build a subscription to target."""
        return SubscribePayload(
            version=self._version,
            timestamp=self._now(),
            content=target.strip(),
            **self._links(pointers),
        )

    def unsubscribe(self, target: str, pointers: ChainPointers) -> UnsubscribePayload:
        """Build an unsubscription from target."""
        return UnsubscribePayload(
            version=self._version,
            timestamp=self._now(),
            content=target.strip(),
            **self._links(pointers),
        )

    def note(self, ciphertext: str, pointers: ChainPointers) -> NotePayload:
        """Build a private note. The ciphertext is taken as-is."""
        return NotePayload(
            version=self._version,
            timestamp=self._now(),
            content=ciphertext,
            **self._links(pointers),
        )

    def story_segment(
        self,
        chunk: Chunk,
        pointers: ChainPointers,
        parent_id: str | None = None,
    ) -> StoryPayload:
        """Build the payload for one story segment.

        The first segment links into the author's chains. Every later
        segment links to its predecessor through parent_id and keeps only
        the start_tx_id shortcut.

        Args:
            chunk: The chunk to wrap.
            pointers: Author's chain heads before the story started.
            parent_id: Previous segment's transaction id. Required for
                every segment after the first.

        Returns:
            The story payload.

        Raises:
            ValueError: If a continuation segment has no parent_id.
        """
        params = StoryParams(
            segment=chunk.segment_index,
            total=chunk.total,
            is_final=chunk.is_final,
        )
        if chunk.segment_index == 1:
            return StoryPayload(
                version=self._version,
                timestamp=self._now(),
                content=chunk.content,
                params=params,
                **self._links(pointers),
            )
        if not parent_id:
            raise ValueError(
                f"segment {chunk.segment_index} needs the previous segment's id"
            )
        return StoryPayload(
            version=self._version,
            timestamp=self._now(),
            content=chunk.content,
            parent_id=parent_id,
            start_tx_id=pointers.start_tx_id,
            params=params,
        )

    def _now(self) -> int:
        return int(self._clock())

    @staticmethod
    def _links(pointers: ChainPointers) -> dict[str, str | None]:
        return {
            "prev_tx_id": pointers.last_tx_id,
            "last_subscribe_id": pointers.last_subscribe_id,
            "start_tx_id": pointers.start_tx_id,
        }
