"""Payload validator enforcing protocol rules before submission.

The schema already guarantees field types. This validator checks what
the schema cannot: serialized size, timestamp range, length limits,
address and id formats, and story segment ranges.

Issue codes:
    PAYLOAD_TOO_LARGE, UNSUPPORTED_VERSION, TIMESTAMP_TOO_OLD,
    TIMESTAMP_FUTURE, INVALID_JSON, MISSING_NICKNAME,
    NICKNAME_TOO_LONG, INVALID_AVATAR, EMPTY_CONTENT, CONTENT_TOO_LONG,
    INVALID_ADDRESS, INVALID_PARENT_ID, INVALID_PREV_TX_ID,
    INVALID_SUBSCRIBE_ID, INVALID_START_TX_ID, INVALID_SEGMENT_RANGE,
    MISSING_PARENT_ID, UNEXPECTED_PARENT_ID
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable

from verum.domain.constants import (
    MAX_COMMENT_LENGTH,
    MAX_FUTURE_SKEW_SECONDS,
    MAX_NICKNAME_LENGTH,
    MAX_PAYLOAD_BYTES,
    MAX_POST_LENGTH,
    SUPPORTED_VERSIONS,
    VERUM_PROTOCOL_CREATION_DATE,
    is_valid_address,
    is_valid_transaction_id,
)
from verum.domain.models.validation import ValidationIssue
from verum.domain.payloads import (
    ChainedPayload,
    CommentPayload,
    LikePayload,
    NotePayload,
    Payload,
    PostPayload,
    StartPayload,
    StoryPayload,
    SubscribePayload,
    UnsubscribePayload,
)
from verum.domain.services.payload_codec import PayloadCodec


class PayloadValidator:
    """Checks payloads against protocol rules.

    Example:
        >>> validator = PayloadValidator()
        >>> issues = validator.validate(payload)
        >>> [issue.code for issue in issues]
        []
    """

    def __init__(
        self,
        codec: PayloadCodec | None = None,
        clock: Callable[[], float] = time.time,
        max_payload_bytes: int = MAX_PAYLOAD_BYTES,
    ) -> None:
        """Initialize the validator.

        Args:
            codec: Codec used to measure serialized size.
            clock: Returns the current Unix time in seconds.
            max_payload_bytes: Serialized size ceiling.
        """
        self._codec = codec or PayloadCodec()
        self._clock = clock
        self._max_payload_bytes = max_payload_bytes

    def validate(self, payload: Payload) -> list[ValidationIssue]:
        """Return every rule the payload breaks, empty if it is valid."""
        issues: list[ValidationIssue] = []

        if payload.version not in SUPPORTED_VERSIONS:
            issues.append(
                ValidationIssue(
                    "verum",
                    "UNSUPPORTED_VERSION",
                    f"Unsupported protocol version {payload.version!r}",
                )
            )

        issues.extend(self._check_timestamp(payload.timestamp))

        size = self._codec.encoded_size(payload)
        if size > self._max_payload_bytes:
            issues.append(
                ValidationIssue(
                    "payload",
                    "PAYLOAD_TOO_LARGE",
                    f"Payload too large: {size} bytes (max {self._max_payload_bytes})",
                )
            )

        if isinstance(payload, StartPayload):
            issues.extend(self._check_start(payload))
        else:
            issues.extend(self._check_links(payload))

        if isinstance(payload, PostPayload):
            issues.extend(self._check_text(payload.content, MAX_POST_LENGTH, "Post"))
        elif isinstance(payload, CommentPayload):
            issues.extend(
                self._check_text(payload.content, MAX_COMMENT_LENGTH, "Comment")
            )
            issues.extend(self._check_parent(payload.parent_id))
        elif isinstance(payload, LikePayload):
            issues.extend(self._check_parent(payload.parent_id))
        elif isinstance(payload, (SubscribePayload, UnsubscribePayload)):
            if not is_valid_address(payload.content):
                issues.append(
                    ValidationIssue(
                        "content", "INVALID_ADDRESS", "Invalid Kaspa address format"
                    )
                )
        elif isinstance(payload, StoryPayload):
            issues.extend(self._check_story(payload))
        elif isinstance(payload, NotePayload):
            issues.extend(self._check_text(payload.content, None, "Note"))

        return issues

    def is_valid(self, payload: Payload) -> bool:
        """True if the payload breaks no rule."""
        return not self.validate(payload)

    def _check_timestamp(self, timestamp: int) -> list[ValidationIssue]:
        if timestamp < VERUM_PROTOCOL_CREATION_DATE:
            return [
                ValidationIssue(
                    "timestamp",
                    "TIMESTAMP_TOO_OLD",
                    "Timestamp cannot be before protocol creation date",
                )
            ]
        if timestamp > int(self._clock()) + MAX_FUTURE_SKEW_SECONDS:
            return [
                ValidationIssue(
                    "timestamp",
                    "TIMESTAMP_FUTURE",
                    "Timestamp cannot be more than 5 minutes in the future",
                )
            ]
        return []

    def _check_start(self, payload: StartPayload) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        try:
            profile = json.loads(payload.content)
        except json.JSONDecodeError:
            return [
                ValidationIssue("content", "INVALID_JSON", "Invalid JSON in user profile")
            ]
        if not isinstance(profile, dict):
            return [
                ValidationIssue(
                    "content", "INVALID_JSON", "User profile must be a JSON object"
                )
            ]

        nickname = profile.get("nickname")
        if not isinstance(nickname, str) or not nickname.strip():
            issues.append(
                ValidationIssue(
                    "content.nickname", "MISSING_NICKNAME", "Nickname is required"
                )
            )
        elif len(nickname.strip()) > MAX_NICKNAME_LENGTH:
            issues.append(
                ValidationIssue(
                    "content.nickname",
                    "NICKNAME_TOO_LONG",
                    f"Nickname too long (max {MAX_NICKNAME_LENGTH} characters)",
                )
            )

        avatar = profile.get("avatar")
        if avatar is not None and not isinstance(avatar, str):
            issues.append(
                ValidationIssue(
                    "content.avatar", "INVALID_AVATAR", "Avatar must be a base64 string"
                )
            )
        return issues

    @staticmethod
    def _check_links(payload: ChainedPayload) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        links = (
            ("prev_tx_id", payload.prev_tx_id, "INVALID_PREV_TX_ID"),
            ("last_subscribe", payload.last_subscribe_id, "INVALID_SUBSCRIBE_ID"),
            ("start_tx_id", payload.start_tx_id, "INVALID_START_TX_ID"),
        )
        for field_name, value, code in links:
            if value is not None and not is_valid_transaction_id(value):
                issues.append(
                    ValidationIssue(
                        field_name, code, f"Invalid transaction ID format in {field_name}"
                    )
                )
        return issues

    @staticmethod
    def _check_parent(parent_id: str) -> list[ValidationIssue]:
        if not is_valid_transaction_id(parent_id):
            return [
                ValidationIssue(
                    "parent_id", "INVALID_PARENT_ID", "Invalid transaction ID format"
                )
            ]
        return []

    @staticmethod
    def _check_text(
        content: str, max_length: int | None, label: str
    ) -> list[ValidationIssue]:
        if not content.strip():
            return [
                ValidationIssue(
                    "content", "EMPTY_CONTENT", f"{label} content cannot be empty"
                )
            ]
        if max_length is not None and len(content) > max_length:
            return [
                ValidationIssue(
                    "content",
                    "CONTENT_TOO_LONG",
                    f"{label} too long (max {max_length} characters)",
                )
            ]
        return []

    def _check_story(self, payload: StoryPayload) -> list[ValidationIssue]:
        issues = self._check_text(payload.content, None, "Story")
        params = payload.params
        if params.total is not None and params.segment > params.total:
            issues.append(
                ValidationIssue(
                    "params",
                    "INVALID_SEGMENT_RANGE",
                    "Segment number cannot exceed total segments",
                )
            )
        if params.segment > 1:
            if payload.parent_id is None:
                issues.append(
                    ValidationIssue(
                        "parent_id",
                        "MISSING_PARENT_ID",
                        "parent_id is required for non-first segments",
                    )
                )
            else:
                issues.extend(self._check_parent(payload.parent_id))
        elif payload.parent_id is not None:
            issues.append(
                ValidationIssue(
                    "parent_id",
                    "UNEXPECTED_PARENT_ID",
                    "The first segment cannot have a parent_id",
                )
            )
        return issues
