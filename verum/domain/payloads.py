"""Verum payload wire schema.

Every social action is one payload embedded in a transaction's
opaque-data field. Payloads are modelled as a tagged union keyed by
kind, so each variant carries exactly the fields that are valid for it.

Wire keys follow the live protocol: the version is written as "verum",
the kind as "type" and the subscription pointer as "last_subscribe".
Models accept either the wire key or the Python field name.

Usage:
    from verum.domain.payloads import PostPayload, parse_payload

    post = PostPayload(version="0.3", timestamp=1722470500, content="hello")
    payload = parse_payload({"verum": "0.3", "type": "post", ...})
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class PayloadKind(str, Enum):
    """Transaction kinds defined by the protocol."""

    START = "start"
    POST = "post"
    COMMENT = "comment"
    LIKE = "like"
    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"
    STORY = "story"
    NOTE = "note"


class StoryParams(BaseModel):
    """Segment metadata carried by every story payload.

    Attributes:
        segment: 1-based position of this segment in its story.
        total: Declared number of segments. Advisory; older stories omit it.
        is_final: True on the last segment of a story.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    segment: int = Field(ge=1, description="1-based segment index")
    total: int | None = Field(default=None, ge=1, description="Declared total")
    is_final: bool = Field(default=False, description="Last segment marker")


class _BasePayload(BaseModel):
    """Fields shared by every payload variant."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    version: str = Field(alias="verum", description="Protocol version")
    timestamp: int = Field(description="Author clock, Unix seconds")


class _ChainedPayload(_BasePayload):
    """Payload that links into its author's transaction chains."""

    prev_tx_id: str | None = Field(
        default=None, description="Author's previous transaction"
    )
    last_subscribe_id: str | None = Field(
        default=None,
        alias="last_subscribe",
        description="Author's previous subscribe or unsubscribe",
    )
    start_tx_id: str | None = Field(
        default=None, description="Author's start transaction (v0.2+)"
    )


class StartPayload(_BasePayload):
    """Profile creation. Content is the profile as a JSON string."""

    kind: Literal["start"] = Field(default="start", alias="type")
    content: str


class PostPayload(_ChainedPayload):
    """Short text post."""

    kind: Literal["post"] = Field(default="post", alias="type")
    content: str


class CommentPayload(_ChainedPayload):
    """Comment on a post or on the first segment of a story."""

    kind: Literal["comment"] = Field(default="comment", alias="type")
    content: str
    parent_id: str


class LikePayload(_ChainedPayload):
    """Like of a post or story. Carries no content."""

    kind: Literal["like"] = Field(default="like", alias="type")
    content: None = None
    parent_id: str


class SubscribePayload(_ChainedPayload):
    """Subscription to the address held in content."""

    kind: Literal["subscribe"] = Field(default="subscribe", alias="type")
    content: str


class UnsubscribePayload(_ChainedPayload):
    """Cancellation of the subscription to the address held in content."""

    kind: Literal["unsubscribe"] = Field(default="unsubscribe", alias="type")
    content: str


class StoryPayload(_ChainedPayload):
    """One segment of a long-form story.

    The first segment links into the author's chains; continuations link
    to their predecessor segment through parent_id.
    """

    kind: Literal["story"] = Field(default="story", alias="type")
    content: str
    parent_id: str | None = None
    params: StoryParams


class NotePayload(_ChainedPayload):
    """Private note. Content is ciphertext and opaque to the protocol."""

    kind: Literal["note"] = Field(default="note", alias="type")
    content: str


Payload = Annotated[
    Union[
        StartPayload,
        PostPayload,
        CommentPayload,
        LikePayload,
        SubscribePayload,
        UnsubscribePayload,
        StoryPayload,
        NotePayload,
    ],
    Field(discriminator="kind"),
]

ChainedPayload = Union[
    PostPayload,
    CommentPayload,
    LikePayload,
    SubscribePayload,
    UnsubscribePayload,
    StoryPayload,
    NotePayload,
]

_PAYLOAD_ADAPTER: TypeAdapter[Any] = TypeAdapter(Payload)

SUBSCRIPTION_KINDS = frozenset({PayloadKind.SUBSCRIBE, PayloadKind.UNSUBSCRIBE})


def parse_payload(data: dict[str, Any]) -> Payload:
    """Validate a decoded JSON object against the payload union.

    Args:
        data: JSON object using wire keys.

    Returns:
        The payload variant selected by the "type" key.

    Raises:
        pydantic.ValidationError: If the object matches no variant.
    """
    return _PAYLOAD_ADAPTER.validate_python(data)


def payload_kind(payload: Payload) -> PayloadKind:
    """Return the kind of a payload as an enum member."""
    return PayloadKind(payload.kind)
