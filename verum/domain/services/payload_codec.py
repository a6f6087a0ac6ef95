"""Payload codec for the transaction opaque-data attachment.

Payloads travel as compact UTF-8 JSON. Indexers report the attachment
either as that JSON or as hex of the output script, which starts with an
OP_RETURN marker (0x6a) and a push length before the JSON bytes.

Usage:
    codec = PayloadCodec()
    raw = codec.encode(payload)
    codec.encoded_size(payload) == len(raw)
    payload = codec.decode(raw)
    codec.try_decode(b"not a payload")  # None
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from verum.domain.constants import SUPPORTED_VERSIONS
from verum.domain.errors.payload import PayloadDecodeError
from verum.domain.payloads import Payload, parse_payload

_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{2})+$")

# Wire keys that lead every payload, in this order
_LEADING_KEYS = ("verum", "type", "content")


class PayloadCodec:
    """Encodes payloads to wire bytes and decodes them back.

    Attributes:
        _supported_versions: Protocol versions accepted by decode().
    """

    def __init__(self, supported_versions: tuple[str, ...] = SUPPORTED_VERSIONS) -> None:
        """Initialize the codec.

        Args:
            supported_versions: Protocol versions accepted by decode().
        """
        self._supported_versions = supported_versions

    def to_wire_dict(self, payload: Payload) -> dict[str, Any]:
        """Return the wire representation as an ordered mapping.

        Absent optional fields are omitted; content is always present and
        is null only for likes.
        """
        data = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        wire: dict[str, Any] = {key: data.pop(key, None) for key in _LEADING_KEYS}
        wire.update(data)
        return wire

    def encode(self, payload: Payload) -> bytes:
        """Serialize a payload to compact UTF-8 JSON."""
        return json.dumps(
            self.to_wire_dict(payload),
            separators=(",", ":"),
            ensure_ascii=False,
        ).encode("utf-8")

    def encoded_size(self, payload: Payload) -> int:
        """Return the exact serialized size of a payload in bytes."""
        return len(self.encode(payload))

    def decode(self, raw: bytes | str) -> Payload:
        """Decode raw transaction data into a payload.

        Accepts raw UTF-8 JSON, or hex with an optional 0x prefix and an
        optional OP_RETURN script header. The first JSON object found is
        validated against the payload union.

        Args:
            raw: Opaque-data attachment as bytes or text.

        Returns:
            The decoded payload variant.

        Raises:
            PayloadDecodeError: If no supported payload can be read.
        """
        data = self._to_bytes(raw)
        start = data.find(b"{")
        end = data.rfind(b"}")
        if start < 0 or end < start:
            raise PayloadDecodeError("no JSON object found", _preview(data))
        try:
            text = data[start : end + 1].decode("utf-8")
            obj = json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PayloadDecodeError(f"invalid JSON: {e}", _preview(data)) from e
        if not isinstance(obj, dict):
            raise PayloadDecodeError("JSON value is not an object", _preview(data))

        version = obj.get("verum")
        if not isinstance(version, str):
            raise PayloadDecodeError("missing protocol version", _preview(data))
        if version not in self._supported_versions:
            raise PayloadDecodeError(
                f"unsupported protocol version {version!r}", _preview(data)
            )
        try:
            return parse_payload(obj)
        except ValidationError as e:
            raise PayloadDecodeError(
                f"schema mismatch for type {obj.get('type')!r}: "
                f"{e.error_count()} error(s)",
                _preview(data),
            ) from e

    def try_decode(self, raw: bytes | str | None) -> Payload | None:
        """Decode raw transaction data, returning None if it is not a payload."""
        if raw is None:
            return None
        try:
            return self.decode(raw)
        except PayloadDecodeError:
            return None

    @staticmethod
    def _to_bytes(raw: bytes | str) -> bytes:
        """Normalize input to bytes, unwrapping hex when the whole input is hex."""
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        candidate = text.strip()
        if candidate.startswith(("0x", "0X")):
            candidate = candidate[2:]
        if candidate and _HEX_RE.match(candidate):
            return bytes.fromhex(candidate)
        if isinstance(raw, bytes):
            return raw
        return raw.encode("utf-8")


def _preview(data: bytes) -> str:
    """Return a short printable prefix of raw data for error messages."""
    return data[:64].decode("utf-8", errors="replace")
