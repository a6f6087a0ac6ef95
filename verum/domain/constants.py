"""Protocol constants for the Verum wire format.

These values are fixed by the live protocol. Operational tuning knobs
(segment ceilings, retry delays, scan limits) live in verum.config instead.
"""

from __future__ import annotations

import re

# Version written into every new payload
VERUM_VERSION = "0.3"

# Versions a reader accepts; older payloads stay readable forever
SUPPORTED_VERSIONS: tuple[str, ...] = ("0.1", "0.2", "0.3")

# August 1, 2025 00:00:00 UTC. Nothing older can belong to a chain.
VERUM_PROTOCOL_CREATION_DATE = 1722470400

# Hard ceiling on the serialized payload
MAX_PAYLOAD_BYTES = 1000

MAX_POST_LENGTH = 500
MAX_COMMENT_LENGTH = 300
MAX_NICKNAME_LENGTH = 50

# Allowed clock skew for payload timestamps
MAX_FUTURE_SKEW_SECONDS = 5 * 60

SOMPI_PER_KAS = 100_000_000

TRANSACTION_ID_PATTERN = re.compile(r"^[a-f0-9]{64}$", re.IGNORECASE)
ADDRESS_PATTERN = re.compile(r"^kaspa(test|dev)?:[a-z0-9]{61,63}$")


def is_supported_version(version: str) -> bool:
    """Return True if payloads of this protocol version can be read."""
    return version in SUPPORTED_VERSIONS


def is_valid_transaction_id(tx_id: str) -> bool:
    """Return True if tx_id is a 64 character hex transaction id."""
    return bool(TRANSACTION_ID_PATTERN.match(tx_id))


def is_valid_address(address: str) -> bool:
    """Return True if address looks like a Kaspa address."""
    return bool(ADDRESS_PATTERN.match(address))
