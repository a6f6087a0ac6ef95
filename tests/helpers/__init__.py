"""Test helpers for Verum tests.

This package contains reusable test utilities and fake implementations
for dependency injection in unit tests.

Helpers:
    FakeTimeAuthority: Controllable time authority for deterministic tests
    make_address, make_tx_id, make_transaction: Valid protocol values

Usage:
    from tests.helpers import FakeTimeAuthority, make_address
"""

from tests.helpers.factories import (
    BASE_TIME,
    make_address,
    make_transaction,
    make_tx_id,
    raw_transaction,
)
from tests.helpers.fake_time_authority import FakeTimeAuthority

__all__ = [
    "BASE_TIME",
    "FakeTimeAuthority",
    "make_address",
    "make_transaction",
    "make_tx_id",
    "raw_transaction",
]
