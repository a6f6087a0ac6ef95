"""Validation issue model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, eq=True)
class ValidationIssue:
    """One protocol rule a payload breaks.

    Attributes:
        field: Payload field the issue is about (wire name).
        code: Stable machine-readable code, e.g. "PAYLOAD_TOO_LARGE".
        message: Human-readable description.
    """

    field: str
    code: str
    message: str
