"""Chain errors for reconstruction and social actions.

IncompleteChainError is non-fatal. Reconstruction records it next to its
output instead of raising, so one broken chain never hides the others.
"""

from __future__ import annotations

from verum.domain.exceptions import VerumError


class IncompleteChainError(VerumError):
    """Describes a reference chain that could not be closed.

    The affected item is omitted from this reconstruction pass and may
    appear on a later pass once more transactions are fetched.

    Attributes:
        root_id: First segment or entry point of the chain.
        author_address: Author of the chain, if known.
        reason: Why the chain is considered incomplete.
        missing_ids: Referenced transaction ids that were not found.
    """

    def __init__(
        self,
        root_id: str,
        reason: str,
        author_address: str | None = None,
        missing_ids: tuple[str, ...] = (),
    ) -> None:
        """Initialize incomplete chain description.

        Args:
            root_id: First segment or entry point of the chain.
            reason: Why the chain is considered incomplete.
            author_address: Author of the chain, if known.
            missing_ids: Referenced transaction ids that were not found.
        """
        self.root_id = root_id
        self.reason = reason
        self.author_address = author_address
        self.missing_ids = tuple(missing_ids)
        super().__init__(f"Incomplete chain {root_id}: {reason}")


class SelfSubscriptionError(VerumError):
    """Raised when an address tries to subscribe to itself.

    Attributes:
        address: The address that targeted itself.
    """

    def __init__(self, address: str) -> None:
        """Initialize self subscription error.

        Args:
            address: The address that targeted itself.
        """
        self.address = address
        super().__init__(f"Address {address} cannot subscribe to itself")
