"""Chain traversal service - walks an author's transaction chains backwards.

An author's protocol transactions form two interleaved backward-linked
lists. prev_tx_id links every action to the previous one (story
continuations link to their previous segment through parent_id instead),
and last_subscribe_id links subscribe and unsubscribe actions.

The walk starts from the author's most recent transaction in the indexer
window and follows pointers until the Start transaction, the hop limit,
or the time limit. A pointer to a transaction outside the window gets
exactly one supplemental fetch; if that fails too the walk stops and
reports itself truncated. Truncation is an expected outcome, not an error.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from verum.application.ports.indexer import IndexerPort
from verum.application.services.base import LoggingMixin
from verum.config.protocol_config import TraversalConfig
from verum.domain.errors.sender import IndexerError
from verum.domain.models.chain import ChainPointers, ChainWalk
from verum.domain.models.transaction import Transaction
from verum.domain.payloads import (
    SUBSCRIPTION_KINDS,
    Payload,
    PayloadKind,
    StartPayload,
    StoryPayload,
)
from verum.domain.services.payload_codec import PayloadCodec


@dataclass(frozen=True)
class _Entry:
    """A decoded transaction authored by the walked address."""

    tx: Transaction
    payload: Payload


def previous_link(payload: Payload) -> str | None:
    """Return the id of the author's action preceding this payload.

    Story continuations carry no prev_tx_id; their predecessor in the
    author's chain is the previous segment.
    """
    if isinstance(payload, StartPayload):
        return None
    if payload.prev_tx_id is not None:
        return payload.prev_tx_id
    if isinstance(payload, StoryPayload):
        return payload.parent_id
    return None


class ChainTraversalService(LoggingMixin):
    """Reads chain heads and walks chains for one address at a time.

    Reads are pure over the indexer snapshot and need no locking; repeated
    calls may return longer chains as the indexer catches up.

    Example:
        >>> traversal = ChainTraversalService(indexer)
        >>> pointers = await traversal.latest_pointers(address)
        >>> walk = await traversal.walk_chain(address, max_count=20)
        >>> walk.truncated
        False
    """

    def __init__(
        self,
        indexer: IndexerPort,
        codec: PayloadCodec | None = None,
        config: TraversalConfig | None = None,
    ) -> None:
        """Initialize the traversal service.

        Args:
            indexer: Source of transactions.
            codec: Payload codec for decoding attachments.
            config: Scan and walk limits.
        """
        self._indexer = indexer
        self._codec = codec or PayloadCodec()
        self._config = config or TraversalConfig()
        self._init_logger(component="reader")

    async def latest_pointers(self, address: str) -> ChainPointers:
        """Return the heads of an author's chains.

        Args:
            address: Author address.

        Returns:
            ChainPointers. All fields are None for an address without
            protocol transactions.

        Raises:
            IndexerError: If the indexer query failed.
        """
        log = self._log_operation("latest_pointers", address=address)
        entries = await self._fetch_authored(address, since_time=None)
        if not entries:
            log.debug("no_protocol_transactions")
            return ChainPointers()

        head = self._head(entries)
        pointers = ChainPointers(
            last_tx_id=head.tx.id,
            last_subscribe_id=self._latest_subscribe_id(entries),
            start_tx_id=self._start_tx_id(entries),
        )
        log.debug(
            "pointers_resolved",
            last_tx_id=pointers.last_tx_id,
            last_subscribe_id=pointers.last_subscribe_id,
            start_tx_id=pointers.start_tx_id,
        )
        return pointers

    async def walk_chain(
        self,
        address: str,
        max_count: int | None = None,
        since_time: int | None = None,
    ) -> ChainWalk:
        """Walk an author's activity and subscription chains backwards.

        Args:
            address: Author address.
            max_count: Maximum hops per chain. Defaults to the configured
                default_max_count.
            since_time: Stop at transactions with block_time before this.

        Returns:
            ChainWalk with both chains newest first.

        Raises:
            IndexerError: If the initial indexer query failed.
        """
        limit = self._config.default_max_count if max_count is None else max_count
        log = self._log_operation(
            "walk_chain", address=address, max_count=limit, since_time=since_time
        )

        entries = await self._fetch_authored(address, since_time=since_time)
        by_id = {entry.tx.id: entry for entry in entries}
        attempted: dict[str, _Entry | None] = {}
        missing: list[str] = []

        head = self._head(entries) if entries else None
        transactions = await self._follow(
            address,
            head.tx.id if head else None,
            by_id,
            attempted,
            missing,
            limit,
            since_time,
            previous_link,
        )

        subscription_head = next(
            (
                entry.tx.id
                for entry in entries
                if PayloadKind(entry.payload.kind) in SUBSCRIPTION_KINDS
            ),
            None,
        )
        if subscription_head is None:
            subscription_head = self._latest_subscribe_id(entries)
        subscriptions = await self._follow(
            address,
            subscription_head,
            by_id,
            attempted,
            missing,
            limit,
            since_time,
            self._previous_subscription,
        )

        walk = ChainWalk(
            address=address,
            transactions=tuple(transactions),
            subscription_transactions=tuple(subscriptions),
            truncated=bool(missing),
            missing_ids=tuple(dict.fromkeys(missing)),
        )
        log.info(
            "chain_walked",
            transactions=len(walk.transactions),
            subscriptions=len(walk.subscription_transactions),
            truncated=walk.truncated,
        )
        return walk

    async def _follow(
        self,
        address: str,
        start_id: str | None,
        by_id: dict[str, _Entry],
        attempted: dict[str, _Entry | None],
        missing: list[str],
        limit: int,
        since_time: int | None,
        link: Callable[[Payload], str | None],
    ) -> list[Transaction]:
        """Follow one chain from start_id using link to find predecessors."""
        chain: list[Transaction] = []
        visited: set[str] = set()
        current = start_id

        while current is not None and len(chain) < limit:
            if current in visited:
                self._log.warning("chain_cycle_detected", address=address, tx_id=current)
                break
            visited.add(current)

            entry = by_id.get(current)
            if entry is None:
                entry = await self._fetch_supplemental(address, current, attempted)
                if entry is None:
                    missing.append(current)
                    break
            if entry.tx.block_time < self._config.protocol_creation_time:
                break
            if since_time is not None and entry.tx.block_time < since_time:
                break

            chain.append(entry.tx)
            current = link(entry.payload)

        return chain

    async def _fetch_authored(
        self, address: str, since_time: int | None
    ) -> list[_Entry]:
        """Fetch the address's decodable, accepted protocol transactions."""
        raw = await self._indexer.fetch_by_address(
            address, self._config.scan_limit, since_time
        )
        entries = [
            entry
            for entry in (self._accept(address, tx) for tx in raw)
            if entry is not None
        ]
        entries.sort(
            key=lambda entry: (entry.tx.block_time, entry.payload.timestamp),
            reverse=True,
        )
        return entries

    async def _fetch_supplemental(
        self,
        address: str,
        tx_id: str,
        attempted: dict[str, _Entry | None],
    ) -> _Entry | None:
        """Fetch a referenced transaction once; later calls reuse the result."""
        if tx_id in attempted:
            return attempted[tx_id]
        try:
            tx = await self._indexer.fetch_by_id(tx_id)
        except IndexerError as e:
            self._log.warning(
                "supplemental_fetch_failed", address=address, tx_id=tx_id, error=str(e)
            )
            tx = None
        entry = self._accept(address, tx) if tx is not None else None
        attempted[tx_id] = entry
        if entry is None:
            self._log.info("chain_reference_missing", address=address, tx_id=tx_id)
        return entry

    def _accept(self, address: str, tx: Transaction) -> _Entry | None:
        """Return an entry if tx is an accepted protocol transaction by address."""
        if tx.author_address != address or not tx.accepted:
            return None
        if tx.block_time < self._config.protocol_creation_time:
            return None
        payload = self._codec.try_decode(tx.raw_payload)
        if payload is None:
            return None
        return _Entry(tx=tx, payload=payload)

    @staticmethod
    def _head(entries: list[_Entry]) -> _Entry:
        """Return the newest entry that no other entry points back to.

        Several transactions can share a block time; the chain links
        decide which one is the head.
        """
        referenced = {previous_link(entry.payload) for entry in entries}
        for entry in entries:
            if entry.tx.id not in referenced:
                return entry
        return entries[0]

    @staticmethod
    def _latest_subscribe_id(entries: list[_Entry]) -> str | None:
        for entry in entries:
            if PayloadKind(entry.payload.kind) in SUBSCRIPTION_KINDS:
                return entry.tx.id
        for entry in entries:
            pointer = getattr(entry.payload, "last_subscribe_id", None)
            if pointer is not None:
                return pointer
        return None

    @staticmethod
    def _start_tx_id(entries: list[_Entry]) -> str | None:
        for entry in entries:
            if isinstance(entry.payload, StartPayload):
                return entry.tx.id
        for entry in entries:
            pointer = getattr(entry.payload, "start_tx_id", None)
            if pointer is not None:
                return pointer
        return None

    @staticmethod
    def _previous_subscription(payload: Payload) -> str | None:
        if PayloadKind(payload.kind) not in SUBSCRIPTION_KINDS:
            return None
        return payload.last_subscribe_id
