"""Publish state machine - sequential, resumable multi-segment story publishing.

Phases:
    IDLE -> PUBLISHING(i of N) -> CONFIRMING(i) | RETRYING(i, attempt)
         -> SUCCEEDED | FAILED(retryable | permanent) | CANCELLED

Segments are submitted strictly one after another: segment i+1 links to
segment i through parent_id, so it cannot be built before segment i's
transaction id is known. At most one publish runs per machine.

The machine owns at most one PublishState. It is kept after a resumable
failure, so retry() continues at the first segment without a recorded
transaction id, and discarded on success, on a permanent failure and on
cancel(). Segments already submitted are never resubmitted and never
rolled back; they stay valid on-chain.

Usage:
    machine = PublishStateMachine(submitter, traversal, chunker, time_authority)
    story = await machine.publish(text)

    # after a PublishFailedError with retryable=True
    story = await machine.retry()
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import contextmanager

from verum.application.ports.indexer import IndexerPort
from verum.application.ports.publish_state_repository import PublishStateRepository
from verum.application.ports.time_authority import TimeAuthorityProtocol
from verum.application.services.base import LoggingMixin
from verum.application.services.chain_traversal_service import ChainTraversalService
from verum.application.services.transaction_submitter import TransactionSubmitter
from verum.config.protocol_config import PublishConfig
from verum.domain.errors.publish import (
    EmptyContentError,
    NoPublishInProgressError,
    PublishCancelledError,
    PublishContentMismatchError,
    PublishFailedError,
    PublishInProgressError,
    UnauthenticatedError,
)
from verum.domain.errors.sender import IndexerError
from verum.domain.exceptions import VerumError
from verum.domain.models.chain import ChainPointers
from verum.domain.models.publish import (
    IDLE_PROGRESS,
    PublishPhase,
    PublishProgress,
    PublishState,
)
from verum.domain.models.story import Story, StorySegment
from verum.domain.services.content_chunker import ContentChunker
from verum.domain.services.payload_builder import PayloadBuilder
from verum.infrastructure.monitoring.publish_metrics import PublishMetricsCollector
from verum.infrastructure.observability.correlation import ensure_correlation_id

ProgressListener = Callable[[PublishProgress], None]

TERMINAL_PHASES = frozenset(
    {PublishPhase.SUCCEEDED, PublishPhase.FAILED, PublishPhase.CANCELLED}
)


class PublishStateMachine(LoggingMixin):
    """Drives one story publish at a time through the sender.

    Attributes:
        progress: Latest PublishProgress snapshot.
        state: Resumable state of the current or failed publish, if any.
    """

    def __init__(
        self,
        submitter: TransactionSubmitter,
        traversal: ChainTraversalService,
        chunker: ContentChunker,
        time_authority: TimeAuthorityProtocol,
        config: PublishConfig | None = None,
        indexer: IndexerPort | None = None,
        repository: PublishStateRepository | None = None,
        builder: PayloadBuilder | None = None,
        metrics: PublishMetricsCollector | None = None,
    ) -> None:
        """Initialize the state machine.

        Args:
            submitter: Submits each segment with retries.
            traversal: Resolves the author's chain heads for segment 1.
            chunker: Splits content into segments.
            time_authority: Clock and sleep for confirmation waits.
            config: Publish tuning. Defaults to PublishConfig().
            indexer: Needed only when waiting for confirmations.
            repository: Optional storage for resumable state.
            builder: Payload builder. Defaults to one stamped by time_authority.
            metrics: Optional metrics collector.
        """
        self._submitter = submitter
        self._traversal = traversal
        self._chunker = chunker
        self._time = time_authority
        self._config = config or PublishConfig()
        self._indexer = indexer
        self._repository = repository
        self._builder = builder or PayloadBuilder(clock=time_authority.now)
        self._metrics = metrics

        self._state: PublishState | None = None
        self._progress: PublishProgress = IDLE_PROGRESS
        self._listeners: list[ProgressListener] = []
        self._running = False
        self._cancel_requested = False
        self._init_logger(component="publisher")

    @property
    def progress(self) -> PublishProgress:
        """Latest progress snapshot."""
        return self._progress

    @property
    def state(self) -> PublishState | None:
        """Resumable state, or None when nothing is pending."""
        return self._state

    @property
    def is_running(self) -> bool:
        """True while publish() or retry() is submitting segments."""
        return self._running

    @property
    def has_incomplete_publish(self) -> bool:
        """True if a stopped publish can be resumed with retry()."""
        return self._state is not None and not self._running

    def incomplete_publish_info(self) -> tuple[int, int] | None:
        """Return (completed, total) segments of a resumable publish."""
        if not self.has_incomplete_publish:
            return None
        assert self._state is not None
        return len(self._state.completed_segments), self._state.total_segments

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a progress listener.

        Args:
            listener: Called with every new PublishProgress.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def watch(self) -> AsyncIterator[PublishProgress]:
        """Yield progress updates until the next terminal phase.

        Only updates emitted after the call are yielded.
        """
        queue: asyncio.Queue[PublishProgress] = asyncio.Queue()
        unsubscribe = self.subscribe(queue.put_nowait)
        try:
            while True:
                progress = await queue.get()
                yield progress
                if progress.phase in TERMINAL_PHASES:
                    return
        finally:
            unsubscribe()

    async def restore(self) -> bool:
        """Load resumable state left by an earlier process.

        Returns:
            True if a stored publish was restored.

        Raises:
            PublishInProgressError: If a publish is running.
            PublishStateStorageError: If stored state is unreadable.
        """
        self._reject_if_running()
        if self._repository is None:
            return False
        state = await self._repository.load()
        if state is None:
            return False
        self._state = state
        self._log.info(
            "publish_state_restored",
            completed=len(state.completed_segments),
            total=state.total_segments,
        )
        self._emit(
            phase=PublishPhase.FAILED,
            current_segment=len(state.completed_segments),
            total_segments=state.total_segments,
            error="Interrupted publish restored",
            can_retry=True,
        )
        return True

    async def publish(self, content: str) -> Story:
        """Publish content as a story.

        If a stopped publish of the same content is pending it is resumed
        instead. A pending publish of other content is discarded.

        Args:
            content: Story text.

        Returns:
            The published story.

        Raises:
            PublishInProgressError: If a publish is already running.
            EmptyContentError: If content is blank.
            UnauthenticatedError: If the sender has no address.
            ContentTooLargeError: If content needs too many segments.
            PublishFailedError: If a segment could not be submitted.
            PublishCancelledError: If cancel() stopped the publish.
        """
        with self._exclusive():
            ensure_correlation_id()
            log = self._log_operation("publish")

            if self._state is not None:
                if self._state.matches(content):
                    log.info(
                        "resuming_matching_publish",
                        completed=len(self._state.completed_segments),
                    )
                    return await self._resume(self._state)
                log.info("discarding_incomplete_publish")
                await self._discard()

            if not content.strip():
                raise EmptyContentError()
            address = await self._require_address()

            try:
                chunks = self._chunker.split(content)
            except VerumError as e:
                self._emit(phase=PublishPhase.FAILED, error=str(e), can_retry=False)
                raise

            state = PublishState.start(content, chunks, address)
            log.info("publish_started", total_segments=state.total_segments)
            await self._store(state)
            return await self._run(state)

    async def retry(self, content: str | None = None) -> Story:
        """Resume the stopped publish at its first unsubmitted segment.

        Args:
            content: Optional content to check against the stopped publish.

        Returns:
            The published story.

        Raises:
            PublishInProgressError: If a publish is running.
            NoPublishInProgressError: If nothing can be resumed.
            PublishContentMismatchError: If content differs from the
                stopped publish.
            PublishFailedError: If a segment could not be submitted.
        """
        with self._exclusive():
            if self._state is None:
                raise NoPublishInProgressError()
            if content is not None and not self._state.matches(content):
                raise PublishContentMismatchError()
            ensure_correlation_id()
            return await self._resume(self._state)

    async def cancel(self) -> None:
        """Stop the publish and discard its state.

        A running publish stops before its next attempt, never during a
        submission. Submitted segments remain on-chain.
        """
        if self._running:
            self._cancel_requested = True
            self._log.info("publish_cancel_requested")
            return
        if self._state is not None:
            state = self._state
            await self._discard()
            self._emit(
                phase=PublishPhase.CANCELLED,
                current_segment=len(state.completed_segments),
                total_segments=state.total_segments,
            )

    async def clear(self) -> None:
        """Forget any stopped publish and return to idle.

        Raises:
            PublishInProgressError: If a publish is running.
        """
        self._reject_if_running()
        await self._discard()
        self._progress = IDLE_PROGRESS

    async def _resume(self, state: PublishState) -> Story:
        address = await self._require_address()
        if address != state.author_address:
            raise UnauthenticatedError(
                "Connected address does not match the interrupted publish"
            )
        self._log.info(
            "publish_resumed",
            next_segment=state.next_segment_index,
            total=state.total_segments,
        )
        return await self._run(state)

    async def _run(self, state: PublishState) -> Story:
        """Submit every remaining segment of state."""
        self._state = state
        pointers: ChainPointers | None = None

        try:
            while not state.is_finished:
                self._check_cancelled(state)
                chunk = state.next_chunk()
                index = chunk.segment_index
                self._emit(
                    phase=PublishPhase.PUBLISHING,
                    current_segment=index,
                    total_segments=state.total_segments,
                    attempt=1,
                )

                if pointers is None:
                    pointers = await self._traversal.latest_pointers(
                        state.author_address
                    )
                payload = self._builder.story_segment(
                    chunk, pointers, parent_id=state.last_chain_ref
                )
                result = await self._submitter.submit(
                    payload,
                    state.author_address,
                    segment_index=index,
                    on_attempt=self._attempt_hook(state, index),
                )

                state = state.with_segment(
                    StorySegment(
                        tx_id=result.tx_id,
                        author_address=state.author_address,
                        content=chunk.content,
                        timestamp=payload.timestamp,
                        segment_index=index,
                        total_segments=chunk.total,
                        is_final=chunk.is_final,
                        parent_id=payload.parent_id,
                    )
                )
                await self._store(state)

                if not state.is_finished:
                    await self._wait_between_segments(result.tx_id, index, state)

        except PublishCancelledError:
            await self._discard()
            self._emit(
                phase=PublishPhase.CANCELLED,
                current_segment=len(state.completed_segments),
                total_segments=state.total_segments,
            )
            self._log.info(
                "publish_cancelled",
                completed=len(state.completed_segments),
                total=state.total_segments,
            )
            raise
        except VerumError as e:
            raise await self._fail(state, e) from e

        story = Story(
            first_segment_id=state.completed_segments[0].tx_id,
            author_address=state.author_address,
            segments=state.completed_segments,
            declared_total=state.total_segments,
            is_complete=True,
        )
        await self._discard()
        self._emit(
            phase=PublishPhase.SUCCEEDED,
            current_segment=state.total_segments,
            total_segments=state.total_segments,
            is_complete=True,
        )
        if self._metrics is not None:
            self._metrics.record_story_published()
        self._log.info(
            "story_published",
            first_segment_id=story.first_segment_id,
            segments=len(story.segments),
        )
        return story

    async def _fail(self, state: PublishState, error: VerumError) -> PublishFailedError:
        """Record a failure and build the error to raise."""
        classification = self._submitter.retry_policy.classify(error)
        completed = len(state.completed_segments)
        resumable = not classification.is_permanent

        if resumable:
            self._state = state
        else:
            await self._discard()

        self._emit(
            phase=PublishPhase.FAILED,
            current_segment=completed,
            total_segments=state.total_segments,
            error=str(error),
            can_retry=resumable,
        )
        if self._metrics is not None:
            self._metrics.record_publish_failure(resumable)
        self._log.warning(
            "publish_failed",
            completed=completed,
            total=state.total_segments,
            failure_class=classification.failure_class.value,
            reason=classification.reason,
            resumable=resumable,
            error=str(error),
        )
        return PublishFailedError(
            reason=str(error),
            retryable=resumable,
            completed_segments=completed,
            total_segments=state.total_segments,
        )

    def _attempt_hook(self, state: PublishState, index: int) -> Callable[[int], None]:
        """Return the per-attempt callback for one segment."""

        def on_attempt(attempt: int) -> None:
            if attempt == 1:
                return
            self._check_cancelled(state)
            self._emit(
                phase=PublishPhase.RETRYING,
                current_segment=index,
                total_segments=state.total_segments,
                attempt=attempt,
            )

        return on_attempt

    def _check_cancelled(self, state: PublishState) -> None:
        if self._cancel_requested:
            raise PublishCancelledError(
                completed_segments=len(state.completed_segments),
                total_segments=state.total_segments,
            )

    async def _wait_between_segments(
        self, tx_id: str, index: int, state: PublishState
    ) -> None:
        if self._config.wait_for_confirmation and self._indexer is not None:
            self._emit(
                phase=PublishPhase.CONFIRMING,
                current_segment=index,
                total_segments=state.total_segments,
            )
            await self._wait_for_confirmation(tx_id)
        elif self._config.settle_delay > 0:
            await self._time.sleep(self._config.settle_delay)

    async def _wait_for_confirmation(self, tx_id: str) -> bool:
        """Poll the indexer until tx_id is accepted or the wait times out."""
        assert self._indexer is not None
        deadline = self._time.monotonic() + self._config.confirmation_timeout
        poll = 0
        while True:
            remaining = deadline - self._time.monotonic()
            if remaining <= 0:
                self._log.warning(
                    "confirmation_timeout",
                    tx_id=tx_id,
                    timeout_seconds=self._config.confirmation_timeout,
                )
                return False
            await self._time.sleep(min(self._config.poll_interval(poll), remaining))
            poll += 1
            try:
                tx = await self._indexer.fetch_by_id(tx_id)
            except IndexerError as e:
                self._log.debug("confirmation_poll_failed", tx_id=tx_id, error=str(e))
                continue
            if tx is not None and tx.accepted:
                self._log.debug("segment_confirmed", tx_id=tx_id, polls=poll)
                return True

    async def _require_address(self) -> str:
        address = await self._submitter.sender.get_address()
        if not address:
            raise UnauthenticatedError()
        return address

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold the running flag for one publish() or retry() call.

        The flag is set before the first await, so a second call made while
        this one is suspended is rejected.
        """
        self._reject_if_running()
        self._running = True
        self._cancel_requested = False
        try:
            yield
        finally:
            self._running = False
            self._cancel_requested = False

    def _reject_if_running(self) -> None:
        if self._running:
            raise PublishInProgressError(
                current_segment=self._progress.current_segment,
                total_segments=self._progress.total_segments,
            )

    async def _store(self, state: PublishState) -> None:
        self._state = state
        if self._repository is not None:
            await self._repository.save(state)

    async def _discard(self) -> None:
        self._state = None
        if self._repository is not None:
            await self._repository.clear()

    def _emit(self, phase: PublishPhase, **fields: object) -> None:
        """Publish a new progress snapshot to every listener."""
        progress = PublishProgress(
            phase=phase,
            max_attempts=self._submitter.retry_policy.max_attempts,
            **fields,  # type: ignore[arg-type]
        )
        self._progress = progress
        for listener in list(self._listeners):
            try:
                listener(progress)
            except Exception:
                self._log.exception("progress_listener_failed", phase=phase.value)
