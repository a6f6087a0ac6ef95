"""Transaction submitter - one logical submission with retries.

Wraps a single payload submission: sizes the payment through the fee
oracle, scales the priority fee with the payload size, probes sender
health before late story segments, and retries transient failures of
the same payload with a progressive delay.

The submitter never changes the payload between attempts. A failure
that outlives the retry budget is re-raised unchanged so the caller can
classify it with the same RetryPolicy.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from verum.application.ports.fee_oracle import FeeOraclePort
from verum.application.ports.health_probe import HealthProbePort
from verum.application.ports.sender import TransactionSenderPort
from verum.application.ports.time_authority import TimeAuthorityProtocol
from verum.application.services.base import LoggingMixin
from verum.config.protocol_config import PublishConfig
from verum.domain.constants import MAX_PAYLOAD_BYTES, SOMPI_PER_KAS
from verum.domain.errors.payload import PayloadTooLargeError
from verum.domain.errors.sender import SenderError
from verum.domain.payloads import Payload, payload_kind
from verum.domain.services.payload_codec import PayloadCodec
from verum.domain.services.retry_policy import RetryPolicy
from verum.infrastructure.monitoring.publish_metrics import PublishMetricsCollector


@dataclass(frozen=True, eq=True)
class SubmissionResult:
    """Outcome of a successful submission.

    Attributes:
        tx_id: Transaction id returned by the sender.
        attempts: Attempts used, including the successful one.
        amount: Payment in sompi.
        priority_fee: Priority fee in sompi.
        payload_size: Encoded payload size in bytes.
    """

    tx_id: str
    attempts: int
    amount: int
    priority_fee: int
    payload_size: int


def kas_to_sompi(amount: Decimal) -> int:
    """Convert a KAS amount to whole sompi, rounding down."""
    return int(amount * SOMPI_PER_KAS)


class TransactionSubmitter(LoggingMixin):
    """Submits payloads through the sender with fee sizing and retries.

    Example:
        >>> submitter = TransactionSubmitter(sender, fee_oracle, time_authority)
        >>> result = await submitter.submit(payload, recipient_address=address)
        >>> result.tx_id
    """

    def __init__(
        self,
        sender: TransactionSenderPort,
        fee_oracle: FeeOraclePort,
        time_authority: TimeAuthorityProtocol,
        config: PublishConfig | None = None,
        health_probe: HealthProbePort | None = None,
        retry_policy: RetryPolicy | None = None,
        codec: PayloadCodec | None = None,
        metrics: PublishMetricsCollector | None = None,
        max_payload_bytes: int = MAX_PAYLOAD_BYTES,
    ) -> None:
        """Initialize the submitter.

        Args:
            sender: Wallet boundary.
            fee_oracle: Payment sizing per action kind.
            time_authority: Clock and sleep for retry delays.
            config: Publish tuning. Defaults to PublishConfig().
            health_probe: Optional sender health probe.
            retry_policy: Failure classification. Built from config if omitted.
            codec: Payload codec.
            metrics: Optional metrics collector.
            max_payload_bytes: Hard ceiling for encoded payloads.
        """
        self._sender = sender
        self._fee_oracle = fee_oracle
        self._time = time_authority
        self._config = config or PublishConfig()
        self._health_probe = health_probe
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=self._config.max_attempts,
            base_delay=self._config.base_retry_delay,
            index_step=self._config.retry_index_step,
            max_delay=self._config.max_retry_delay,
        )
        self._codec = codec or PayloadCodec()
        self._metrics = metrics
        self._max_payload_bytes = max_payload_bytes
        self._init_logger(component="publisher")

    @property
    def sender(self) -> TransactionSenderPort:
        """The sender transactions go through."""
        return self._sender

    @property
    def retry_policy(self) -> RetryPolicy:
        """Policy used to classify failures."""
        return self._retry_policy

    def priority_fee_for(self, payload_size: int) -> int:
        """Return the priority fee in sompi for a payload of this size."""
        steps = max(1, payload_size // self._config.priority_fee_step_bytes)
        return min(self._config.base_priority_fee * steps, self._config.max_priority_fee)

    async def submit(
        self,
        payload: Payload,
        recipient_address: str,
        *,
        segment_index: int = 1,
        on_attempt: Callable[[int], None] | None = None,
    ) -> SubmissionResult:
        """Submit a payload, retrying transient failures.

        Args:
            payload: Payload to embed.
            recipient_address: Address receiving the payment.
            segment_index: 1-based story segment index, 1 for single actions.
                Scales retry delays and gates the health probe.
            on_attempt: Called with the attempt number before each attempt.
                May raise to stop further attempts.

        Returns:
            SubmissionResult for the accepted transaction.

        Raises:
            PayloadTooLargeError: If the encoded payload exceeds the ceiling.
            SenderError: The last failure once retries are exhausted or the
                failure is not retryable.
        """
        raw = self._codec.encode(payload)
        if len(raw) > self._max_payload_bytes:
            raise PayloadTooLargeError(size=len(raw), limit=self._max_payload_bytes)

        kind = payload_kind(payload)
        amount = kas_to_sompi(await self._fee_oracle.amount_for(kind))
        priority_fee = self.priority_fee_for(len(raw))
        log = self._log_operation(
            "submit",
            kind=kind.value,
            segment_index=segment_index,
            payload_size=len(raw),
        )

        await self._probe_health(segment_index)

        attempt = 0
        while True:
            attempt += 1
            if on_attempt is not None:
                on_attempt(attempt)
            started = self._time.monotonic()
            try:
                tx_id = await self._sender.submit(
                    raw, recipient_address, amount, priority_fee
                )
            except SenderError as e:
                classification = self._retry_policy.classify(e)
                if not self._retry_policy.should_retry(classification, attempt):
                    log.warning(
                        "submission_failed",
                        attempt=attempt,
                        failure_class=classification.failure_class.value,
                        reason=classification.reason,
                        error=str(e),
                    )
                    raise
                delay = self._retry_policy.delay_for(attempt, segment_index)
                log.info(
                    "segment_retry_scheduled",
                    attempt=attempt,
                    reason=classification.reason,
                    delay_seconds=delay,
                )
                if self._metrics is not None:
                    self._metrics.record_retry(classification.reason)
                await self._time.sleep(delay)
                continue

            if self._metrics is not None:
                self._metrics.record_segment_submitted(
                    self._time.monotonic() - started
                )
            log.info("segment_submitted", tx_id=tx_id, attempt=attempt)
            return SubmissionResult(
                tx_id=tx_id,
                attempts=attempt,
                amount=amount,
                priority_fee=priority_fee,
                payload_size=len(raw),
            )

    async def _probe_health(self, segment_index: int) -> None:
        """Probe the sender before late segments and slow down if it lags."""
        threshold = self._config.health_probe_after_segment
        if self._health_probe is None or threshold is None:
            return
        if segment_index <= threshold:
            return
        try:
            latency = await self._health_probe.ping()
        except Exception as e:
            self._log.warning(
                "health_probe_failed", segment_index=segment_index, error=str(e)
            )
            return
        if latency > self._config.slow_probe_threshold:
            self._log.info(
                "sender_slow",
                latency_seconds=latency,
                extra_delay_seconds=self._config.slow_probe_extra_delay,
            )
            await self._time.sleep(self._config.slow_probe_extra_delay)
