"""In-memory stub implementations of the Verum ports.

Used by the test suite and by the offline CLI commands.
"""

from verum.infrastructure.stubs.fee_oracle_stub import FeeOracleStub
from verum.infrastructure.stubs.health_probe_stub import HealthProbeStub
from verum.infrastructure.stubs.indexer_stub import IndexerStub
from verum.infrastructure.stubs.publish_state_repository_stub import (
    PublishStateRepositoryStub,
)
from verum.infrastructure.stubs.sender_stub import SenderStub, SubmittedTransaction

__all__: list[str] = [
    "FeeOracleStub",
    "HealthProbeStub",
    "IndexerStub",
    "PublishStateRepositoryStub",
    "SenderStub",
    "SubmittedTransaction",
]
