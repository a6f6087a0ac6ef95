"""Application ports for Verum.

Interfaces to the external collaborators: sender (wallet), indexer,
fee oracle, health probe, publish state storage and time.
"""

from verum.application.ports.fee_oracle import FeeOraclePort
from verum.application.ports.health_probe import HealthProbePort
from verum.application.ports.indexer import IndexerPort
from verum.application.ports.publish_state_repository import PublishStateRepository
from verum.application.ports.sender import TransactionSenderPort
from verum.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = [
    "FeeOraclePort",
    "HealthProbePort",
    "IndexerPort",
    "PublishStateRepository",
    "TimeAuthorityProtocol",
    "TransactionSenderPort",
]
