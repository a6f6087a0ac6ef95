"""
Pytest configuration and shared fixtures for Verum tests.

Testing Standards:
- All async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Time is injected through FakeTimeAuthority; no test waits on the wall clock
- Collaborators are the in-memory stubs from verum.infrastructure.stubs
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from collections.abc import Iterator

import pytest
import structlog
from prometheus_client import CollectorRegistry

from tests.helpers import FakeTimeAuthority, make_address
from verum.application.services.chain_traversal_service import ChainTraversalService
from verum.application.services.transaction_submitter import TransactionSubmitter
from verum.config.protocol_config import TEST_PUBLISH_CONFIG, TEST_TRAVERSAL_CONFIG
from verum.infrastructure.monitoring.publish_metrics import PublishMetricsCollector
from verum.infrastructure.stubs import (
    FeeOracleStub,
    HealthProbeStub,
    IndexerStub,
    PublishStateRepositoryStub,
    SenderStub,
)


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo logging configuration made by a test (the CLI configures it)."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from verum import __version__

    return __version__


@pytest.fixture
def author() -> str:
    """Address of the publishing author."""
    return make_address("author")


@pytest.fixture
def reader() -> str:
    """Address of a second user."""
    return make_address("reader")


@pytest.fixture
def fake_time() -> FakeTimeAuthority:
    """Deterministic time authority."""
    return FakeTimeAuthority()


@pytest.fixture
def indexer() -> IndexerStub:
    """Empty in-memory indexer."""
    return IndexerStub()


@pytest.fixture
def sender(author: str, indexer: IndexerStub) -> SenderStub:
    """Sender connected as author, publishing into the indexer."""
    return SenderStub(author, indexer=indexer)


@pytest.fixture
def fee_oracle() -> FeeOracleStub:
    """Fee oracle charging 1 KAS for everything."""
    return FeeOracleStub()


@pytest.fixture
def health_probe() -> HealthProbeStub:
    """Healthy sender probe."""
    return HealthProbeStub()


@pytest.fixture
def repository() -> PublishStateRepositoryStub:
    """In-memory publish state storage."""
    return PublishStateRepositoryStub()


@pytest.fixture
def metrics() -> PublishMetricsCollector:
    """Metrics collector on an isolated registry."""
    return PublishMetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def submitter(
    sender: SenderStub,
    fee_oracle: FeeOracleStub,
    fake_time: FakeTimeAuthority,
    health_probe: HealthProbeStub,
    metrics: PublishMetricsCollector,
) -> TransactionSubmitter:
    """Submitter with zero retry delays."""
    return TransactionSubmitter(
        sender,
        fee_oracle,
        fake_time,
        config=TEST_PUBLISH_CONFIG,
        health_probe=health_probe,
        metrics=metrics,
    )


@pytest.fixture
def traversal(indexer: IndexerStub) -> ChainTraversalService:
    """Chain traversal over the in-memory indexer."""
    return ChainTraversalService(indexer, config=TEST_TRAVERSAL_CONFIG)
