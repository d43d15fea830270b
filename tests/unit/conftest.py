"""Fixtures for unit tests."""

from typing import Generator

import pytest
import structlog

from graph_sync_manager.cache import InMemoryResourceCache
from graph_sync_manager.synchronize.context import IntegrationContext
from tests.unit.factories import RecordingPersister


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Route structlog through the standard library so caplog sees pipeline events."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def persister() -> RecordingPersister:
    """An empty in-memory graph store that records published batches."""
    return RecordingPersister()


@pytest.fixture
def context(persister: RecordingPersister) -> IntegrationContext:
    """A run context with an empty cache and no provider clients."""
    return IntegrationContext(cache=InMemoryResourceCache(), persister=persister)
