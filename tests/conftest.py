"""Shared fixtures for the rivr test suite.

Logging is routed to a null handler so modules that log at import or during
teardown do not write to pytest's closed streams. Store tests run against a
fresh in-memory SQLite database per test; the remote API is replaced by
``FakeStationClient``, which records calls and can be told to fail.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest

from rivr.db.session import create_db_engine
from rivr.db.station_store import StationStore
from rivr.services.cache_coordinator import StationCacheCoordinator
from rivr.services.name_resolver import DisplayNameResolver


# ---------------------------------------------------------------------------
#
# ---------------------------------------------------------------------------

class _NullHandler(logging.Handler):
    """Configure logging so tests don't try writing to pytest's closed streams."""

    def emit(self, record):  # pragma: no cover
        """Ignore log records to keep test output clean."""
        pass


_null_handler = _NullHandler()
root_logger = logging.getLogger()
root_logger.setLevel(logging.INFO)
root_logger.handlers = [_null_handler]

logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Fake remote client
# ---------------------------------------------------------------------------


@dataclass
class FakeStationClient:
    """Stand-in for ``ReachApiClient`` that serves canned payloads."""

    payloads: Dict[int, Any] = field(default_factory=dict)
    forecasts: Dict[str, Any] = field(default_factory=dict)
    error: Optional[BaseException] = None
    calls: List[int] = field(default_factory=list)
    forecast_calls: List[tuple] = field(default_factory=list)
    gate: Optional[threading.Event] = None

    def fetch_station(self, station_id: int) -> Any:
        self.calls.append(station_id)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.payloads[station_id]

    def fetch_forecast(self, reach_id: Any, series: str) -> Any:
        self.forecast_calls.append((reach_id, series))
        if self.error is not None:
            raise self.error
        return self.forecasts[str(reach_id)]


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    eng = create_db_engine("sqlite://")
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    """A ``StationStore`` backed by an empty in-memory database."""
    return StationStore.from_engine(engine)


@pytest.fixture
def db_session(store):
    """A session on the test database for exercising the ``ops_*`` helpers directly."""
    with store.session_scope() as session:
        yield session


@pytest.fixture
def fake_client():
    return FakeStationClient()


@pytest.fixture
def coordinator(store, fake_client):
    return StationCacheCoordinator(store, fake_client)


@pytest.fixture
def resolver(store):
    return DisplayNameResolver(store)
