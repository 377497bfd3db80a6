"""Global test fixtures and utilities for wellness engine tests"""
import pytest
from unittest.mock import AsyncMock

from wellness_engine.services.container import ServiceContainer
from wellness_engine.services.engine import WellnessEngine
from wellness_engine.storage.kv_store import InMemoryKeyValueStore
from wellness_engine.storage.record_store import WellnessRecordStore

from tests.helpers import FIXED_NOW, VALID_COMPLETION, ManualClock


# ============================================================================
# Clock Fixtures
# ============================================================================

@pytest.fixture
def fixed_now():
    """Reference 'now' used by every clock-dependent test"""
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now):
    """Wall clock pinned to fixed_now"""
    return lambda: fixed_now


@pytest.fixture
def cache_clock():
    return ManualClock()


# ============================================================================
# User Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "alice"


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def kv():
    """Fresh in-memory key-value store"""
    return InMemoryKeyValueStore()


@pytest.fixture
def record_store(kv):
    return WellnessRecordStore(kv)


# ============================================================================
# Completion Provider Fixtures
# ============================================================================

@pytest.fixture
def completion():
    """Async completion provider returning a valid JSON answer"""
    return AsyncMock(return_value=VALID_COMPLETION)


@pytest.fixture
def failing_completion():
    return AsyncMock(side_effect=RuntimeError("provider down"))


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def container(kv, completion, clock, cache_clock):
    return ServiceContainer(
        kv=kv,
        completion=completion,
        clock=clock,
        cache_clock=cache_clock,
        insight_ttl=600,
        completion_timeout=1.0,
    )


@pytest.fixture
def engine(container):
    return WellnessEngine(container=container)


