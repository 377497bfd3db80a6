"""
Service Container - Dependency Injection Container

Holds the injected collaborators (key-value store, completion provider,
clocks) and builds the engine's services lazily on first access.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
import logging
import time

from wellness_engine.config import AI_TIMEOUT_SECONDS, INSIGHT_CACHE_TTL_SECONDS
from wellness_engine.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (kv store, completion provider, clocks) are injected.
    """

    # Infrastructure dependencies (injected)
    kv: object  # KeyValueStore instance
    completion: Optional[object] = None  # async (prompt) -> str; None means fallback-only insights
    clock: Callable[[], datetime] = now_utc  # wall clock for windows and streaks
    cache_clock: Callable[[], float] = time.time  # epoch seconds for insight cache freshness
    insight_ttl: float = INSIGHT_CACHE_TTL_SECONDS
    completion_timeout: float = AI_TIMEOUT_SECONDS

    # Services (lazy-loaded via properties)
    _record_store: Optional[object] = field(default=None, init=False, repr=False)
    _aggregator: Optional[object] = field(default=None, init=False, repr=False)
    _bonus_evaluator: Optional[object] = field(default=None, init=False, repr=False)
    _xp_engine: Optional[object] = field(default=None, init=False, repr=False)
    _insight_cache: Optional[object] = field(default=None, init=False, repr=False)
    _insight_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def record_store(self):
        """Get WellnessRecordStore instance (lazy-loaded)"""
        if self._record_store is None:
            from wellness_engine.storage.record_store import WellnessRecordStore
            self._record_store = WellnessRecordStore(self.kv)
            logger.debug("WellnessRecordStore instantiated")
        return self._record_store

    @property
    def aggregator(self):
        """Get TimeAggregator instance (lazy-loaded)"""
        if self._aggregator is None:
            from wellness_engine.services.aggregator import TimeAggregator
            self._aggregator = TimeAggregator(self.record_store, clock=self.clock)
            logger.debug("TimeAggregator instantiated")
        return self._aggregator

    @property
    def bonus_evaluator(self):
        """Get StreakBonusEvaluator instance (lazy-loaded)"""
        if self._bonus_evaluator is None:
            from wellness_engine.gamification.bonus import StreakBonusEvaluator
            self._bonus_evaluator = StreakBonusEvaluator(self.aggregator, clock=self.clock)
            logger.debug("StreakBonusEvaluator instantiated")
        return self._bonus_evaluator

    @property
    def xp_engine(self):
        """Get XpEngine instance (lazy-loaded)"""
        if self._xp_engine is None:
            from wellness_engine.gamification.xp_system import XpEngine
            self._xp_engine = XpEngine(self.kv, self.bonus_evaluator)
            logger.debug("XpEngine instantiated")
        return self._xp_engine

    @property
    def insight_cache(self):
        """Get InsightCache instance (lazy-loaded)"""
        if self._insight_cache is None:
            from wellness_engine.insights.cache import InsightCache
            self._insight_cache = InsightCache(self.kv, ttl=self.insight_ttl, clock=self.cache_clock)
            logger.debug("InsightCache instantiated")
        return self._insight_cache

    @property
    def insight_service(self):
        """Get InsightService instance (lazy-loaded)"""
        if self._insight_service is None:
            from wellness_engine.insights.service import InsightService, UnavailableCompletion
            completion = self.completion or UnavailableCompletion()
            self._insight_service = InsightService(
                self.aggregator,
                self.insight_cache,
                completion,
                timeout=self.completion_timeout,
            )
            logger.debug("InsightService instantiated")
        return self._insight_service


# Global container instance (initialized in main.py)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() before using services."
        )
    return _container


def init_container(kv: object, completion: Optional[object] = None, **overrides) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        kv: KeyValueStore instance
        completion: Optional completion provider
        **overrides: clock, cache_clock, insight_ttl, completion_timeout

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(kv=kv, completion=completion, **overrides)

    logger.info("Service container initialized")
    return _container
