"""
Service Layer Package

Business logic on top of the record ledger:
- TimeAggregator: daily / weekly / monthly statistics
- scoring: per-day nutrition, sleep and recovery scores
- WellnessEngine: facade over records, stats, XP and insights
"""

from wellness_engine.services.container import ServiceContainer, get_container, init_container

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
]
