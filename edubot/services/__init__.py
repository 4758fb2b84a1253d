"""
Service layer for edubot

- GamificationService: counters, events, insights, achievements, leaderboard
- ServiceContainer: wires the service to its repository
"""

from edubot.services.gamification_service import GamificationService, RecordEventResult
from edubot.services.container import ServiceContainer, get_container, init_container

__all__ = [
    "GamificationService",
    "RecordEventResult",
    "ServiceContainer",
    "get_container",
    "init_container",
]
