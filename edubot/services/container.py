"""
Service container

The API resolves GamificationService through this module. The lifespan hook
picks the repository (PostgreSQL or in-memory) once at startup; the service
is built on first use so tests can install their own repository.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional
import logging

from edubot.repository import GamificationRepository

if TYPE_CHECKING:
    from edubot.services.gamification_service import GamificationService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Repository plus the lazily created services that use it"""

    repository: GamificationRepository

    _gamification_service: Optional["GamificationService"] = field(default=None, init=False, repr=False)

    @property
    def gamification_service(self) -> "GamificationService":
        # One instance per container so per-user locks are shared by all requests
        if self._gamification_service is None:
            from edubot.services.gamification_service import GamificationService
            self._gamification_service = GamificationService(self.repository)
        return self._gamification_service


_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Raises:
        RuntimeError: Before init_container() has run
    """
    if _container is None:
        raise RuntimeError("Service container not initialized; the app lifespan calls init_container()")
    return _container


def init_container(repository: GamificationRepository) -> ServiceContainer:
    """Install a fresh container around `repository` and return it"""
    global _container
    _container = ServiceContainer(repository=repository)
    logger.info(f"Service container ready ({type(repository).__name__})")
    return _container


def reset_container() -> None:
    """Drop the container on shutdown and between tests"""
    global _container
    _container = None
