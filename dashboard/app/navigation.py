"""Navigation seam between session transitions and whatever renders views."""

import logging
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class Route(str, Enum):
    """Application routes the data layer can send the user to."""

    LOGIN = "/login"
    REGISTER = "/register"
    VERIFY_EMAIL = "/verify-email"
    DASHBOARD = "/dashboard"
    DOCUMENTS = "/documents"
    CATEGORIES = "/categories"
    PROFILE = "/profile"


class Navigator(Protocol):
    """Moves the presentation layer to a route."""

    def navigate(self, route: Route) -> None:
        """Navigate to `route`.

        Args:
            route: Target route
        """
        ...


class LoggingNavigator:
    """Navigator that only logs and remembers where it was sent."""

    def __init__(self, initial: Route | None = None) -> None:
        self.current_route = initial
        self.history: list[Route] = []

    def navigate(self, route: Route) -> None:
        logger.info(f"[navigation] -> {route.value}")
        self.current_route = route
        self.history.append(route)
