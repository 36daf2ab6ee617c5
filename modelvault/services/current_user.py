"""Explicit current-user context for dashboard and aggregation calls"""

from abc import ABC, abstractmethod
from typing import Optional

from modelvault.schemas.user import CurrentUser


class NotAuthenticatedError(Exception):
    """No current user is available"""
    pass


class NotAuthorizedError(Exception):
    """The current user lacks the role required for an operation"""
    pass


class CurrentUserProvider(ABC):
    """Supplies the user on whose behalf a call runs; injected at the application edge"""

    @abstractmethod
    def get_current_user(self) -> CurrentUser:
        """Return the current user or raise NotAuthenticatedError"""


class StaticCurrentUserProvider(CurrentUserProvider):
    """Provider bound to a single, already-resolved user"""

    def __init__(self, user: Optional[CurrentUser]):
        self.user = user

    def get_current_user(self) -> CurrentUser:
        if self.user is None:
            raise NotAuthenticatedError("No user is signed in")
        return self.user
