"""User-facing schemas"""

from typing import Optional
from pydantic import BaseModel


class CurrentUser(BaseModel):
    """The user on whose behalf dashboard and aggregation calls run"""
    id: int
    role: str
    is_approved: bool = True
    full_name: Optional[str] = None


class UserStatistics(BaseModel):
    """Per-user activity counts shown on the profile page"""
    projects: int = 0
    favourites: int = 0
    comments: int = 0
