"""Admin report schemas"""

from datetime import date, datetime, time, timezone
from typing import List, Optional, Union
from pydantic import BaseModel, Field


def naive_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC; convert aware values before comparing"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None)


class DateRange(BaseModel):
    """
    Inclusive creation-date window. A missing bound is unbounded on that
    side; a date-only end bound covers the whole day.
    """
    start: Optional[Union[datetime, date]] = None
    end: Optional[Union[datetime, date]] = None

    def lower_bound(self) -> Optional[datetime]:
        if self.start is None:
            return None
        if isinstance(self.start, datetime):
            return naive_utc(self.start)
        return datetime.combine(self.start, time.min)

    def upper_bound(self) -> Optional[datetime]:
        if self.end is None:
            return None
        if isinstance(self.end, datetime):
            return naive_utc(self.end)
        return datetime.combine(self.end, time.max)

    def contains(self, value: Optional[datetime]) -> bool:
        """True when `value` falls inside the window; unknown timestamps only match an open window"""
        lower, upper = self.lower_bound(), self.upper_bound()
        if lower is None and upper is None:
            return True
        if value is None:
            return False
        value = naive_utc(value)
        if lower is not None and value < lower:
            return False
        if upper is not None and value > upper:
            return False
        return True


class ReportOptions(BaseModel):
    """Sections to include in the admin workbook"""
    creator_projects_summary: bool = False
    top_favourited_projects: bool = False
    active_clients_count: bool = False
    date_range: Optional[DateRange] = None


class CreatorProjectRow(BaseModel):
    user_id: int
    username: str
    project_id: int
    project_name: str
    created_at: str
    status: str
    project_count_total: int
    model_count_total: int


class CreatorProjectSummary(BaseModel):
    creator_count: int = 0
    project_count: int = 0
    model_count: int = 0


class FavouritedProjectRow(BaseModel):
    project_id: int
    project_name: str
    creator_id: Optional[int] = None
    creator_username: str
    favourite_count: int
    last_favourited_at: Optional[str] = None


class FavouritedProjectSummary(BaseModel):
    project_count: int = 0
    favourite_count: int = 0


class ActiveClientRow(BaseModel):
    client_id: int
    client_name: str
    status: str = "Active"
    last_activity_at: Optional[str] = None
    projects_assigned_count: int = 0


class ActiveClientSummary(BaseModel):
    client_count: int = 0
    assigned_project_count: int = 0


class CreatorProjectsSection(BaseModel):
    rows: List[CreatorProjectRow] = Field(default_factory=list)
    summary: CreatorProjectSummary = Field(default_factory=CreatorProjectSummary)


class FavouritedProjectsSection(BaseModel):
    rows: List[FavouritedProjectRow] = Field(default_factory=list)
    summary: FavouritedProjectSummary = Field(default_factory=FavouritedProjectSummary)


class ActiveClientsSection(BaseModel):
    rows: List[ActiveClientRow] = Field(default_factory=list)
    summary: ActiveClientSummary = Field(default_factory=ActiveClientSummary)
