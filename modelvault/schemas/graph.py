"""Assembled project/model view schemas"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class ModelView(BaseModel):
    """A model as shown on dashboards, with its derived current version"""
    id: int
    name: str
    category: str
    status: str
    version: str = Field(..., description="Label of the latest version")
    thumbnail_url: str
    versions: List[str] = Field(default_factory=list, description="Version labels, newest first")
    version_thumbnails: Dict[str, str] = Field(default_factory=dict)
    version_ids: Dict[str, int] = Field(default_factory=dict)
    version_download_status: Dict[str, bool] = Field(default_factory=dict)
    created_at: Optional[str] = None


class ProjectView(BaseModel):
    """Creator dashboard project with its full model tree"""
    id: int
    name: str
    start_date: str = ""
    model_count: int = 0
    status: str
    models: List[ModelView] = Field(default_factory=list)
    client_ids: List[int] = Field(default_factory=list)


class ClientProjectView(BaseModel):
    """Client dashboard project; models are loaded lazily per project"""
    id: int
    name: str
    start_date: str = ""
    status: str
    creator_id: Optional[int] = None
    model_count: int = 0


class ClientView(BaseModel):
    """Client dashboard: assigned projects plus the models loaded so far"""
    projects: List[ClientProjectView] = Field(default_factory=list)
    models_by_project: Dict[int, List[ModelView]] = Field(default_factory=dict)


class PageModelView(BaseModel):
    """Model card on a portfolio page"""
    id: int
    name: str
    category: str
    thumbnail_url: str
    version: str
