"""Favourite grouping schemas"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class FavouriteVersionEntry(BaseModel):
    """One favourited version inside a model group"""
    version_id: int
    version_number: Optional[float] = None
    created_at: Optional[datetime] = None
    image_path: Optional[str] = Field(None, description="First image of the version, None if it has none")


class ModelFavouriteGroup(BaseModel):
    """Favourites grouped under their parent model, in encounter order"""
    model_config = ConfigDict(protected_namespaces=())

    model_id: int
    model_name: str
    versions: List[FavouriteVersionEntry] = Field(default_factory=list)
