"""Comment schemas"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class CommentAuthor(BaseModel):
    full_name: str = "Unknown"
    photo_url: Optional[str] = None
    role: str


class CommentView(BaseModel):
    id: int
    version_id: int
    text: str
    created_at: Optional[datetime] = None
    user_id: int
    user: CommentAuthor
