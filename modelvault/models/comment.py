"""Comment model"""

from sqlalchemy import Column, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from modelvault.models.base import BaseModel


class Comment(BaseModel):
    """Comment left on a model version"""

    __tablename__ = "comments"

    version_id = Column(Integer, ForeignKey("model_versions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)

    version = relationship("ModelVersion", back_populates="comments")
    author = relationship("User", back_populates="comments")
