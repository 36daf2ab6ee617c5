"""User favourite model"""

from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from modelvault.models.base import BaseModel


class UserFavourite(BaseModel):
    """A user's favourite, stored against a model version"""

    __tablename__ = "user_favourites"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    version_id = Column(Integer, ForeignKey("model_versions.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="favourites")
    version = relationship("ModelVersion", back_populates="favourites")

    __table_args__ = (
        UniqueConstraint("user_id", "version_id", name="uq_user_favourite"),
    )
