"""Model version and version image models"""

from sqlalchemy import Column, Integer, Boolean, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from modelvault.models.base import BaseModel


class ModelVersion(BaseModel):
    """
    One numbered revision of a model. `version` grows per model but need
    not be contiguous. `thumbnail_url` holds the cover image path chosen at
    upload or edit time.
    """

    __tablename__ = "model_versions"

    model_id = Column(Integer, ForeignKey("models.id", ondelete="CASCADE"), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    file_path = Column(Text, nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    can_download = Column(Boolean, default=False, nullable=False)

    # Relationships
    model = relationship("Model", back_populates="versions")
    images = relationship(
        "ModelImage",
        back_populates="version",
        cascade="all, delete-orphan",
        order_by="ModelImage.id",
    )
    comments = relationship("Comment", back_populates="version", cascade="all, delete-orphan")
    favourites = relationship("UserFavourite", back_populates="version", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("version > 0", name="check_version_positive"),
    )

    def __repr__(self):
        return f"<ModelVersion(id={self.id}, model_id={self.model_id}, version={self.version})>"


class ModelImage(BaseModel):
    """Preview image attached to a model version"""

    __tablename__ = "model_images"

    version_id = Column(Integer, ForeignKey("model_versions.id", ondelete="CASCADE"), nullable=False, index=True)
    image_path = Column(Text, nullable=False)

    version = relationship("ModelVersion", back_populates="images")
