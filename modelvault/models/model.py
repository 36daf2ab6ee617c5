"""3D model, category and status models"""

from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship
from modelvault.models.base import BaseModel


class ModelCategory(BaseModel):
    """Lookup table of model categories"""

    __tablename__ = "model_categories"

    name = Column(String(100), unique=True, nullable=False)


class ModelStatus(BaseModel):
    """Lookup table of model workflow statuses (Draft, Approved, ...)"""

    __tablename__ = "model_status"

    status = Column(String(50), unique=True, nullable=False)


class Model(BaseModel):
    """
    A 3D model inside a project. Holds an ordered set of versions; the
    current version is always derived from the version numbers.
    """

    __tablename__ = "models"

    name = Column(String(255), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("model_categories.id"), nullable=True)
    status_id = Column(Integer, ForeignKey("model_status.id"), nullable=True)

    # Relationships
    project = relationship("Project", back_populates="models")
    category = relationship("ModelCategory")
    status = relationship("ModelStatus")
    versions = relationship("ModelVersion", back_populates="model", cascade="all, delete-orphan")
    portfolio_links = relationship("PortfolioPageModel", back_populates="model", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Model(id={self.id}, name={self.name})>"
