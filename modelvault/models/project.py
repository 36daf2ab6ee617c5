"""Project, project status and project-client models"""

from sqlalchemy import Column, String, Integer, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from modelvault.models.base import BaseModel


class ProjectStatus(BaseModel):
    """Lookup table of project statuses (Active, Complete, In Progress)"""

    __tablename__ = "project_status"

    status = Column(String(50), unique=True, nullable=False)


class Project(BaseModel):
    """
    Project owned by a creator. Projects group models and are assigned
    to clients through ProjectClient links.
    """

    __tablename__ = "projects"

    name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=True)
    creator_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status_id = Column(Integer, ForeignKey("project_status.id"), nullable=True)

    # Relationships
    creator = relationship("User", back_populates="projects")
    status = relationship("ProjectStatus")
    models = relationship("Model", back_populates="project", cascade="all, delete-orphan")
    clients = relationship("ProjectClient", back_populates="project", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Project(id={self.id}, name={self.name})>"


class ProjectClient(BaseModel):
    """Assignment of a client user to a project"""

    __tablename__ = "project_clients"

    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    project = relationship("Project", back_populates="clients")
    user = relationship("User", back_populates="project_links")

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_client"),
    )
