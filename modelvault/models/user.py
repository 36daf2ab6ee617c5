"""User model"""

import enum
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from modelvault.models.base import BaseModel


class UserRole(str, enum.Enum):
    """Application roles"""
    CREATOR = "creator"
    CLIENT = "client"
    ADMIN = "admin"


class User(BaseModel):
    """
    Application user. Creators own projects and portfolio pages, clients are
    assigned to projects and favourite model versions, admins approve accounts.
    """

    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    photo_url = Column(String(1000), nullable=True)
    role = Column(String(20), default=UserRole.CLIENT.value, nullable=False, index=True)
    is_approved = Column(Boolean, default=False, nullable=False)

    # Relationships
    projects = relationship("Project", back_populates="creator", cascade="all, delete-orphan")
    project_links = relationship("ProjectClient", back_populates="user", cascade="all, delete-orphan")
    favourites = relationship("UserFavourite", back_populates="user", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="author", cascade="all, delete-orphan")
    portfolio_pages = relationship("PortfolioPage", back_populates="creator", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
