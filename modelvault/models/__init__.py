"""Database models package"""

from modelvault.models.base import BaseModel
from modelvault.models.user import User, UserRole
from modelvault.models.project import Project, ProjectStatus, ProjectClient
from modelvault.models.model import Model, ModelCategory, ModelStatus
from modelvault.models.model_version import ModelVersion, ModelImage
from modelvault.models.comment import Comment
from modelvault.models.favourite import UserFavourite
from modelvault.models.portfolio import PortfolioPage, PortfolioPageModel

# Export all models
__all__ = [
    "BaseModel",
    "User",
    "UserRole",
    "Project",
    "ProjectStatus",
    "ProjectClient",
    "Model",
    "ModelCategory",
    "ModelStatus",
    "ModelVersion",
    "ModelImage",
    "Comment",
    "UserFavourite",
    "PortfolioPage",
    "PortfolioPageModel",
]
