"""Portfolio page models"""

from sqlalchemy import Column, String, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from modelvault.models.base import BaseModel


class PortfolioPage(BaseModel):
    """Creator-curated showcase page, independent of project grouping"""

    __tablename__ = "portfolio_pages"

    creator_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)

    creator = relationship("User", back_populates="portfolio_pages")
    model_links = relationship("PortfolioPageModel", back_populates="page", cascade="all, delete-orphan")


class PortfolioPageModel(BaseModel):
    """Join row linking a model to a portfolio page"""

    __tablename__ = "portfolio_page_models"

    page_id = Column(Integer, ForeignKey("portfolio_pages.id", ondelete="CASCADE"), nullable=False, index=True)
    model_id = Column(Integer, ForeignKey("models.id", ondelete="CASCADE"), nullable=False, index=True)

    page = relationship("PortfolioPage", back_populates="model_links")
    model = relationship("Model", back_populates="portfolio_links")

    __table_args__ = (
        UniqueConstraint("page_id", "model_id", name="uq_portfolio_page_model"),
    )
