"""Creator portfolio pages and the models shown on them"""

import logging
from typing import List

from modelvault.config import settings
from modelvault.schemas.graph import PageModelView
from modelvault.services.graph_assembler import DEFAULT_VERSION_LABEL
from modelvault.services.version_resolution import latest_version, version_label, resolve_thumbnail
from modelvault.store.record_store import RecordStore, Filter
from modelvault.store.relations import first_or_none, related_value

logger = logging.getLogger(__name__)

PAGE_MODEL_INCLUDE = (
    "model.category",
    "model.versions.images",
)


def assemble_page_model(model: dict) -> PageModelView:
    """Portfolio card for a model: latest version label and its thumbnail"""
    latest = latest_version(model.get("versions"))

    return PageModelView(
        id=model["id"],
        name=model.get("name") or "",
        category=related_value(model, "category", "name", settings.default_model_category),
        thumbnail_url=resolve_thumbnail(latest),
        version=version_label(latest) if latest else DEFAULT_VERSION_LABEL,
    )


class PortfolioService:
    """Service for portfolio pages"""

    def __init__(self, store: RecordStore):
        """Initialize with record store"""
        self.store = store

    async def fetch_portfolio_pages(self, creator_id: int) -> List[dict]:
        return await self.store.select(
            "portfolio_pages", [Filter.eq("creator_id", creator_id)], order_by="id"
        )

    async def create_portfolio_page(self, creator_id: int, name: str) -> dict:
        [page] = await self.store.insert(
            "portfolio_pages", {"creator_id": creator_id, "name": name}
        )
        logger.info(f"Created portfolio page {page['id']} for creator {creator_id}")
        return page

    async def delete_portfolio_page(self, page_id: int) -> None:
        await self.store.delete("portfolio_page_models", [Filter.eq("page_id", page_id)])
        await self.store.delete("portfolio_pages", [Filter.eq("id", page_id)])
        logger.info(f"Deleted portfolio page {page_id}")

    async def fetch_page_models(self, page_id: int) -> List[PageModelView]:
        """Models on a page in the order they were added"""
        links = await self.store.select(
            "portfolio_page_models",
            [Filter.eq("page_id", page_id)],
            include=PAGE_MODEL_INCLUDE,
            order_by="id",
        )

        views = []
        for link in links:
            model = first_or_none(link.get("model"))
            if model is None:
                logger.warning(f"Portfolio link {link.get('id')} has no model, skipping")
                continue
            views.append(assemble_page_model(model))
        return views

    async def add_model_to_page(self, page_id: int, model_id: int) -> bool:
        """
        Add a model to a page. Adding a model that is already on the page
        succeeds without a change.

        Returns:
            True if the model was added, False if it was already present
        """
        return await self.store.insert_ignore_duplicate(
            "portfolio_page_models", {"page_id": page_id, "model_id": model_id}
        )

    async def remove_model_from_page(self, page_id: int, model_id: int) -> None:
        await self.store.delete(
            "portfolio_page_models",
            [Filter.eq("page_id", page_id), Filter.eq("model_id", model_id)],
        )
