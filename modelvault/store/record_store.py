"""Record store adapter over the relational backend"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from sqlalchemy import select, update, delete, func, inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm import selectinload

from modelvault.models import (
    User,
    Project,
    ProjectStatus,
    ProjectClient,
    Model,
    ModelCategory,
    ModelStatus,
    ModelVersion,
    ModelImage,
    Comment,
    UserFavourite,
    PortfolioPage,
    PortfolioPageModel,
)

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base exception for record store errors"""
    pass


class DuplicateRecordError(StoreError):
    """Unique constraint violated on insert"""
    pass


class RecordNotFoundError(StoreError):
    """Single-record lookup matched nothing"""
    pass


class UnknownCollectionError(StoreError):
    """Collection, field or relation name is not known to the store"""
    pass


# Named collections exposed by the store
COLLECTIONS: Dict[str, type] = {
    "users": User,
    "projects": Project,
    "project_status": ProjectStatus,
    "project_clients": ProjectClient,
    "models": Model,
    "model_categories": ModelCategory,
    "model_status": ModelStatus,
    "model_versions": ModelVersion,
    "model_images": ModelImage,
    "comments": Comment,
    "user_favourites": UserFavourite,
    "portfolio_pages": PortfolioPage,
    "portfolio_page_models": PortfolioPageModel,
}

# SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


def is_unique_violation(error: IntegrityError) -> bool:
    """True when an IntegrityError comes from a unique constraint, not NOT NULL, FK or CHECK"""
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code == UNIQUE_VIOLATION
    # sqlite3 reports "UNIQUE constraint failed: table.column"
    return "unique constraint" in str(orig).lower()


class Filter:
    """
    Filter predicate on a column of the queried collection.

    Build with the class methods: Filter.eq("creator_id", 3),
    Filter.gte("created_at", start), Filter.isin("id", [1, 2]).
    """

    OPERATORS = {"eq", "neq", "gte", "lte", "in", "ilike", "is_null"}

    def __init__(self, field: str, op: str, value: Any = None):
        if op not in self.OPERATORS:
            raise ValueError(f"Unsupported filter operator: {op}")
        self.field = field
        self.op = op
        self.value = value

    @classmethod
    def eq(cls, field: str, value: Any) -> "Filter":
        return cls(field, "eq", value)

    @classmethod
    def neq(cls, field: str, value: Any) -> "Filter":
        return cls(field, "neq", value)

    @classmethod
    def gte(cls, field: str, value: Any) -> "Filter":
        return cls(field, "gte", value)

    @classmethod
    def lte(cls, field: str, value: Any) -> "Filter":
        return cls(field, "lte", value)

    @classmethod
    def isin(cls, field: str, values: Iterable[Any]) -> "Filter":
        return cls(field, "in", list(values))

    @classmethod
    def ilike(cls, field: str, pattern: str) -> "Filter":
        return cls(field, "ilike", pattern)

    @classmethod
    def is_null(cls, field: str) -> "Filter":
        return cls(field, "is_null")

    def clause(self, model_cls: type):
        """Build the SQLAlchemy where-clause for this filter"""
        column = _column(model_cls, self.field)

        if self.op == "eq":
            return column == self.value
        if self.op == "neq":
            return column != self.value
        if self.op == "gte":
            return column >= self.value
        if self.op == "lte":
            return column <= self.value
        if self.op == "in":
            return column.in_(self.value)
        if self.op == "ilike":
            return column.ilike(self.value)
        return column.is_(None)

    def __repr__(self):
        return f"<Filter({self.field} {self.op} {self.value!r})>"


def _model_for(collection: str) -> type:
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise UnknownCollectionError(f"Unknown collection: {collection}")


def _column(model_cls: type, field: str):
    mapper = inspect(model_cls)
    if field not in mapper.column_attrs:
        raise UnknownCollectionError(f"{model_cls.__tablename__} has no column {field}")
    return getattr(model_cls, field)


def _include_tree(include: Sequence[str]) -> Dict[str, dict]:
    """Turn dotted include paths into a nested dict: 'models.versions' -> {'models': {'versions': {}}}"""
    tree: Dict[str, dict] = {}
    for path in include:
        node = tree
        for part in path.split("."):
            node = node.setdefault(part, {})
    return tree


def _loader_options(model_cls: type, tree: Dict[str, dict], parent=None) -> list:
    """Eager-load options for every relation in the include tree"""
    options = []
    mapper = inspect(model_cls)

    for name, children in tree.items():
        if name not in mapper.relationships:
            raise UnknownCollectionError(f"{model_cls.__tablename__} has no relation {name}")

        attr = getattr(model_cls, name)
        option = selectinload(attr) if parent is None else parent.selectinload(attr)
        target = mapper.relationships[name].mapper.class_

        if children:
            options.extend(_loader_options(target, children, option))
        else:
            options.append(option)

    return options


def to_record(obj: Any, tree: Optional[Dict[str, dict]] = None) -> dict:
    """
    Serialize an ORM object to a plain dict.

    Column values are always present; relations appear only when named in
    the include tree. To-many relations become lists, to-one relations a
    dict or None.
    """
    mapper = inspect(obj).mapper
    record = {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}

    for name, children in (tree or {}).items():
        value = getattr(obj, name)
        if mapper.relationships[name].uselist:
            record[name] = [to_record(item, children) for item in value]
        else:
            record[name] = to_record(value, children) if value is not None else None

    return record


class RecordStore:
    """
    Typed fetch/insert/update/delete against named collections.

    Every call opens its own session, so independent calls may be awaited
    concurrently. Backend failures surface as StoreError.
    """

    def __init__(self, session_factory: async_sessionmaker):
        """Initialize with an async session factory"""
        self.session_factory = session_factory

    async def select(
        self,
        collection: str,
        filters: Optional[Sequence[Filter]] = None,
        include: Sequence[str] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """
        Fetch records with optional nested relations.

        Args:
            collection: Collection name (see COLLECTIONS)
            filters: Filter predicates, combined with AND
            include: Dotted relation paths to embed, e.g. "models.versions.images"
            order_by: Column to order by
            descending: Order descending
            limit: Maximum number of records

        Returns:
            List of record dicts
        """
        model_cls = _model_for(collection)
        tree = _include_tree(include)

        stmt = select(model_cls).options(*_loader_options(model_cls, tree))
        for f in filters or []:
            stmt = stmt.where(f.clause(model_cls))
        if order_by:
            column = _column(model_cls, order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return [to_record(obj, tree) for obj in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error selecting from {collection}: {e}")
            raise StoreError(f"Failed to fetch {collection}: {e}") from e

    async def select_one(
        self,
        collection: str,
        filters: Optional[Sequence[Filter]] = None,
        include: Sequence[str] = (),
    ) -> Optional[dict]:
        """Fetch the first matching record or None"""
        records = await self.select(collection, filters=filters, include=include, limit=1)
        return records[0] if records else None

    async def get(self, collection: str, record_id: int, include: Sequence[str] = ()) -> dict:
        """Fetch a record by id; raises RecordNotFoundError when absent"""
        record = await self.select_one(collection, [Filter.eq("id", record_id)], include=include)
        if record is None:
            raise RecordNotFoundError(f"{collection} record {record_id} not found")
        return record

    async def count(self, collection: str, filters: Optional[Sequence[Filter]] = None) -> int:
        """Count matching records"""
        model_cls = _model_for(collection)
        stmt = select(func.count()).select_from(model_cls)
        for f in filters or []:
            stmt = stmt.where(f.clause(model_cls))

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error counting {collection}: {e}")
            raise StoreError(f"Failed to count {collection}: {e}") from e

    async def insert(
        self, collection: str, values: Union[dict, Sequence[dict]]
    ) -> List[dict]:
        """
        Insert one or many records.

        Returns:
            The inserted records, with generated ids and timestamps

        Raises:
            DuplicateRecordError: If a unique constraint is violated
            StoreError: On any other backend failure
        """
        model_cls = _model_for(collection)
        rows = [values] if isinstance(values, dict) else list(values)
        if not rows:
            return []

        try:
            async with self.session_factory() as session:
                objects = [model_cls(**row) for row in rows]
                session.add_all(objects)
                await session.commit()
                return [to_record(obj) for obj in objects]
        except IntegrityError as e:
            if not is_unique_violation(e):
                logger.error(f"Integrity error inserting into {collection}: {e.orig}")
                raise StoreError(f"Invalid record for {collection}: {e.orig}") from e
            logger.warning(f"Duplicate insert into {collection}: {e.orig}")
            raise DuplicateRecordError(f"Duplicate record in {collection}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error inserting into {collection}: {e}")
            raise StoreError(f"Failed to insert into {collection}: {e}") from e

    async def insert_ignore_duplicate(self, collection: str, values: dict) -> bool:
        """
        Insert a record, treating a unique-key conflict as success.

        Returns:
            True if a row was inserted, False if it already existed
        """
        try:
            await self.insert(collection, values)
            return True
        except DuplicateRecordError:
            logger.info(f"Record already present in {collection}, ignoring")
            return False

    async def update(
        self, collection: str, values: dict, filters: Sequence[Filter]
    ) -> int:
        """
        Update matching records.

        Returns:
            Number of affected rows
        """
        model_cls = _model_for(collection)
        for field in values:
            _column(model_cls, field)

        stmt = update(model_cls).values(**values)
        for f in filters:
            stmt = stmt.where(f.clause(model_cls))

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error updating {collection}: {e}")
            raise StoreError(f"Failed to update {collection}: {e}") from e

    async def delete(self, collection: str, filters: Sequence[Filter]) -> int:
        """
        Delete matching records.

        Returns:
            Number of deleted rows
        """
        model_cls = _model_for(collection)
        if not filters:
            raise StoreError(f"Refusing to delete from {collection} without filters")

        stmt = delete(model_cls)
        for f in filters:
            stmt = stmt.where(f.clause(model_cls))

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error deleting from {collection}: {e}")
            raise StoreError(f"Failed to delete from {collection}: {e}") from e
