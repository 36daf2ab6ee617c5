"""Record store adapter package"""

from modelvault.store.record_store import (
    RecordStore,
    Filter,
    StoreError,
    DuplicateRecordError,
    RecordNotFoundError,
    UnknownCollectionError,
)
from modelvault.store.relations import as_list, first_or_none, related_value

__all__ = [
    "RecordStore",
    "Filter",
    "StoreError",
    "DuplicateRecordError",
    "RecordNotFoundError",
    "UnknownCollectionError",
    "as_list",
    "first_or_none",
    "related_value",
]
