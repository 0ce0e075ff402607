from collections.abc import Iterator

from fastapi import Depends
from sqlalchemy.orm import Session

from family_sharing.core.config import settings
from family_sharing.core.db import get_db
from family_sharing.store.base import DataStore, StoreConflict
from family_sharing.store.instant import InstantStore, instant_http_client
from family_sharing.store.sql import SqlStore

__all__ = ["DataStore", "InstantStore", "SqlStore", "StoreConflict", "get_store"]


def get_store(db: Session = Depends(get_db)) -> Iterator[DataStore]:
    if settings.store_backend == "instant":
        with instant_http_client() as client:
            yield InstantStore(client)
        return
    yield SqlStore(db)
