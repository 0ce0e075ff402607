from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

from family_sharing.core.errors import UpstreamError
from family_sharing.store.query import Query, Step


class StoreConflict(UpstreamError):
    """A write violated a uniqueness rule (owner, token, pending key, membership key, member invitation)."""


@runtime_checkable
class DataStore(Protocol):
    def query(self, q: Query) -> list[dict[str, Any]]: ...

    def transact(self, steps: Sequence[Step]) -> None: ...
