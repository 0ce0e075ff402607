"""
Typed query and transaction building blocks for the data store.

A `Query` names an entity, an equality filter and any nested relations to fetch
alongside each row. Nested queries use the relation label as their `entity`:

    Query("families", where={"ownerId": uid}, include=(Query("members"),))

Writes are expressed as a list of steps passed to `DataStore.transact`. Both
render to the InstantDB admin API wire format via `to_wire()`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

FAMILIES = "families"
FAMILY_MEMBERS = "familyMembers"
FAMILY_INVITATIONS = "familyInvitations"


@dataclass(frozen=True)
class Query:
    entity: str
    where: dict[str, Any] = field(default_factory=dict)
    include: tuple[Query, ...] = ()

    def to_wire(self) -> dict[str, Any]:
        return {self.entity: self._body()}

    def _body(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.where:
            body["$"] = {"where": dict(self.where)}
        for nested in self.include:
            body[nested.entity] = nested._body()
        return body


@dataclass(frozen=True)
class Update:
    """Upsert `fields` onto the row `id` of `entity`."""

    entity: str
    id: str
    fields: dict[str, Any]

    def to_wire(self) -> list[Any]:
        return ["update", self.entity, self.id, dict(self.fields)]


@dataclass(frozen=True)
class Link:
    """Attach relations, e.g. `{"family": family_id}`."""

    entity: str
    id: str
    relation: dict[str, str]

    def to_wire(self) -> list[Any]:
        return ["link", self.entity, self.id, dict(self.relation)]


@dataclass(frozen=True)
class Delete:
    entity: str
    id: str

    def to_wire(self) -> list[Any]:
        return ["delete", self.entity, self.id]


Step = Union[Update, Link, Delete]
