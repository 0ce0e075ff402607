import re

from family_sharing.services.tokens import new_id, new_invite_token
from family_sharing.store.query import FAMILY_MEMBERS, Delete, Query


def test_invite_tokens_are_64_hex_and_distinct():
    tokens = {new_invite_token() for _ in range(200)}
    assert len(tokens) == 200
    assert all(re.fullmatch(r"[0-9a-f]{64}", token) for token in tokens)


def test_ids_are_distinct():
    assert new_id() != new_id()


def test_query_without_filter_has_no_clause():
    assert Query("families", include=(Query("members"),)).to_wire() == {"families": {"members": {}}}


def test_delete_wire_shape():
    assert Delete(FAMILY_MEMBERS, "mem-1").to_wire() == ["delete", "familyMembers", "mem-1"]
