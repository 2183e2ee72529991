"""Focused tests for ``rpg_server.db.characters_repo``."""

from __future__ import annotations

import pytest

from rpg_server.db import characters_repo, equipment_repo, sessions_repo
from rpg_server.db.characters_repo import build_scope_clause
from rpg_server.db.connection import connection_scope


@pytest.mark.unit
class TestBuildScopeClause:
    def test_unrestricted(self):
        assert build_scope_clause(alias="c", visibilities=None, owner_id=None) == ("1 = 1", [])

    def test_public_only(self):
        clause, params = build_scope_clause(alias="c", visibilities=("PUBLIC",), owner_id=None)
        assert clause == "c.visibility IN (?)"
        assert params == ["PUBLIC"]

    def test_public_or_owned(self):
        clause, params = build_scope_clause(alias="i", visibilities=("PUBLIC",), owner_id="u-1")
        assert clause == "(i.visibility IN (?) OR i.owner_id = ?)"
        assert params == ["PUBLIC", "u-1"]


@pytest.mark.db
def test_create_applies_defaults(db_with_users):
    owner_id = db_with_users["USER"]["id"]
    character = characters_repo.create_character({"name": "Aria"}, owner_id=owner_id)

    assert character["owner_id"] == owner_id
    assert character["visibility"] == "PUBLIC"
    assert character["level"] == 1
    assert character["health"] == 100
    assert character["strength"] == 10
    assert character["age"] == 18


@pytest.mark.db
def test_create_keeps_given_stats_and_ignores_unknown_keys(test_db):
    character = characters_repo.create_character(
        {"name": "Brom", "level": 7, "charisma": 3, "owner_id": "spoofed", "id": "spoofed"},
        owner_id=None,
    )

    assert character["level"] == 7
    assert character["charisma"] == 3
    assert character["owner_id"] is None
    assert character["id"] != "spoofed"


@pytest.mark.db
def test_duplicate_name_returns_none(test_db):
    assert characters_repo.create_character({"name": "Cid"}, owner_id=None) is not None
    assert characters_repo.create_character({"name": "Cid"}, owner_id=None) is None


@pytest.mark.db
def test_find_with_owner_role(db_with_users, make_character):
    admin_owned = make_character(owner_id=db_with_users["ADMIN"]["id"])
    orphan = make_character()

    found = characters_repo.find_by_id_with_owner_role(admin_owned["id"])
    assert found["owner_role"] == "ADMIN"
    assert found["character"] == admin_owned

    assert characters_repo.find_by_id_with_owner_role(orphan["id"])["owner_role"] is None
    assert characters_repo.find_by_id_with_owner_role("missing") is None


@pytest.mark.db
def test_find_many_scopes_and_pages(db_with_users, make_character):
    owner_id = db_with_users["USER"]["id"]
    make_character("Public One")
    make_character("Private Mine", owner_id=owner_id, visibility="PRIVATE")
    make_character("Hidden Theirs", owner_id=db_with_users["OTHER"]["id"], visibility="HIDDEN")

    everything = characters_repo.find_many()
    assert len(everything) == 3

    public = characters_repo.find_many(visibilities=("PUBLIC",))
    assert [c["name"] for c in public] == ["Public One"]

    mine = characters_repo.find_many(visibilities=("PUBLIC",), owner_id=owner_id)
    assert {c["name"] for c in mine} == {"Public One", "Private Mine"}

    assert len(characters_repo.find_many(limit=2)) == 2
    assert len(characters_repo.find_many(limit=2, offset=2)) == 1


@pytest.mark.db
def test_delete_cascades_to_equipment(db_with_users, make_character, make_item):
    character = make_character(owner_id=db_with_users["USER"]["id"])
    helm = make_item(slot="HEAD")
    equipment_repo.upsert(character["id"], {"head_id": helm["id"]})

    assert characters_repo.delete_character(character["id"]) is True
    assert characters_repo.find_by_id(character["id"]) is None
    assert equipment_repo.find_by_character_id(character["id"]) is None
    assert characters_repo.delete_character(character["id"]) is False


@pytest.mark.db
def test_deleting_owner_orphans_character(db_with_users, make_character):
    owner_id = db_with_users["OTHER"]["id"]
    character = make_character(owner_id=owner_id)
    sessions_repo.create_session(owner_id)

    with connection_scope(write=True) as conn:
        conn.execute("DELETE FROM users WHERE id = ?", (owner_id,))

    assert characters_repo.find_by_id(character["id"])["owner_id"] is None
