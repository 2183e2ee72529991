"""
Tests for the character and item services.

Tests cover:
- Creation ownership and name conflicts
- Direct reads: 404 for unviewable characters, masking for HIDDEN ones
- Expanded reads resolving equipped items
- List scoping per caller
- Delete permission ordering
"""

import pytest

from rpg_server.api.errors import AppError
from rpg_server.api.permissions import AuthenticatedUser
from rpg_server.db import characters_repo, equipment_repo
from rpg_server.services import characters as character_service
from rpg_server.services import items as item_service
from rpg_server.services.masking import HIDDEN_SENTINEL


def as_caller(row):
    return AuthenticatedUser(id=row["id"], email=row["email"], role=row["role"])


@pytest.fixture
def callers(db_with_users):
    return {key: as_caller(row) for key, row in db_with_users.items()}


# ============================================================================
# CREATE
# ============================================================================


@pytest.mark.db
@pytest.mark.asyncio
class TestCreate:
    async def test_character_is_owned_by_creator(self, callers):
        created = await character_service.create_character({"name": "Aria"}, callers["USER"])
        assert created["owner_id"] == callers["USER"].id

    async def test_anonymous_cannot_create(self, test_db):
        with pytest.raises(AppError) as exc_info:
            await character_service.create_character({"name": "Aria"}, None)
        assert exc_info.value.code == "UNAUTHORIZED"

    async def test_duplicate_character_name_conflicts(self, callers):
        await character_service.create_character({"name": "Aria"}, callers["USER"])
        with pytest.raises(AppError) as exc_info:
            await character_service.create_character({"name": "Aria"}, callers["OTHER"])
        assert exc_info.value.code == "RESOURCE_CONFLICT"
        assert exc_info.value.status == 409

    async def test_duplicate_item_name_conflicts(self, callers):
        await item_service.create_item({"name": "Helm", "slot": "HEAD"}, callers["USER"])
        with pytest.raises(AppError) as exc_info:
            await item_service.create_item({"name": "Helm"}, callers["ADMIN"])
        assert exc_info.value.message == "Item with this name already exists"


# ============================================================================
# READ
# ============================================================================


@pytest.mark.db
@pytest.mark.security
@pytest.mark.asyncio
class TestRead:
    async def test_missing_character(self, test_db):
        with pytest.raises(AppError) as exc_info:
            await character_service.get_character("missing", None)
        assert exc_info.value.code == "RESOURCE_NOT_FOUND"

    @pytest.mark.parametrize("visibility", ["PRIVATE", "HIDDEN"])
    async def test_restricted_character_is_not_found_for_strangers(
        self, callers, make_character, visibility
    ):
        character = make_character(owner_id=callers["USER"].id, visibility=visibility)
        for caller in (None, callers["OTHER"]):
            with pytest.raises(AppError) as exc_info:
                await character_service.get_character(character["id"], caller)
            assert exc_info.value.code == "RESOURCE_NOT_FOUND"

    async def test_owner_and_staff_see_hidden_character_unmasked(self, callers, make_character):
        character = make_character("Shade", owner_id=callers["USER"].id, visibility="HIDDEN")
        for key in ("USER", "MODERATOR", "ADMIN"):
            result = await character_service.get_character(character["id"], callers[key])
            assert result["name"] == "Shade"

    async def test_non_expanded_read_has_no_equipment_key(self, callers, make_character):
        character = make_character(owner_id=callers["USER"].id)
        result = await character_service.get_character(character["id"], None)
        assert "equipment" not in result

    async def test_item_read_follows_character_rules(self, callers, make_item):
        item = make_item("Hidden Gem", owner_id=callers["USER"].id, visibility="HIDDEN")
        with pytest.raises(AppError):
            await item_service.get_item(item["id"], callers["OTHER"])
        seen = await item_service.get_item(item["id"], callers["MODERATOR"])
        assert seen["name"] == "Hidden Gem"
        with pytest.raises(AppError) as exc_info:
            await item_service.get_item("missing", None)
        assert exc_info.value.message == "Item not found"


@pytest.mark.db
@pytest.mark.security
@pytest.mark.asyncio
class TestExpandedRead:
    async def test_empty_equipment_expands_to_nulls(self, callers, make_character):
        character = make_character(owner_id=callers["USER"].id)
        result = await character_service.get_character(character["id"], None, expanded=True)
        assert len(result["equipment"]) == 14
        assert all(value is None for value in result["equipment"].values())

    async def test_equipped_items_are_resolved(self, callers, make_character, make_item):
        character = make_character(owner_id=callers["USER"].id)
        helm = make_item("Iron Helm", slot="HEAD")
        sword = make_item("Zweihander", slot="TWO_HANDS")
        equipment_repo.upsert(character["id"], {"head_id": helm["id"], "hands_id": sword["id"]})

        result = await character_service.get_character(character["id"], None, expanded=True)

        assert result["equipment"]["head"]["name"] == "Iron Helm"
        assert result["equipment"]["hands"]["slot"] == "TWO_HANDS"
        assert result["equipment"]["cloak"] is None

    async def test_unviewable_items_are_null_for_strangers(
        self, callers, make_character, make_item
    ):
        owner = callers["USER"]
        character = make_character(owner_id=owner.id)
        hidden = make_item("Cursed Ring", slot="RING", owner_id=owner.id, visibility="HIDDEN")
        private = make_item("Diary Amulet", slot="AMULET", owner_id=owner.id, visibility="PRIVATE")
        equipment_repo.upsert(
            character["id"], {"right_ring_id": hidden["id"], "amulet_id": private["id"]}
        )

        stranger = await character_service.get_character(
            character["id"], callers["OTHER"], expanded=True
        )
        assert stranger["equipment"]["right_ring"] is None
        assert stranger["equipment"]["amulet"] is None

        mine = await character_service.get_character(character["id"], owner, expanded=True)
        assert mine["equipment"]["right_ring"]["name"] == "Cursed Ring"
        assert mine["equipment"]["amulet"]["name"] == "Diary Amulet"


# ============================================================================
# LIST
# ============================================================================


@pytest.mark.db
@pytest.mark.security
@pytest.mark.asyncio
class TestList:
    @pytest.fixture
    def seeded(self, callers, make_character):
        make_character("Open", owner_id=callers["OTHER"].id)
        make_character("Secret", owner_id=callers["OTHER"].id, visibility="PRIVATE")
        make_character("Shade", owner_id=callers["OTHER"].id, visibility="HIDDEN")
        make_character("Mine", owner_id=callers["USER"].id, visibility="PRIVATE")

    async def test_anonymous_sees_public_only(self, seeded):
        rows = await character_service.list_characters(None)
        assert [row["name"] for row in rows] == ["Open"]

    async def test_user_sees_public_and_own(self, seeded, callers):
        rows = await character_service.list_characters(callers["USER"])
        assert {row["name"] for row in rows} == {"Open", "Mine"}

    async def test_moderator_sees_all_unmasked(self, seeded, callers):
        rows = await character_service.list_characters(callers["MODERATOR"])
        names = {row["name"] for row in rows}
        assert names == {"Open", "Secret", "Shade", "Mine"}
        assert HIDDEN_SENTINEL not in names

    async def test_paging(self, seeded, callers):
        first = await character_service.list_characters(callers["ADMIN"], limit=3)
        rest = await character_service.list_characters(callers["ADMIN"], limit=3, offset=3)
        assert len(first) == 3
        assert len(rest) == 1

    async def test_items_listed_by_slot(self, callers, make_item):
        make_item("Helm", slot="HEAD")
        make_item("Ring", slot="RING")
        rows = await item_service.list_items(None, slot="RING")
        assert [row["name"] for row in rows] == ["Ring"]


# ============================================================================
# DELETE
# ============================================================================


@pytest.mark.db
@pytest.mark.security
@pytest.mark.asyncio
class TestDelete:
    async def test_owner_deletes(self, callers, make_character):
        character = make_character(owner_id=callers["USER"].id)
        await character_service.delete_character(character["id"], callers["USER"])
        assert characters_repo.find_by_id(character["id"]) is None

    async def test_anonymous_delete_of_public_character_is_unauthorized(
        self, callers, make_character
    ):
        character = make_character(owner_id=callers["USER"].id)
        with pytest.raises(AppError) as exc_info:
            await character_service.delete_character(character["id"], None)
        assert exc_info.value.code == "UNAUTHORIZED"

    async def test_stranger_delete_is_forbidden(self, callers, make_character):
        character = make_character(owner_id=callers["USER"].id)
        with pytest.raises(AppError) as exc_info:
            await character_service.delete_character(character["id"], callers["OTHER"])
        assert exc_info.value.code == "FORBIDDEN"
        assert exc_info.value.message == "You do not have permission to delete this character"

    async def test_admin_cannot_delete_other_admin_character(self, callers, make_character):
        character = make_character(owner_id=callers["ADMIN"].id)
        other_admin = AuthenticatedUser(id="admin-2", email="a2@example.com", role="ADMIN")
        with pytest.raises(AppError) as exc_info:
            await character_service.delete_character(character["id"], other_admin)
        assert exc_info.value.code == "FORBIDDEN"

    async def test_moderator_deletes_public_user_character(self, callers, make_character):
        character = make_character(owner_id=callers["USER"].id)
        await character_service.delete_character(character["id"], callers["MODERATOR"])
        assert characters_repo.find_by_id(character["id"]) is None

    async def test_missing_character(self, test_db):
        with pytest.raises(AppError) as exc_info:
            await character_service.delete_character("missing", None)
        assert exc_info.value.code == "RESOURCE_NOT_FOUND"
