"""
Unit tests for visibility masking (rpg_server/services/masking.py).

Tests cover:
- Pass-through (same object) for non-HIDDEN entities and privileged viewers
- Descriptive-field redaction for non-privileged viewers
- Copy-on-write behaviour of the list and equipment helpers
- ``null_if_not_viewable`` for expanded equipment bundles
"""

import pytest

from rpg_server.services.masking import (
    DESCRIPTIVE_FIELDS,
    EQUIPMENT_SLOT_NAMES,
    HIDDEN_SENTINEL,
    mask_entities,
    mask_entity,
    mask_equipment_slots,
)


def hidden_item(**overrides):
    item = {
        "id": "item-1",
        "name": "Shadow Blade",
        "description": "Whispers at night",
        "visibility": "HIDDEN",
        "owner_id": "owner-1",
        "value": 250,
        "created_at": "2024-01-01 00:00:00",
    }
    item.update(overrides)
    return item


# ============================================================================
# MASK_ENTITY
# ============================================================================


@pytest.mark.unit
@pytest.mark.security
class TestMaskEntity:
    def test_none_passes_through(self, other_user):
        assert mask_entity(None, other_user) is None

    @pytest.mark.parametrize("visibility", ["PUBLIC", "PRIVATE"])
    def test_non_hidden_returns_same_reference(self, other_user, visibility):
        entity = hidden_item(visibility=visibility)
        assert mask_entity(entity, other_user) is entity

    def test_owner_sees_unmasked_reference(self, owner_user):
        entity = hidden_item()
        assert mask_entity(entity, owner_user) is entity

    def test_staff_see_unmasked_reference(self, admin_user, moderator_user):
        entity = hidden_item()
        assert mask_entity(entity, admin_user) is entity
        assert mask_entity(entity, moderator_user) is entity

    def test_other_user_gets_masked_clone(self, other_user):
        entity = hidden_item()
        masked = mask_entity(entity, other_user)

        assert masked is not entity
        assert masked["name"] == HIDDEN_SENTINEL
        assert masked["description"] == HIDDEN_SENTINEL
        assert masked["id"] == "item-1"
        assert masked["value"] == 250
        assert masked["visibility"] == "HIDDEN"
        assert masked["owner_id"] == "owner-1"
        assert masked["created_at"] == "2024-01-01 00:00:00"
        # Original untouched
        assert entity["name"] == "Shadow Blade"

    def test_anonymous_gets_masked_clone(self):
        masked = mask_entity(hidden_item(), None)
        assert masked["name"] == HIDDEN_SENTINEL

    def test_absent_descriptive_fields_are_not_added(self, other_user):
        masked = mask_entity(hidden_item(), other_user)
        assert "bio" not in masked
        assert "title" not in masked

    def test_null_descriptive_field_is_masked(self, other_user):
        masked = mask_entity(hidden_item(description=None), other_user)
        assert masked["description"] == HIDDEN_SENTINEL

    def test_non_string_descriptive_value_is_left_alone(self, other_user):
        masked = mask_entity(hidden_item(title=42), other_user)
        assert masked["title"] == 42

    def test_entity_without_descriptive_fields_returns_same_reference(self, other_user):
        entity = {"id": "x", "visibility": "HIDDEN", "owner_id": "owner-1"}
        assert mask_entity(entity, other_user) is entity

    @pytest.mark.parametrize("value", [["x"], "HIDDEN", 42, ("visibility", "HIDDEN")])
    def test_non_mapping_input_is_returned_unchanged(self, other_user, value):
        assert mask_entity(value, other_user) is value
        assert mask_entity(value, None) is value

    def test_masking_is_idempotent(self, other_user):
        once = mask_entity(hidden_item(), other_user)
        twice = mask_entity(once, other_user)
        assert twice == once

    def test_descriptive_fields_are_fixed(self):
        assert DESCRIPTIVE_FIELDS == ("name", "description", "bio", "title")


# ============================================================================
# MASK_ENTITIES
# ============================================================================


@pytest.mark.unit
@pytest.mark.security
class TestMaskEntities:
    def test_unchanged_list_is_returned_as_is(self, other_user):
        entities = [hidden_item(visibility="PUBLIC"), hidden_item(id="item-2", visibility="PUBLIC")]
        assert mask_entities(entities, other_user) is entities

    def test_empty_list_is_returned_as_is(self, other_user):
        entities = []
        assert mask_entities(entities, other_user) is entities

    def test_changed_list_is_new_and_keeps_order(self, other_user):
        public = hidden_item(id="a", visibility="PUBLIC")
        hidden = hidden_item(id="b")
        own = hidden_item(id="c", owner_id="other-1")
        entities = [public, hidden, own]

        result = mask_entities(entities, other_user)

        assert result is not entities
        assert [e["id"] for e in result] == ["a", "b", "c"]
        assert result[0] is public
        assert result[1]["name"] == HIDDEN_SENTINEL
        assert result[2] is own


# ============================================================================
# MASK_EQUIPMENT_SLOTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.security
class TestMaskEquipmentSlots:
    def bundle(self, **slots):
        equipment = dict.fromkeys(EQUIPMENT_SLOT_NAMES)
        equipment["character_id"] = "char-1"
        equipment.update(slots)
        return equipment

    def test_covers_all_fourteen_slots(self):
        assert len(EQUIPMENT_SLOT_NAMES) == 14
        assert list(EQUIPMENT_SLOT_NAMES)[0] == "head"
        assert list(EQUIPMENT_SLOT_NAMES)[-1] == "cloak"

    def test_none_passes_through(self, other_user):
        assert mask_equipment_slots(None, other_user) is None

    def test_nothing_to_mask_returns_same_reference(self, other_user):
        equipment = self.bundle(head=hidden_item(visibility="PUBLIC"), belt="item-id-only")
        assert mask_equipment_slots(equipment, other_user) is equipment

    def test_privileged_viewer_returns_same_reference(self, owner_user):
        equipment = self.bundle(cloak=hidden_item())
        assert mask_equipment_slots(equipment, owner_user) is equipment

    def test_hidden_nested_item_is_masked(self, other_user):
        visible = hidden_item(id="helm", visibility="PUBLIC")
        equipment = self.bundle(head=visible, right_hand=hidden_item())

        result = mask_equipment_slots(equipment, other_user)

        assert result is not equipment
        assert result["head"] is visible
        assert result["right_hand"]["name"] == HIDDEN_SENTINEL
        assert result["character_id"] == "char-1"
        assert equipment["right_hand"]["name"] == "Shadow Blade"

    def test_null_if_not_viewable_drops_hidden_items(self, other_user):
        equipment = self.bundle(right_hand=hidden_item(), head=hidden_item(visibility="PUBLIC"))

        result = mask_equipment_slots(equipment, other_user, null_if_not_viewable=True)

        assert result["right_hand"] is None
        assert result["head"] is equipment["head"]

    def test_null_if_not_viewable_keeps_items_for_privileged_viewer(self, admin_user):
        equipment = self.bundle(right_hand=hidden_item())
        result = mask_equipment_slots(equipment, admin_user, null_if_not_viewable=True)
        assert result is equipment

    def test_non_mapping_bundle_is_returned_unchanged(self, other_user):
        bundle = ["head"]
        assert mask_equipment_slots(bundle, other_user) is bundle
        assert mask_entities(None, other_user) is None

    def test_unknown_keys_are_ignored(self, other_user):
        equipment = {"character_id": "char-1", "trinket": hidden_item()}
        assert mask_equipment_slots(equipment, other_user) is equipment
