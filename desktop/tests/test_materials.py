import pytest

from atlas_shop.core.errors import SnapshotMismatch
from atlas_shop.core.materials import capture, override_all, restore
from atlas_shop.core.scene import NodeKind, NormalMaterial, SceneNode


def assignments(root):
    """uuid → material object (lists copied so later reassignment is visible)."""
    return {
        node.uuid: list(node.material) if isinstance(node.material, list) else node.material
        for node in root.walk()
    }


def identities(root):
    return {node.uuid: id(node.material) for node in root.walk()}


def test_snapshot_mirrors_the_hierarchy(character):
    snapshot = capture(character)

    assert snapshot.uuid == character.uuid
    assert [c.uuid for c in snapshot.children] == [c.uuid for c in character.children]
    armor = character.find("Armor")
    armor_snapshot = snapshot.children[1]
    assert armor_snapshot.material is armor.material
    assert armor_snapshot.children[0].uuid == armor.children[0].uuid


def test_capture_does_not_touch_the_scene(character):
    before = identities(character)
    capture(character)
    assert identities(character) == before


def test_capture_then_restore_is_a_no_op(character):
    before = identities(character)
    snapshot = capture(character)

    restore(character, snapshot)

    assert identities(character) == before


def test_override_hits_skinned_nodes_only(character):
    before = assignments(character)
    normal = NormalMaterial()

    override_all(character, normal)

    assert character.find("Body").material is normal
    assert character.find("Armor").material is normal
    # Reached through a non-group parent.
    assert character.find("Hair").material is normal
    # Static mesh keeps its material.
    assert character.find("Sword").material is before[character.find("Sword").uuid]
    # Children of a skinned node are not visited.
    assert character.find("Buckle").material is before[character.find("Buckle").uuid]


def test_override_then_restore_puts_back_the_same_objects(character):
    before = identities(character)
    armor_materials = character.find("Armor").material
    snapshot = capture(character)

    override_all(character, NormalMaterial())
    restore(character, snapshot)

    assert identities(character) == before
    assert character.find("Armor").material is armor_materials
    assert [m.name for m in armor_materials] == ["steel", "leather"]


def test_restore_matches_children_by_uuid_not_position(character):
    snapshot = capture(character)
    override_all(character, NormalMaterial())
    character.children.reverse()

    restore(character, snapshot)

    assert character.find("Body").material.name == "skin"
    assert character.find("Hair").material.name == "hair"


def test_restore_ignores_nodes_added_after_capture(character):
    snapshot = capture(character)
    extra = SceneNode("Cape", NodeKind.SKINNED, NormalMaterial())
    character.add(extra)

    restore(character, snapshot)

    assert isinstance(extra.material, NormalMaterial)


def test_missing_node_fails_without_changing_anything(character):
    snapshot = capture(character)
    normal = NormalMaterial()
    override_all(character, normal)
    rig = character.find("Rig")
    hair = rig.children.pop()

    with pytest.raises(SnapshotMismatch) as excinfo:
        restore(character, snapshot)

    assert excinfo.value.node_id == hair.uuid
    # Restore aborted before reassigning anything.
    assert character.find("Body").material is normal


def test_replaced_root_is_a_mismatch(character):
    snapshot = capture(character)
    with pytest.raises(SnapshotMismatch):
        restore(SceneNode("Other"), snapshot)
