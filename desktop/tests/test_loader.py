import numpy as np
import pytest
import trimesh

from atlas_shop.core.errors import InvalidConfiguration
from atlas_shop.core.loader import (
    DEFAULT_CAMERA_NAME, TURNTABLE_CLIP_NAME, default_camera, document_from_trimesh,
    load_document, model_from_trimesh, turntable_clip,
)
from atlas_shop.core.scene import AnimationPlayer, BasicMaterial, NodeKind, SceneNode


@pytest.fixture
def rigged_scene():
    """world → Hips (no geometry) → Body, Sword; Body is offset by (0, 1, 0)."""
    scene = trimesh.Scene()
    scene.graph.update(frame_from=scene.graph.base_frame, frame_to="Hips")
    scene.add_geometry(
        trimesh.creation.box(), node_name="Body", geom_name="body",
        parent_node_name="Hips", transform=trimesh.transformations.translation_matrix([0, 1, 0]),
    )
    scene.add_geometry(
        trimesh.creation.box(extents=(0.1, 1.0, 0.1)), node_name="Sword", geom_name="sword",
        parent_node_name="Hips",
    )
    return scene


def test_hierarchy_and_kinds(rigged_scene):
    model = model_from_trimesh(rigged_scene, name="Knight")

    assert model.name == "Knight"
    assert model.kind is NodeKind.GROUP
    hips = model.find("Hips")
    assert hips.kind is NodeKind.GROUP
    assert hips in model.children
    assert {c.name for c in hips.children} == {"Body", "Sword"}

    body = model.find("Body")
    assert body.kind is NodeKind.SKINNED
    assert isinstance(body.material, BasicMaterial)
    assert len(body.geometry.faces) == 12
    assert body.translation == pytest.approx([0, 1, 0])


def test_static_nodes_load_as_other(rigged_scene):
    model = model_from_trimesh(rigged_scene, static_nodes=["Sword"])

    assert model.find("Sword").kind is NodeKind.OTHER
    assert model.find("Body").kind is NodeKind.SKINNED


def test_default_camera_frames_the_model(rigged_scene):
    camera = default_camera(rigged_scene)
    center = rigged_scene.bounds.mean(axis=0)

    assert camera.name == DEFAULT_CAMERA_NAME
    assert camera.target == pytest.approx(tuple(center))
    distance = np.linalg.norm(np.subtract(camera.position, camera.target))
    assert camera.near < distance < camera.far


def test_empty_scene_has_nothing_to_frame():
    with pytest.raises(InvalidConfiguration):
        default_camera(trimesh.Scene())


def test_turntable_makes_one_full_turn():
    node = SceneNode("Model")
    clip = turntable_clip(node, duration=2.0)
    player = AnimationPlayer(node, clip)

    player.play()
    start = node.rotation.copy()
    player.advance(0.5)
    quarter = node.rotation.copy()
    player.stop()

    assert clip.name == TURNTABLE_CLIP_NAME
    assert clip.duration == 2.0
    assert start == pytest.approx([1, 0, 0, 0])
    # A quarter of the clip is a quarter turn about +Y.
    point = trimesh.transformations.quaternion_matrix(quarter) @ np.array([1.0, 0, 0, 1])
    assert point[:3] == pytest.approx([0, 0, -1], abs=1e-9)


def test_document_wraps_model_with_camera_and_clip(rigged_scene):
    document = document_from_trimesh(rigged_scene, name="Knight")

    assert document.selected.name == "Knight"
    assert document.scene.children == [document.selected]
    assert list(document.cameras) == [DEFAULT_CAMERA_NAME]
    assert document.active_camera == DEFAULT_CAMERA_NAME
    assert [clip.name for clip in document.animations] == [TURNTABLE_CLIP_NAME]
    assert document.animations[0].tracks[0].target == "Knight"


def test_load_document_from_file(tmp_path):
    path = tmp_path / "crate.ply"
    trimesh.creation.box().export(path)

    document = load_document(path)

    assert document.selected.name == "crate"
    skinned = [n for n in document.selected.walk() if n.kind is NodeKind.SKINNED]
    assert len(skinned) == 1
    assert len(skinned[0].geometry.faces) == 12
