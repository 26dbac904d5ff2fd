import pytest

from atlas_shop.core.config import ExportConfig
from atlas_shop.core.errors import InvalidConfiguration
from atlas_shop.core.layout import CellSize
from atlas_shop.core.scene import AnimationClip, Camera, SceneDocument, SceneNode


@pytest.fixture
def document():
    root = SceneNode("Root")
    return SceneDocument(
        scene=root,
        selected=root,
        cameras={"Front": Camera("Front"), "Side": Camera("Side", position=(5.0, 0.0, 0.0))},
        animations=[AnimationClip("Idle", duration=1.0), AnimationClip("Run", duration=0.5)],
    )


def test_defaults():
    config = ExportConfig("Idle", "Front")

    assert config.cell_size == CellSize(150, 150)
    assert config.fps == 30


def test_resolve_returns_the_chosen_clip_and_camera(document):
    clip, camera = ExportConfig("Run", "Side").resolve(document)

    assert clip is document.animations[1]
    assert camera is document.cameras["Side"]


@pytest.mark.parametrize("animation, camera", [("Jump", "Front"), ("Idle", "Top")])
def test_unknown_names_are_rejected(document, animation, camera):
    with pytest.raises(InvalidConfiguration):
        ExportConfig(animation, camera).resolve(document)


@pytest.mark.parametrize("kwargs", [
    {"cell_width": 0},
    {"cell_height": -4},
    {"fps": 0},
])
def test_bad_numbers_are_rejected(document, kwargs):
    config = ExportConfig("Idle", "Front", **kwargs)

    with pytest.raises(InvalidConfiguration):
        config.validate()
    with pytest.raises(InvalidConfiguration):
        config.resolve(document)
