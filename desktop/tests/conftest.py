"""Shared fixtures: a small character hierarchy and a scripted frame renderer."""

import pytest
import trimesh
from PIL import Image

from atlas_shop.core.sampler import FrameRenderer
from atlas_shop.core.scene import (
    AnimationClip, BasicMaterial, Camera, NodeKind, SceneNode, Track,
)


class ScriptedFrameRenderer(FrameRenderer):
    """
    Stand-in for the render service.

    Every frame is a solid image whose red channel is the frame's position in
    the pass, so tests can read back which frame landed in which cell. The
    materials on `watch` are recorded for every frame.

    Attributes:
        starts:      (clip, camera, cell_size) per start() call.
        stops:       Number of stop() calls.
        dts:         Every dt passed to render_frame, across passes.
        times:       Accumulated playback time at each rendered frame.
        seen:        Material of `watch` at each rendered frame.
        wrong_size:  Global frame number to return a 1x1 image for.
        fail_at:     Global frame number to raise RuntimeError at.
        on_frame:    Optional hook called with the global frame number.
    """

    def __init__(self, watch: SceneNode | None = None, wrong_size: int | None = None,
                 fail_at: int | None = None, on_frame=None):
        self.watch = watch
        self.wrong_size = wrong_size
        self.fail_at = fail_at
        self.on_frame = on_frame
        self.starts = []
        self.stops = 0
        self.dts = []
        self.times = []
        self.seen = []
        self._rendered = 0

    def start(self, clip, camera, cell_size):
        self.starts.append((clip, camera, cell_size))
        state = {"time": 0.0, "index": 0}

        async def render_frame(dt):
            frame_number = self._rendered
            self._rendered += 1
            state["time"] += dt
            self.dts.append(dt)
            self.times.append(state["time"])
            if self.watch is not None:
                self.seen.append(self.watch.material)
            if self.on_frame is not None:
                self.on_frame(frame_number)
            if self.fail_at == frame_number:
                raise RuntimeError("renderer crashed")
            if self.wrong_size == frame_number:
                return Image.new("RGBA", (1, 1))

            red = state["index"] % 256
            state["index"] += 1
            return Image.new("RGBA", cell_size.as_tuple(), (red, 0, 0, 255))

        return render_frame

    def stop(self):
        self.stops += 1


@pytest.fixture
def character():
    """
    A small mixed hierarchy:

        Character (GROUP)
        ├── Body (SKINNED, single material)
        ├── Armor (SKINNED, two materials)
        │   └── Buckle (SKINNED, child of a skinned node)
        ├── Rig (OTHER)
        │   └── Hair (SKINNED, under a non-group node)
        └── Sword (OTHER, static mesh)
    """
    box = trimesh.creation.box()
    body = SceneNode("Body", NodeKind.SKINNED, BasicMaterial("skin"), geometry=box)
    buckle = SceneNode("Buckle", NodeKind.SKINNED, BasicMaterial("brass"), geometry=box)
    armor = SceneNode(
        "Armor", NodeKind.SKINNED, [BasicMaterial("steel"), BasicMaterial("leather")],
        geometry=box,
    ).add(buckle)
    hair = SceneNode("Hair", NodeKind.SKINNED, BasicMaterial("hair"), geometry=box)
    rig = SceneNode("Rig", NodeKind.OTHER).add(hair)
    sword = SceneNode("Sword", NodeKind.OTHER, BasicMaterial("blade"), geometry=box)
    return SceneNode("Character", NodeKind.GROUP).add(body, armor, rig, sword)


@pytest.fixture
def one_second_clip():
    return AnimationClip(
        name="Wave",
        tracks=[Track("Body", "translation", [0.0, 1.0], [[0, 0, 0], [1, 0, 0]])],
    )


@pytest.fixture
def camera():
    return Camera(name="Front", position=(0.0, 0.0, 6.0))
