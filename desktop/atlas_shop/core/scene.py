"""
Scene model for Atlas Shop.

Format-agnostic data structures for the object being exported. The loader
fills these from a model file, the renderer draws them, the material
snapshot module swaps their materials, and the animation player poses them.
None of these modules need to know which file format the model came from.

Node kinds are a tagged variant rather than a class hierarchy. Traversals
(material override, rendering) dispatch on SceneNode.kind:

    SKINNED — a renderable whose appearance is driven by animation. The
              only kind that receives the normal-pass material override.
    GROUP   — a structural node. Holds children, never drawn itself.
    OTHER   — anything else: static meshes, helpers, bones. Drawn when it
              has geometry and a material, but never overridden.

Animation follows the usual keyframe track model. A clip owns tracks, each
track targets one node by name and one TRS channel, and the AnimationPlayer
samples every track at the current time and writes the result onto the
targeted node. Rotations are unit quaternions in (w, x, y, z) order, the
convention used by trimesh.transformations.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
import trimesh
from trimesh import transformations as tf


class NodeKind(Enum):
    """Tag that decides how traversals treat a node."""
    SKINNED = "skinned"
    GROUP = "group"
    OTHER = "other"


def _new_uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Materials
# ---------------------------------------------------------------------------
# Materials compare by identity (eq=False). Restoring a snapshot must put
# back the very same material objects, not equal-looking copies.

@dataclass(eq=False)
class Material:
    name: str = ""
    uuid: str = field(default_factory=_new_uuid)


@dataclass(eq=False)
class BasicMaterial(Material):
    """
    Flat surface color, lit with a single directional light.

    Attributes:
        color: RGBA in [0, 1]. Alpha is written straight to the frame.
    """
    color: tuple[float, float, float, float] = (0.8, 0.8, 0.8, 1.0)


@dataclass(eq=False)
class NormalMaterial(Material):
    """
    Visualizes view-space surface normals.

    Encoding convention (OpenGL standard):
        R = (Nx + 1) / 2,  G = (Ny + 1) / 2,  B = (Nz + 1) / 2
    A surface facing the camera encodes as (128, 128, 255).
    """
    name: str = "Normal"


# ---------------------------------------------------------------------------
# Scene graph
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class SceneNode:
    """
    One node of the scene hierarchy.

    Attributes:
        name:        Node name, used by animation tracks to find their target.
        kind:        NodeKind tag.
        material:    A Material, a list of Materials, or None.
        children:    Child nodes, in order.
        geometry:    trimesh.Trimesh for drawable nodes, None otherwise.
        translation: (3,) local translation.
        rotation:    (4,) local rotation quaternion (w, x, y, z).
        scale:       (3,) local scale.
        uuid:        Unique identifier, stable for the life of the node.
    """
    name: str
    kind: NodeKind = NodeKind.GROUP
    material: "Material | list[Material] | None" = None
    children: list["SceneNode"] = field(default_factory=list)
    geometry: trimesh.Trimesh | None = None
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0, 0.0]))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))
    uuid: str = field(default_factory=_new_uuid)

    def add(self, *nodes: "SceneNode") -> "SceneNode":
        self.children.extend(nodes)
        return self

    def local_matrix(self) -> np.ndarray:
        """Compose the local transform as T · R · S."""
        matrix = tf.quaternion_matrix(self.rotation)
        matrix[:3, :3] = matrix[:3, :3] @ np.diag(self.scale)
        matrix[:3, 3] = self.translation
        return matrix

    def walk(self):
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, name: str) -> "SceneNode | None":
        """Return the first node (depth first) with the given name."""
        for node in self.walk():
            if node.name == name:
                return node
        return None


# ---------------------------------------------------------------------------
# Cameras
# ---------------------------------------------------------------------------

@dataclass
class Camera:
    """
    Perspective camera looking from position at target.

    Attributes:
        yfov: Vertical field of view in degrees.
    """
    name: str
    position: tuple[float, float, float] = (0.0, 0.0, 5.0)
    target: tuple[float, float, float] = (0.0, 0.0, 0.0)
    up: tuple[float, float, float] = (0.0, 1.0, 0.0)
    yfov: float = 50.0
    near: float = 0.1
    far: float = 1000.0
    uuid: str = field(default_factory=_new_uuid)

    def view_matrix(self) -> np.ndarray:
        """World → camera transform. The camera looks down its -Z axis."""
        eye = np.asarray(self.position, dtype=np.float64)
        target = np.asarray(self.target, dtype=np.float64)
        up = np.asarray(self.up, dtype=np.float64)

        fwd = eye - target
        fwd /= np.linalg.norm(fwd)
        right = np.cross(up, fwd)
        right /= np.linalg.norm(right)
        true_up = np.cross(fwd, right)

        rot = np.eye(4)
        rot[0, :3] = right
        rot[1, :3] = true_up
        rot[2, :3] = fwd
        trans = np.eye(4)
        trans[:3, 3] = -eye
        return rot @ trans

    def projection_matrix(self, aspect: float) -> np.ndarray:
        """Camera → clip space (OpenGL convention, NDC z in [-1, 1])."""
        f = 1.0 / np.tan(np.radians(self.yfov) / 2.0)
        near, far = self.near, self.far
        return np.array([
            [f / aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, (far + near) / (near - far), 2.0 * far * near / (near - far)],
            [0.0, 0.0, -1.0, 0.0],
        ])


# ---------------------------------------------------------------------------
# Animation
# ---------------------------------------------------------------------------

TRACK_PATHS = ("translation", "rotation", "scale")


@dataclass
class Track:
    """
    Keyframes for one TRS channel of one node.

    Attributes:
        target: Name of the animated node.
        path:   "translation", "rotation" or "scale".
        times:  (K,) ascending key times in seconds.
        values: (K, 3) for translation/scale, (K, 4) wxyz quaternions for rotation.
    """
    target: str
    path: str
    times: np.ndarray
    values: np.ndarray

    def __post_init__(self):
        self.times = np.asarray(self.times, dtype=np.float64)
        self.values = np.asarray(self.values, dtype=np.float64)
        if self.path not in TRACK_PATHS:
            raise ValueError(f"Unknown track path {self.path!r}")
        if len(self.times) == 0 or len(self.times) != len(self.values):
            raise ValueError(f"Track {self.target}.{self.path} needs one value per key time")

    def sample(self, time: float) -> np.ndarray:
        """Value of this channel at the given time, clamped to the first/last key."""
        times = self.times
        if time <= times[0]:
            return self.values[0].copy()
        if time >= times[-1]:
            return self.values[-1].copy()

        i = int(np.searchsorted(times, time, side="right")) - 1
        t0, t1 = times[i], times[i + 1]
        fraction = (time - t0) / (t1 - t0)
        if self.path == "rotation":
            return tf.quaternion_slerp(self.values[i], self.values[i + 1], fraction)
        return self.values[i] + (self.values[i + 1] - self.values[i]) * fraction


@dataclass
class AnimationClip:
    """
    A named, playable animation.

    A negative duration is replaced by the time of the last key across all
    tracks, so clips built from keyframes don't have to repeat it.
    """
    name: str
    tracks: list[Track] = field(default_factory=list)
    duration: float = -1.0

    def __post_init__(self):
        if self.duration < 0:
            self.duration = max((float(t.times[-1]) for t in self.tracks), default=0.0)


class AnimationPlayer:
    """
    Plays one clip on a scene hierarchy.

    Playback is stepped, never wall-clock driven: advance(dt) moves time
    forward by exactly dt and poses every targeted node. Time loops modulo
    the clip duration. Tracks whose target is not in the hierarchy are ignored.
    """

    def __init__(self, root: SceneNode, clip: AnimationClip):
        self.root = root
        self.clip = clip
        self.time = 0.0
        self._bindings: list[tuple[SceneNode, Track]] = []
        self._rest_pose: dict[str, tuple[np.ndarray, np.ndarray, np.ndarray]] = {}

    def play(self):
        """Bind tracks to nodes, remember the rest pose, and pose at time 0."""
        self.time = 0.0
        self._bindings = []
        for track in self.clip.tracks:
            node = self.root.find(track.target)
            if node is not None:
                self._bindings.append((node, track))
                self._rest_pose.setdefault(
                    node.uuid,
                    (node.translation.copy(), node.rotation.copy(), node.scale.copy()),
                )
        self._apply()

    def advance(self, dt: float):
        """Move playback forward by dt seconds and pose the hierarchy."""
        self.time += dt
        duration = self.clip.duration
        if duration > 0:
            self.time %= duration
        self._apply()

    def stop(self):
        """Put every animated node back in its rest pose."""
        for node, _track in self._bindings:
            rest = self._rest_pose.get(node.uuid)
            if rest is not None:
                node.translation, node.rotation, node.scale = (v.copy() for v in rest)
        self._bindings = []
        self._rest_pose = {}

    def _apply(self):
        for node, track in self._bindings:
            setattr(node, track.path, track.sample(self.time))


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

@dataclass
class SceneDocument:
    """
    Everything the export needs from the host editor.

    Attributes:
        scene:         Root of the whole scene (what gets rendered).
        selected:      The object being exported (what gets its materials swapped).
        cameras:       Camera registry, keyed by camera name.
        animations:    Clips playable on the selected object.
        active_camera: Name of the camera the editor is currently looking
                       through, if any.
    """
    scene: SceneNode
    selected: SceneNode
    cameras: dict[str, Camera] = field(default_factory=dict)
    animations: list[AnimationClip] = field(default_factory=list)
    active_camera: str | None = None

    def preferred_camera(self) -> str | None:
        """The active camera if it is registered, else the first camera."""
        if self.active_camera in self.cameras:
            return self.active_camera
        return next(iter(self.cameras), None)

    def animation(self, name: str) -> AnimationClip | None:
        for clip in self.animations:
            if clip.name == name:
                return clip
        return None
