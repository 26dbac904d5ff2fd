"""
Model loading for Atlas Shop.

Reads any format trimesh can open (glTF/GLB, OBJ, PLY, STL, ...) and
converts it into the format-agnostic scene model, wrapped in a
SceneDocument the export dialog and the exporter can work with.

Node kinds are assigned from the loaded graph:
    - nodes carrying triangle geometry     → SKINNED (animated renderables)
    - nodes carrying other geometry        → OTHER   (paths, point clouds)
    - nodes without geometry               → GROUP
    - any node named in static_nodes       → OTHER   (kept out of the normal pass)

trimesh imports geometry and the node hierarchy but not skeletal animation,
so every document gets a generated turntable clip (one full turn about the
model's up axis) and a camera that frames the model's bounds.
"""

from pathlib import Path

import numpy as np
import trimesh
from trimesh import transformations as tf

from atlas_shop.core.errors import InvalidConfiguration
from atlas_shop.core.scene import (
    AnimationClip, BasicMaterial, Camera, NodeKind, SceneDocument, SceneNode, Track,
)

DEFAULT_CAMERA_NAME = "Default Camera"
TURNTABLE_CLIP_NAME = "Turntable"
TURNTABLE_DURATION = 2.0

# Fallback surface color when a mesh carries no color information.
DEFAULT_COLOR = (0.8, 0.8, 0.8, 1.0)


def _mesh_color(mesh: trimesh.Trimesh) -> tuple[float, float, float, float]:
    """Main color of a mesh as RGBA floats, from its vertex/face colors or material."""
    visual = mesh.visual
    color = getattr(visual, "main_color", None)
    if color is None:
        color = getattr(getattr(visual, "material", None), "main_color", None)
    if color is None:
        return DEFAULT_COLOR

    rgba = np.asarray(color, dtype=np.float64).ravel()
    if len(rgba) == 3:
        rgba = np.append(rgba, 255.0)
    return tuple(float(c) for c in rgba[:4] / 255.0)


def _apply_matrix(node: SceneNode, matrix: np.ndarray):
    """Split a local 4×4 transform into the node's translation / rotation / scale."""
    scale, _shear, angles, translate, _perspective = tf.decompose_matrix(matrix)
    node.translation = np.asarray(translate, dtype=np.float64)
    node.rotation = np.asarray(tf.quaternion_from_euler(*angles), dtype=np.float64)
    node.scale = np.asarray(scale, dtype=np.float64)


def _make_node(name: str, geometry, static_nodes) -> SceneNode:
    if isinstance(geometry, trimesh.Trimesh):
        kind = NodeKind.OTHER if name in static_nodes else NodeKind.SKINNED
        return SceneNode(
            name=name,
            kind=kind,
            geometry=geometry,
            material=BasicMaterial(name=f"{name} Material", color=_mesh_color(geometry)),
        )
    if geometry is not None:
        return SceneNode(name=name, kind=NodeKind.OTHER)
    kind = NodeKind.OTHER if name in static_nodes else NodeKind.GROUP
    return SceneNode(name=name, kind=kind)


def model_from_trimesh(scene: trimesh.Scene, name: str = "Model",
                       static_nodes=()) -> SceneNode:
    """
    Convert a trimesh scene graph into a SceneNode hierarchy.

    Args:
        scene:        Loaded trimesh.Scene.
        name:         Name given to the root node.
        static_nodes: Node names to load as OTHER instead of SKINNED.

    Returns:
        The root SceneNode (a GROUP named name).
    """
    static_nodes = set(static_nodes)
    graph = scene.graph
    base = graph.base_frame

    root = SceneNode(name=name, kind=NodeKind.GROUP)
    nodes = {base: root}

    # Edges come parent-first from the forest, but don't rely on it: create
    # every child node first, then link.
    edges = graph.to_edgelist()
    for _parent, child, attributes in edges:
        geometry = scene.geometry.get(attributes.get("geometry"))
        node = _make_node(str(child), geometry, static_nodes)
        _apply_matrix(node, np.asarray(attributes.get("matrix", np.eye(4)), dtype=np.float64))
        nodes[child] = node

    for parent, child, _attributes in edges:
        nodes[parent].add(nodes[child])

    return root


def default_camera(scene: trimesh.Scene, yfov: float = 50.0) -> Camera:
    """A camera slightly above the model, far enough back to frame its bounds."""
    bounds = scene.bounds
    if bounds is None:
        raise InvalidConfiguration("The model has no geometry to frame")

    center = bounds.mean(axis=0)
    radius = max(float(np.linalg.norm(bounds[1] - bounds[0])) / 2.0, 1e-3)
    distance = radius / np.sin(np.radians(yfov) / 2.0) * 1.1

    direction = np.array([0.0, 0.35, 1.0])
    direction /= np.linalg.norm(direction)
    position = center + direction * distance

    return Camera(
        name=DEFAULT_CAMERA_NAME,
        position=tuple(float(v) for v in position),
        target=tuple(float(v) for v in center),
        yfov=yfov,
        near=distance * 0.01,
        far=distance + radius * 4.0,
    )


def turntable_clip(node: SceneNode, duration: float = TURNTABLE_DURATION,
                   axis=(0.0, 1.0, 0.0), name: str = TURNTABLE_CLIP_NAME) -> AnimationClip:
    """
    One full turn of node about axis over duration seconds.

    Keys are placed every quarter turn so each slerp segment stays well
    under 180°. The turn is applied on top of the node's rest rotation.
    """
    times = np.linspace(0.0, duration, 5)
    angles = np.linspace(0.0, 2.0 * np.pi, 5)
    rest = np.asarray(node.rotation, dtype=np.float64)
    values = [
        tf.quaternion_multiply(tf.quaternion_about_axis(angle, axis), rest)
        for angle in angles
    ]
    return AnimationClip(
        name=name,
        tracks=[Track(target=node.name, path="rotation", times=times, values=values)],
        duration=duration,
    )


def document_from_trimesh(scene: trimesh.Scene, name: str = "Model",
                          static_nodes=()) -> SceneDocument:
    """Wrap a trimesh scene in a SceneDocument with a camera and a turntable clip."""
    model = model_from_trimesh(scene, name=name, static_nodes=static_nodes)
    camera = default_camera(scene)
    world = SceneNode(name="Scene", kind=NodeKind.GROUP).add(model)

    return SceneDocument(
        scene=world,
        selected=model,
        cameras={camera.name: camera},
        animations=[turntable_clip(model)],
        active_camera=camera.name,
    )


def load_document(path: Path, static_nodes=()) -> SceneDocument:
    """
    Load a model file into a SceneDocument.

    Args:
        path:         Any model file trimesh can read.
        static_nodes: Node names to keep out of the normal-pass override.

    Raises:
        InvalidConfiguration: If the file holds no geometry.
    """
    path = Path(path)
    scene = trimesh.load(path, force="scene")
    if len(scene.geometry) == 0:
        raise InvalidConfiguration(f"{path.name} contains no geometry")
    return document_from_trimesh(scene, name=path.stem, static_nodes=static_nodes)
