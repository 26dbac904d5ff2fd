"""
Material snapshot / override / restore for the two-pass export.

The normal pass temporarily replaces the selection's materials with a
NormalMaterial. The scene belongs to the editor, not to the export, so the
original assignments must come back exactly as they were — the same
material objects, single or list, on the same nodes.

    capture(root)            → MaterialSnapshot   (read-only walk)
    override_all(root, mat)  → assigns mat to every SKINNED node
    restore(root, snapshot)  → reassigns every recorded material

Override policy: only SKINNED nodes receive the override, and a SKINNED
node's own children are not visited. Every other kind is walked into but
keeps its material. Static meshes therefore render with their original
material in the normal pass as well; the spritesheet's normal atlas is
only meant to cover the animated meshes.
"""

from dataclasses import dataclass, field

from atlas_shop.core.errors import SnapshotMismatch
from atlas_shop.core.scene import Material, NodeKind, SceneNode


@dataclass
class MaterialSnapshot:
    """
    Material assignments of one node and its subtree, mirroring the hierarchy.

    Attributes:
        uuid:     Identifier of the captured node.
        material: The node's material reference(s), exactly as assigned.
        children: Snapshots of the node's children, in order.
    """
    uuid: str
    material: "Material | list[Material] | None"
    children: list["MaterialSnapshot"] = field(default_factory=list)


def capture(root: SceneNode) -> MaterialSnapshot:
    """Record the material assignment of root and every descendant."""
    return MaterialSnapshot(
        uuid=root.uuid,
        material=root.material,
        children=[capture(child) for child in root.children],
    )


# ---------------------------------------------------------------------------
# Override, dispatched on the node kind tag
# ---------------------------------------------------------------------------

def _assign(node: SceneNode, material: Material):
    node.material = material


def _descend(node: SceneNode, material: Material):
    for child in node.children:
        override_all(child, material)


_OVERRIDE_BY_KIND = {
    NodeKind.SKINNED: _assign,
    NodeKind.GROUP: _descend,
    NodeKind.OTHER: _descend,
}


def override_all(root: SceneNode, material: Material):
    """Assign material to every SKINNED node under root (see module docstring)."""
    _OVERRIDE_BY_KIND[root.kind](root, material)


# ---------------------------------------------------------------------------
# Restore
# ---------------------------------------------------------------------------

def _pair(node: SceneNode, snapshot: MaterialSnapshot, pairs: list):
    if node.uuid != snapshot.uuid:
        raise SnapshotMismatch(
            snapshot.uuid,
            f"Expected node {snapshot.uuid} at restore, found {node.uuid} ({node.name})",
        )
    pairs.append((node, snapshot))

    children_by_uuid = {child.uuid: child for child in node.children}
    for child_snapshot in snapshot.children:
        child = children_by_uuid.get(child_snapshot.uuid)
        if child is None:
            raise SnapshotMismatch(child_snapshot.uuid)
        _pair(child, child_snapshot, pairs)


def restore(root: SceneNode, snapshot: MaterialSnapshot):
    """
    Put back every material recorded in snapshot.

    Nodes are matched by uuid, so children may have been reordered since the
    capture. Every captured node is located before anything is reassigned:
    if one is missing, SnapshotMismatch is raised and no material changes.
    Nodes added after the capture are left alone.

    Raises:
        SnapshotMismatch: If a captured node is no longer in the hierarchy.
    """
    pairs: list[tuple[SceneNode, MaterialSnapshot]] = []
    _pair(root, snapshot, pairs)

    for node, node_snapshot in pairs:
        node.material = node_snapshot.material
