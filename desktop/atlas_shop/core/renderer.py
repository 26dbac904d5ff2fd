"""
Software renderer for Atlas Shop.

Draws the scene hierarchy from a camera into an RGBA frame with a numpy
z-buffer rasterizer. No GPU or windowing system is involved, so exports
run the same on every machine (and inside tests).

Rendering steps, per drawable node:
    1. Compose the node's world matrix from the hierarchy (T · R · S).
    2. Project its vertices to pixel space: model → view → clip → NDC.
    3. Shade each face once (flat shading):
           BasicMaterial  — Lambert term from one directional light + ambient
           NormalMaterial — view-space face normal encoded as (n + 1) / 2
    4. Rasterize each face over its pixel bounding box with barycentric
       weights, keeping the nearest fragment in the depth buffer.

Faces are shaded two-sided: a normal pointing away from the camera is
flipped, so models with inconsistent winding still render solid.

The background is fully transparent, so frames can be laid out on an
atlas without a matte.

SceneFrameRenderer wraps the renderer and an AnimationPlayer into the
"advance playback by dt, then render" capability the frame sampler uses.
"""

import asyncio

import numpy as np
from PIL import Image

from atlas_shop.core.layout import CellSize
from atlas_shop.core.sampler import FrameRenderer, RenderFrame
from atlas_shop.core.scene import (
    AnimationClip, AnimationPlayer, BasicMaterial, Camera, NodeKind,
    NormalMaterial, SceneNode,
)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

# Epsilon for the barycentric inside-triangle test. A small negative value
# lets pixels exactly on a shared edge through, preventing hairline cracks
# between adjacent triangles.
BARY_EPSILON = -1e-5

# Default key light, in world space. Points from the surface toward the light.
DEFAULT_LIGHT_DIRECTION = (0.4, 0.8, 0.6)

# Fraction of the base color visible on faces the light does not reach.
DEFAULT_AMBIENT = 0.3


def _first_material(material):
    """A node may carry a list of materials; the renderer draws with the first."""
    if isinstance(material, (list, tuple)):
        return material[0] if material else None
    return material


def _drawables(node: SceneNode, parent_world: np.ndarray):
    """Yield (node, world_matrix, material) for every node that can be drawn."""
    world = parent_world @ node.local_matrix()
    material = _first_material(node.material)
    if (node.kind is not NodeKind.GROUP and node.geometry is not None
            and material is not None and len(node.geometry.faces) > 0):
        yield node, world, material
    for child in node.children:
        yield from _drawables(child, world)


class SoftwareRenderer:
    """
    Z-buffered triangle rasterizer producing RGBA PIL images.

    The render size is set once per export pass with set_size() and stays
    constant for every frame of the pass.
    """

    def __init__(self, width: int = 150, height: int = 150,
                 light_direction=DEFAULT_LIGHT_DIRECTION,
                 ambient: float = DEFAULT_AMBIENT):
        self.width = width
        self.height = height
        light = np.asarray(light_direction, dtype=np.float64)
        self.light_direction = light / np.linalg.norm(light)
        self.ambient = ambient

    def set_size(self, width: int, height: int):
        self.width = int(width)
        self.height = int(height)

    def render(self, scene: SceneNode, camera: Camera) -> Image.Image:
        """
        Render the scene from camera at the current size.

        Returns:
            PIL Image (RGBA, width × height). Pixels not covered by any
            face are (0, 0, 0, 0).
        """
        color = np.zeros((self.height, self.width, 4), dtype=np.float32)
        depth = np.full((self.height, self.width), np.inf, dtype=np.float64)

        view = camera.view_matrix()
        projection = camera.projection_matrix(self.width / self.height)

        for node, world, material in _drawables(scene, np.eye(4)):
            self._draw(node, world, view, projection, material, color, depth)

        img_uint8 = (np.clip(color, 0.0, 1.0) * 255 + 0.5).astype(np.uint8)
        return Image.fromarray(img_uint8, "RGBA")

    # -- internals ----------------------------------------------------------

    def _face_colors(self, material, normals: np.ndarray, view: np.ndarray) -> np.ndarray:
        """Flat RGBA per face, (F, 4) float32."""
        n_faces = len(normals)

        if isinstance(material, NormalMaterial):
            rgb = (normals + 1.0) / 2.0
            alpha = np.ones((n_faces, 1))
            return np.hstack([rgb, alpha]).astype(np.float32)

        if isinstance(material, BasicMaterial):
            # Light direction rotated into view space to match the normals.
            light = view[:3, :3] @ self.light_direction
            lambert = np.clip(normals @ light, 0.0, 1.0)
            intensity = self.ambient + (1.0 - self.ambient) * lambert
            base = np.asarray(material.color, dtype=np.float64)
            rgb = intensity[:, np.newaxis] * base[np.newaxis, :3]
            alpha = np.full((n_faces, 1), base[3])
            return np.hstack([rgb, alpha]).astype(np.float32)

        raise ValueError(f"Cannot render material of type {type(material).__name__}")

    def _draw(self, node, world, view, projection, material, color, depth):
        vertices = np.asarray(node.geometry.vertices, dtype=np.float64)
        faces = np.asarray(node.geometry.faces, dtype=np.int64)

        homogeneous = np.hstack([vertices, np.ones((len(vertices), 1))])
        view_pos = (view @ world @ homogeneous.T).T
        clip = (projection @ view_pos.T).T

        # Faces with a vertex at or behind the eye can't be projected.
        w = clip[:, 3]
        visible = np.all(w[faces] > 1e-9, axis=1)
        faces = faces[visible]
        if len(faces) == 0:
            return

        safe_w = np.where(w > 1e-9, w, 1.0)
        ndc = clip[:, :3] / safe_w[:, np.newaxis]

        # NDC → pixel space. Y is flipped: NDC +1 is the top row.
        px = (ndc[:, 0] + 1.0) * 0.5 * self.width
        py = (1.0 - ndc[:, 1]) * 0.5 * self.height
        pz = ndc[:, 2]

        # View-space face normals, flipped toward the camera (two-sided).
        tri = view_pos[faces][:, :, :3]
        normals = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
        lengths = np.linalg.norm(normals, axis=1)
        keep = lengths > 1e-12
        faces, tri, normals, lengths = faces[keep], tri[keep], normals[keep], lengths[keep]
        normals /= lengths[:, np.newaxis]
        centroids = tri.mean(axis=1)
        facing_away = np.einsum("ij,ij->i", normals, -centroids) < 0
        normals[facing_away] *= -1.0

        face_colors = self._face_colors(material, normals, view)

        for face, face_color in zip(faces, face_colors):
            i0, i1, i2 = int(face[0]), int(face[1]), int(face[2])
            x0, y0, z0 = px[i0], py[i0], pz[i0]
            x1, y1, z1 = px[i1], py[i1], pz[i1]
            x2, y2, z2 = px[i2], py[i2], pz[i2]

            # Pixel bounding box, clamped to the frame.
            xmin = max(0, int(np.floor(min(x0, x1, x2))))
            xmax = min(self.width - 1, int(np.ceil(max(x0, x1, x2))))
            ymin = max(0, int(np.floor(min(y0, y1, y2))))
            ymax = min(self.height - 1, int(np.ceil(max(y0, y1, y2))))
            if xmin > xmax or ymin > ymax:
                continue

            denom = (y1 - y2) * (x0 - x2) + (x2 - x1) * (y0 - y2)
            if abs(denom) < 1e-12:
                continue

            # Sample at pixel centers.
            xs = np.arange(xmin, xmax + 1, dtype=np.float64) + 0.5
            ys = np.arange(ymin, ymax + 1, dtype=np.float64) + 0.5
            xx, yy = np.meshgrid(xs, ys)

            w0 = ((y1 - y2) * (xx - x2) + (x2 - x1) * (yy - y2)) / denom
            w1 = ((y2 - y0) * (xx - x2) + (x0 - x2) * (yy - y2)) / denom
            w2 = 1.0 - w0 - w1
            inside = (w0 >= BARY_EPSILON) & (w1 >= BARY_EPSILON) & (w2 >= BARY_EPSILON)
            if not inside.any():
                continue

            z = w0 * z0 + w1 * z1 + w2 * z2
            region = depth[ymin:ymax + 1, xmin:xmax + 1]
            nearer = inside & (z >= -1.0) & (z <= 1.0) & (z < region)
            if not nearer.any():
                continue

            iy, ix = np.where(nearer)
            depth[ymin + iy, xmin + ix] = z[iy, ix]
            color[ymin + iy, xmin + ix] = face_color


# ---------------------------------------------------------------------------
# Frame capability for the sampler
# ---------------------------------------------------------------------------

class SceneFrameRenderer(FrameRenderer):
    """
    Binds a renderer, a scene and animation playback into per-frame renders.

    start() prepares one pass: it sizes the renderer to the atlas cell,
    starts a fresh AnimationPlayer at time 0 and returns render_frame(dt),
    an async callable that advances playback by dt and renders the current
    pose. The render itself runs in a worker thread so the event loop is
    free while numpy rasterizes; only one frame is ever in flight.

    stop() ends the pass and returns the animated nodes to their rest pose.
    """

    def __init__(self, renderer: SoftwareRenderer, scene: SceneNode,
                 animated_root: SceneNode | None = None):
        self.renderer = renderer
        self.scene = scene
        self.animated_root = animated_root if animated_root is not None else scene
        self._player: AnimationPlayer | None = None

    def start(self, clip: AnimationClip, camera: Camera,
              cell_size: CellSize) -> RenderFrame:
        self.stop()
        self.renderer.set_size(cell_size.width, cell_size.height)

        player = AnimationPlayer(self.animated_root, clip)
        player.play()
        self._player = player

        async def render_frame(dt: float) -> Image.Image:
            player.advance(dt)
            return await asyncio.to_thread(self.renderer.render, self.scene, camera)

        return render_frame

    def stop(self):
        if self._player is not None:
            self._player.stop()
            self._player = None
