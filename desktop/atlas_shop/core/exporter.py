"""
Dual-pass spritesheet export.

Runs the frame sampler twice over the same clip and camera, once with the
selection's own materials (diffuse atlas) and once with a NormalMaterial
on every skinned mesh (normal atlas), then zips both atlases.

The selection's materials belong to the editor's scene. They are captured
before the first pass and restored after the second, and restoration is
unconditional: a render failure, a wrong-sized frame, a cancellation or
an asyncio task cancellation all restore the original materials before the
error propagates. If the restore itself fails after another error, the
original error still propagates, with the restore failure attached as its
`restore_error` attribute and as an exception note.

The export is all-or-nothing. An ExportArtifact is only returned once both
atlases are encoded and archived; partial atlases are never handed out.

See pipeline.py for the state sequence reported through on_state.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable

from atlas_shop.core.archive import assemble, encode_png
from atlas_shop.core.layout import CellSize, GridLayout, compute_layout
from atlas_shop.core.materials import MaterialSnapshot, capture, override_all, restore
from atlas_shop.core.pipeline import (
    DIFFUSE_IMAGE, IMAGE_EXTENSION, NORMAL_IMAGE, STATE_ORDER, ARCHIVE_NAME,
    ExportState,
)
from atlas_shop.core.sampler import (
    AtlasSurface, CancellationToken, FrameRenderer, sample_to_atlas,
)
from atlas_shop.core.scene import AnimationClip, Camera, Material, NormalMaterial, SceneNode


@dataclass
class ExportArtifact:
    """
    Result of one export.

    Attributes:
        images:   Encoded PNG bytes keyed by image name ("diffuse", "normal").
        archive:  Zip archive holding both images as <name>.png.
        layout:   Grid layout both atlases were built with.
        filename: Suggested file name for the archive.
    """
    images: dict[str, bytes]
    archive: bytes
    layout: GridLayout
    filename: str = ARCHIVE_NAME

    @property
    def entry_names(self) -> list[str]:
        return [name + IMAGE_EXTENSION for name in self.images]


class SpritesheetExport:
    """
    One export run, walking the linear state machine in pipeline.py.

    The instance owns the material snapshot and both atlas surfaces for the
    duration of run(). The mesh is borrowed: its materials are changed
    between phases and always put back.

    Attributes:
        state:   Current ExportState.
        history: Every state entered so far, in order.
    """

    def __init__(self, mesh: SceneNode, clip: AnimationClip, camera: Camera,
                 cell_size: CellSize, fps: int, frame_renderer: FrameRenderer,
                 normal_material: Material | None = None,
                 on_state: Callable[[str], None] | None = None,
                 on_progress: Callable[[str], None] | None = None,
                 cancel: CancellationToken | None = None):
        self.mesh = mesh
        self.clip = clip
        self.camera = camera
        self.cell_size = cell_size
        self.fps = fps
        self.frame_renderer = frame_renderer
        self.normal_material = normal_material or NormalMaterial()
        self._on_state = on_state
        self._on_progress = on_progress
        self._cancel = cancel or CancellationToken()

        self.state = ExportState.IDLE
        self.history = [ExportState.IDLE]

    async def run(self) -> ExportArtifact:
        """
        Execute the export.

        Raises:
            InvalidConfiguration: Before any rendering, for bad settings.
            FrameSizeMismatch:    If the renderer returns a wrong-sized frame.
            SnapshotMismatch:     If the mesh changed shape during the export.
            EncodingFailure:      If an atlas or the archive can't be encoded.
            ExportCancelled:      If the token was cancelled.
        """
        if self.state != ExportState.IDLE:
            raise RuntimeError("An export can only be run once")

        # Validated up front so bad settings never touch the scene.
        layout = compute_layout(self.cell_size, self.fps, self.clip.duration)
        self._progress(
            f"{layout.frame_count} frames on a {layout.grid_dim}x{layout.grid_dim} grid, "
            f"atlas {layout.atlas_size[0]}x{layout.atlas_size[1]}"
        )
        self._cancel.raise_if_cancelled()

        snapshot = capture(self.mesh)
        self._advance(ExportState.CAPTURED_ORIGINAL)

        try:
            diffuse = await self._render_pass(layout)
            self._advance(ExportState.DIFFUSE_PASS_DONE)
            self._cancel.raise_if_cancelled()

            override_all(self.mesh, self.normal_material)
            self._advance(ExportState.OVERRIDE_APPLIED)

            normal = await self._render_pass(layout)
            self._advance(ExportState.NORMAL_PASS_DONE)
        except BaseException as error:
            self._restore_after_failure(snapshot, error)
            raise

        restore(self.mesh, snapshot)
        self._advance(ExportState.RESTORED)
        self._cancel.raise_if_cancelled()

        artifact = await self._archive(layout, diffuse, normal)
        self._advance(ExportState.ARCHIVED)
        self._advance(ExportState.DONE)
        return artifact

    # -- phases -------------------------------------------------------------

    async def _render_pass(self, layout: GridLayout) -> AtlasSurface:
        render_frame = self.frame_renderer.start(self.clip, self.camera, layout.cell_size)
        try:
            return await sample_to_atlas(
                self.clip, layout, render_frame,
                on_progress=self._on_progress, cancel=self._cancel,
            )
        finally:
            self.frame_renderer.stop()

    async def _archive(self, layout: GridLayout, diffuse: AtlasSurface,
                       normal: AtlasSurface) -> ExportArtifact:
        self._progress("Encoding atlases...")
        images = {}
        for name, surface in ((DIFFUSE_IMAGE, diffuse), (NORMAL_IMAGE, normal)):
            images[name] = await asyncio.to_thread(encode_png, surface.image)

        self._progress("Building archive...")
        archive = await asyncio.to_thread(
            assemble, [(name + IMAGE_EXTENSION, data) for name, data in images.items()]
        )
        return ExportArtifact(images=images, archive=archive, layout=layout)

    def _restore_after_failure(self, snapshot: MaterialSnapshot, error: BaseException):
        try:
            restore(self.mesh, snapshot)
        except Exception as restore_error:
            error.restore_error = restore_error
            error.add_note(f"Restoring the original materials also failed: {restore_error}")
            return
        self._enter(ExportState.RESTORED)

    # -- bookkeeping --------------------------------------------------------

    def _advance(self, state: str):
        expected = STATE_ORDER[STATE_ORDER.index(self.state) + 1]
        if state != expected:
            raise RuntimeError(f"Illegal export transition {self.state} -> {state}")
        self._enter(state)

    def _enter(self, state: str):
        self.state = state
        self.history.append(state)
        if self._on_state is not None:
            self._on_state(state)

    def _progress(self, message: str):
        if self._on_progress is not None:
            self._on_progress(message)


async def export_spritesheet(mesh: SceneNode, clip: AnimationClip, camera: Camera,
                             cell_size: CellSize, fps: int,
                             frame_renderer: FrameRenderer,
                             **kwargs) -> ExportArtifact:
    """
    Render the diffuse and normal spritesheets of mesh and archive them.

    Convenience wrapper around SpritesheetExport(...).run(); keyword
    arguments (normal_material, on_state, on_progress, cancel) are passed
    through.
    """
    export = SpritesheetExport(mesh, clip, camera, cell_size, fps, frame_renderer, **kwargs)
    return await export.run()
