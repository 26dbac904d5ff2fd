"""
Frame sampler and atlas compositor.

Steps a clip through playback at a fixed rate and pastes each rendered
frame into its cell of an in-memory atlas.

Sampling is constant-step, not wall-clock driven: frame k always shows
playback time k / fps, however long the renders take, so the same clip
and settings always produce the same atlas. Frame 0 is rendered at time 0
and playback advances by exactly 1 / fps before each later frame.

Frames are strictly sequential. Playback state is cumulative (every step
advances from the previous pose), so frame k + 1 is not requested until
frame k has been rendered and composited. There is never more than one
render in flight.
"""

import threading
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from PIL import Image

from atlas_shop.core.errors import ExportCancelled, FrameSizeMismatch
from atlas_shop.core.layout import CellSize, GridLayout
from atlas_shop.core.scene import AnimationClip, Camera

# Advance playback by dt seconds, render, return the frame.
RenderFrame = Callable[[float], Awaitable[Image.Image]]


class FrameRenderer(ABC):
    """
    Source of rendered animation frames, one pass at a time.

    Contract:
        - start() begins playback of clip at time 0 and returns a
          RenderFrame producing frames of exactly cell_size.
        - stop() ends the pass. Called once per start(), also on failure.
    """

    @abstractmethod
    def start(self, clip: AnimationClip, camera: Camera,
              cell_size: CellSize) -> RenderFrame:
        ...

    @abstractmethod
    def stop(self) -> None:
        ...


class CancellationToken:
    """
    Cooperative cancellation flag shared between the UI and an export.

    cancel() may be called from any thread. The export checks the flag
    between frames and between phases, never mid-render.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise ExportCancelled("Export cancelled")


class AtlasSurface:
    """
    Mutable RGBA raster sized to the layout's atlas, one cell per frame.

    Written by exactly one compositor, one cell at a time, then sealed with
    finish() once the last frame is in. A sealed surface can be read but no
    longer written.
    """

    def __init__(self, layout: GridLayout):
        self.layout = layout
        self.image = Image.new("RGBA", layout.atlas_size, (0, 0, 0, 0))
        self.frames_written = 0
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def blit(self, frame_index: int, frame: Image.Image):
        """
        Copy a rendered frame into the cell for frame_index.

        Raises:
            FrameSizeMismatch: If the frame is not exactly the cell size.
        """
        if self._finished:
            raise RuntimeError("Atlas surface is already finished")

        expected = self.layout.cell_size.as_tuple()
        if frame.size != expected:
            raise FrameSizeMismatch(expected, frame.size, frame_index)

        self.image.paste(frame.convert("RGBA"), self.layout.cell_origin(frame_index))
        self.frames_written += 1

    def finish(self) -> Image.Image:
        """Seal the surface and return the finished atlas image."""
        if self.frames_written != self.layout.frame_count:
            raise RuntimeError(
                f"Atlas has {self.frames_written} of {self.layout.frame_count} frames"
            )
        self._finished = True
        return self.image


async def sample_to_atlas(clip: AnimationClip, layout: GridLayout,
                          render_frame: RenderFrame,
                          on_progress: Callable[[str], None] | None = None,
                          cancel: CancellationToken | None = None) -> AtlasSurface:
    """
    Render every sampled frame of clip into a new atlas.

    Args:
        clip:         The clip being sampled (used for progress messages).
        layout:       Grid layout computed for this clip.
        render_frame: Async callable advancing a freshly started playback of
                      clip by dt and rendering the pose. Must return frames
                      of exactly layout.cell_size.
        on_progress:  Optional callback for status messages shown in the UI.
        cancel:       Optional token, checked before every frame.

    Returns:
        The finished AtlasSurface.

    Raises:
        FrameSizeMismatch: If a frame has the wrong size.
        ExportCancelled:   If the token is cancelled between frames.
    """
    surface = AtlasSurface(layout)
    frame_count = layout.frame_count

    for frame_index in range(frame_count):
        if cancel is not None:
            cancel.raise_if_cancelled()

        dt = 0.0 if frame_index == 0 else layout.frame_step
        frame = await render_frame(dt)
        surface.blit(frame_index, frame)

        if on_progress is not None:
            on_progress(f"{clip.name}: frame {frame_index + 1}/{frame_count}")

    surface.finish()
    return surface
