"""
Grid layout calculator for spritesheet atlases.

Given the cell size, the sampling rate and the clip duration, works out
how many frames are sampled and how big the square grid that holds them
has to be:

    frame_count = round(duration × fps)        (at least 1)
    grid_dim    = ceil(sqrt(frame_count))
    atlas_size  = (cell_width × grid_dim, cell_height × grid_dim)

Frames fill the grid in raster order — left to right, then top to bottom,
wrapping to a new row every grid_dim cells. A 1 second clip at 30 fps in
150×150 cells therefore gives 30 frames on a 6×6 grid and a 900×900 atlas,
with frame 29 at pixel (750, 600).

A zero-length clip still produces one frame. Without that floor the
formula above would ask for a 0×0 atlas.
"""

import math
from dataclasses import dataclass
from numbers import Integral, Real

from atlas_shop.core.errors import InvalidConfiguration


@dataclass(frozen=True)
class CellSize:
    """Pixel size of one atlas cell (one rendered frame)."""
    width: int
    height: int

    def as_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True)
class GridLayout:
    """
    Derived atlas geometry for one export run.

    Invariant: grid_dim² >= frame_count >= 1.
    """
    cell_size: CellSize
    fps: int
    frame_count: int
    grid_dim: int

    @property
    def atlas_size(self) -> tuple[int, int]:
        """Atlas (width, height) in pixels."""
        return (self.cell_size.width * self.grid_dim,
                self.cell_size.height * self.grid_dim)

    @property
    def frame_step(self) -> float:
        """Playback time between two consecutive frames, in seconds."""
        return 1.0 / self.fps

    def cell_position(self, frame_index: int) -> tuple[int, int]:
        """(col, row) of the cell holding frame_index."""
        if not 0 <= frame_index < self.frame_count:
            raise IndexError(
                f"Frame {frame_index} is outside [0, {self.frame_count})"
            )
        return (frame_index % self.grid_dim, frame_index // self.grid_dim)

    def cell_origin(self, frame_index: int) -> tuple[int, int]:
        """Top-left pixel of the cell holding frame_index."""
        col, row = self.cell_position(frame_index)
        return (col * self.cell_size.width, row * self.cell_size.height)


def _require_positive_int(value, label: str) -> int:
    # bool is an Integral subclass; a checkbox value is never a valid size.
    if isinstance(value, bool) or not isinstance(value, Integral) or value < 1:
        raise InvalidConfiguration(f"{label} must be an integer >= 1, got {value!r}")
    return int(value)


def compute_layout(cell_size: CellSize, fps: int, clip_duration: float) -> GridLayout:
    """
    Compute the grid layout for a clip.

    Args:
        cell_size:     Size of one frame in pixels (both sides >= 1).
        fps:           Sampling rate in frames per second (>= 1).
        clip_duration: Clip length in seconds (>= 0).

    Returns:
        GridLayout with frame_count >= 1 and grid_dim = ceil(sqrt(frame_count)).

    Raises:
        InvalidConfiguration: If any input is out of range.
    """
    width = _require_positive_int(cell_size.width, "Cell width")
    height = _require_positive_int(cell_size.height, "Cell height")
    fps = _require_positive_int(fps, "FPS")

    if (isinstance(clip_duration, bool) or not isinstance(clip_duration, Real)
            or not math.isfinite(clip_duration) or clip_duration < 0):
        raise InvalidConfiguration(
            f"Clip duration must be a finite number >= 0, got {clip_duration!r}"
        )

    # Round half up, like the editor does, rather than Python's banker's rounding.
    frame_count = max(1, math.floor(clip_duration * fps + 0.5))
    grid_dim = math.isqrt(frame_count - 1) + 1

    return GridLayout(
        cell_size=CellSize(width, height),
        fps=fps,
        frame_count=frame_count,
        grid_dim=grid_dim,
    )
