"""
Export configuration collected by the Export Options dialog.

Holds the user's choices for one export (animation, camera, cell size,
frame rate), validates them before anything is rendered, and resolves the
animation and camera names against the loaded document.
"""

from dataclasses import dataclass

from atlas_shop.core.errors import InvalidConfiguration
from atlas_shop.core.layout import CellSize, compute_layout
from atlas_shop.core.pipeline import DEFAULT_CELL_HEIGHT, DEFAULT_CELL_WIDTH, DEFAULT_FPS
from atlas_shop.core.scene import AnimationClip, Camera, SceneDocument


@dataclass
class ExportConfig:
    animation_name: str
    camera_name: str
    cell_width: int = DEFAULT_CELL_WIDTH
    cell_height: int = DEFAULT_CELL_HEIGHT
    fps: int = DEFAULT_FPS

    @property
    def cell_size(self) -> CellSize:
        return CellSize(self.cell_width, self.cell_height)

    def validate(self):
        """
        Check the numeric settings.

        The grid calculator applies the same rules; running it on an empty
        clip checks every numeric input in one place.

        Raises:
            InvalidConfiguration: If cell size or fps is not an integer >= 1.
        """
        compute_layout(self.cell_size, self.fps, 0.0)

    def resolve(self, document: SceneDocument) -> tuple[AnimationClip, Camera]:
        """
        Look up the chosen clip and camera in the document.

        Raises:
            InvalidConfiguration: If either name is unknown, or validate() fails.
        """
        self.validate()

        clip = document.animation(self.animation_name)
        if clip is None:
            raise InvalidConfiguration(f"Unknown animation: {self.animation_name!r}")

        camera = document.cameras.get(self.camera_name)
        if camera is None:
            raise InvalidConfiguration(f"Unknown camera: {self.camera_name!r}")

        return clip, camera
