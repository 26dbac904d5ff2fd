"""
Error taxonomy for the spritesheet export.

Every failure the export can raise derives from SpritesheetError so the
worker layer can catch one type and forward a readable message to the UI.
The subclasses mark where in the export the failure happened:

    InvalidConfiguration — bad cell size / fps / duration, or an unknown
                           animation or camera name. Raised before any
                           rendering begins.
    FrameSizeMismatch    — the renderer returned a frame that is not the
                           configured cell size. Aborts the current pass.
    SnapshotMismatch     — the mesh hierarchy changed shape between capture
                           and restore. Aborts the restore.
    EncodingFailure      — an atlas could not be encoded to PNG, or the
                           archive could not be written.
    ExportCancelled      — the user cancelled between frames or phases.
"""


class SpritesheetError(Exception):
    """Base class for every error raised by the spritesheet export."""
    pass


class InvalidConfiguration(SpritesheetError):
    pass


class FrameSizeMismatch(SpritesheetError):
    """
    Raised when a rendered frame does not match the atlas cell size.

    Carries both sizes as (width, height) tuples so the message shown in the
    UI tells the user which one was wrong.
    """

    def __init__(self, expected: tuple[int, int], actual: tuple[int, int],
                 frame_index: int | None = None):
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        self.frame_index = frame_index
        where = f" at frame {frame_index}" if frame_index is not None else ""
        super().__init__(
            f"Rendered frame is {self.actual[0]}x{self.actual[1]}{where}, "
            f"expected cell size {self.expected[0]}x{self.expected[1]}"
        )


class SnapshotMismatch(SpritesheetError):
    """Raised when a node recorded in a material snapshot is missing at restore."""

    def __init__(self, node_id: str, message: str | None = None):
        self.node_id = node_id
        super().__init__(
            message or f"Node {node_id} was captured but is missing at restore"
        )


class EncodingFailure(SpritesheetError):
    pass


class ExportCancelled(SpritesheetError):
    pass
