"""
Spritesheet export — state definitions and defaults.

An export walks a strictly linear state machine. Each state is a distinct,
reported step that the user can watch in the export queue:

    1. Idle              — nothing has happened yet
    2. Captured Original — the selection's material assignments are recorded
    3. Diffuse Pass Done — every frame rendered with the original materials
    4. Override Applied  — skinned meshes switched to the normal material
    5. Normal Pass Done  — every frame rendered with the normal material
    6. Restored          — the recorded materials are back on the selection
    7. Archived          — both atlases encoded and zipped
    8. Done              — the archive is ready for delivery

No state is ever skipped on a successful run. On failure the orchestrator
still restores materials before the error propagates, so the last state
reported for a failed run is Restored, or the state it failed in when the
failure came before the capture or the restore itself failed.

The constants here are used throughout the app to track progress, update
the UI, and keep defaults in one place.
"""


class ExportState:
    """
    String constants identifying each export state.

    Plain string constants (rather than an enum) so they can travel through
    Qt signals and be compared directly without .value access.
    """
    IDLE = "idle"
    CAPTURED_ORIGINAL = "captured_original"
    DIFFUSE_PASS_DONE = "diffuse_pass_done"
    OVERRIDE_APPLIED = "override_applied"
    NORMAL_PASS_DONE = "normal_pass_done"
    RESTORED = "restored"
    ARCHIVED = "archived"
    DONE = "done"


# Ordered list of states: the only legal sequence of transitions.
STATE_ORDER = [
    ExportState.IDLE,
    ExportState.CAPTURED_ORIGINAL,
    ExportState.DIFFUSE_PASS_DONE,
    ExportState.OVERRIDE_APPLIED,
    ExportState.NORMAL_PASS_DONE,
    ExportState.RESTORED,
    ExportState.ARCHIVED,
    ExportState.DONE,
]

# Human-readable names shown in the export queue and the status bar.
STATE_DISPLAY_NAMES = {
    ExportState.IDLE: "Waiting",
    ExportState.CAPTURED_ORIGINAL: "Capturing Materials",
    ExportState.DIFFUSE_PASS_DONE: "Diffuse Pass",
    ExportState.OVERRIDE_APPLIED: "Applying Normal Material",
    ExportState.NORMAL_PASS_DONE: "Normal Pass",
    ExportState.RESTORED: "Restoring Materials",
    ExportState.ARCHIVED: "Building Archive",
    ExportState.DONE: "Done",
}

# Defaults for the Export Options dialog. 150×150 cells at 30 fps gives a
# 900×900 atlas for a one second clip.
DEFAULT_CELL_WIDTH = 150
DEFAULT_CELL_HEIGHT = 150
DEFAULT_FPS = 30

# Archive and entry names. The two passes always produce these two entries.
ARCHIVE_NAME = "atlas.zip"
IMAGE_FORMAT = "PNG"
IMAGE_EXTENSION = ".png"
DIFFUSE_IMAGE = "diffuse"
NORMAL_IMAGE = "normal"

# Model formats offered in the open dialog and accepted by the drop zone.
# All are read through trimesh.
SUPPORTED_MODEL_EXTENSIONS = {
    ".glb", ".gltf", ".obj", ".ply", ".stl", ".off",
}
