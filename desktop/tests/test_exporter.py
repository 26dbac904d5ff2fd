import asyncio
import io
import zipfile

import pytest
from PIL import Image

from atlas_shop.core.errors import (
    ExportCancelled, FrameSizeMismatch, InvalidConfiguration, SnapshotMismatch,
)
from atlas_shop.core.exporter import SpritesheetExport, export_spritesheet
from atlas_shop.core.layout import CellSize
from atlas_shop.core.pipeline import STATE_ORDER, ExportState
from atlas_shop.core.sampler import CancellationToken, FrameRenderer
from atlas_shop.core.scene import NormalMaterial

from conftest import ScriptedFrameRenderer


def identities(root):
    return {node.uuid: id(node.material) for node in root.walk()}


def make_export(character, clip, camera, renderer, cell=CellSize(16, 8), fps=10, **kwargs):
    return SpritesheetExport(character, clip, camera, cell, fps, renderer, **kwargs)


def test_successful_export_walks_every_state(character, one_second_clip, camera):
    states = []
    export = make_export(character, one_second_clip, camera, ScriptedFrameRenderer(),
                         on_state=states.append)

    asyncio.run(export.run())

    assert export.history == list(STATE_ORDER)
    assert states == list(STATE_ORDER[1:])
    assert export.state == ExportState.DONE


def test_archive_holds_exactly_two_atlases(character, one_second_clip, camera):
    artifact = asyncio.run(export_spritesheet(
        character, one_second_clip, camera, CellSize(16, 8), 10, ScriptedFrameRenderer(),
    ))

    assert artifact.filename == "atlas.zip"
    assert artifact.layout.frame_count == 10
    assert artifact.layout.grid_dim == 4
    with zipfile.ZipFile(io.BytesIO(artifact.archive)) as archive:
        assert sorted(archive.namelist()) == ["diffuse.png", "normal.png"]
        assert archive.namelist() == artifact.entry_names
        for name in archive.namelist():
            assert archive.getinfo(name).compress_type == zipfile.ZIP_STORED
            image = Image.open(io.BytesIO(archive.read(name)))
            assert image.format == "PNG"
            assert image.size == (64, 32)
        assert archive.read("diffuse.png") == artifact.images["diffuse"]
        assert archive.read("normal.png") == artifact.images["normal"]


def test_both_passes_render_the_same_frames(character, one_second_clip, camera):
    renderer = ScriptedFrameRenderer()

    asyncio.run(make_export(character, one_second_clip, camera, renderer).run())

    assert len(renderer.starts) == 2
    assert renderer.stops == 2
    first, second = renderer.starts
    assert first[0] is second[0] is one_second_clip
    assert first[1] is second[1] is camera
    assert first[2] == second[2] == CellSize(16, 8)
    assert renderer.times[:10] == renderer.times[10:]


def test_normal_pass_renders_with_override(character, one_second_clip, camera):
    body = character.find("Body")
    skin = body.material
    normal = NormalMaterial()
    renderer = ScriptedFrameRenderer(watch=body)

    asyncio.run(make_export(character, one_second_clip, camera, renderer,
                            normal_material=normal).run())

    assert renderer.seen[:10] == [skin] * 10
    assert all(material is normal for material in renderer.seen[10:])
    assert body.material is skin


def test_materials_are_restored_after_success(character, one_second_clip, camera):
    before = identities(character)

    asyncio.run(make_export(character, one_second_clip, camera, ScriptedFrameRenderer()).run())

    assert identities(character) == before


def test_render_failure_in_normal_pass_restores_materials(character, one_second_clip, camera):
    before = identities(character)
    renderer = ScriptedFrameRenderer(fail_at=13)
    export = make_export(character, one_second_clip, camera, renderer)

    with pytest.raises(RuntimeError, match="renderer crashed"):
        asyncio.run(export.run())

    assert identities(character) == before
    assert export.state == ExportState.RESTORED
    assert ExportState.ARCHIVED not in export.history
    assert renderer.stops == len(renderer.starts) == 2


def test_wrong_frame_size_restores_materials(character, one_second_clip, camera):
    before = identities(character)
    export = make_export(character, one_second_clip, camera,
                         ScriptedFrameRenderer(wrong_size=15))

    with pytest.raises(FrameSizeMismatch):
        asyncio.run(export.run())

    assert identities(character) == before
    assert export.state == ExportState.RESTORED


def test_restore_failure_is_attached_to_the_original_error(character, one_second_clip, camera):
    rig = character.find("Rig")

    def remove_hair(frame_number):
        if frame_number == 12:
            rig.children.clear()

    export = make_export(character, one_second_clip, camera,
                         ScriptedFrameRenderer(fail_at=12, on_frame=remove_hair))

    with pytest.raises(RuntimeError, match="renderer crashed") as excinfo:
        asyncio.run(export.run())

    assert isinstance(excinfo.value.restore_error, SnapshotMismatch)
    assert export.state == ExportState.OVERRIDE_APPLIED


def test_hierarchy_change_without_other_error_fails_restore(character, one_second_clip, camera):
    rig = character.find("Rig")
    export = make_export(
        character, one_second_clip, camera,
        ScriptedFrameRenderer(on_frame=lambda n: rig.children.clear() if n == 0 else None),
    )

    with pytest.raises(SnapshotMismatch):
        asyncio.run(export.run())

    assert export.state == ExportState.NORMAL_PASS_DONE


def test_invalid_settings_fail_before_rendering(character, one_second_clip, camera):
    renderer = ScriptedFrameRenderer()
    export = make_export(character, one_second_clip, camera, renderer, fps=0)

    with pytest.raises(InvalidConfiguration):
        asyncio.run(export.run())

    assert renderer.starts == []
    assert export.history == [ExportState.IDLE]


def test_cancel_before_start_touches_nothing(character, one_second_clip, camera):
    token = CancellationToken()
    token.cancel()
    renderer = ScriptedFrameRenderer()
    export = make_export(character, one_second_clip, camera, renderer, cancel=token)

    with pytest.raises(ExportCancelled):
        asyncio.run(export.run())

    assert renderer.starts == []
    assert export.history == [ExportState.IDLE]


def test_cancel_during_normal_pass_restores_materials(character, one_second_clip, camera):
    before = identities(character)
    token = CancellationToken()
    renderer = ScriptedFrameRenderer(on_frame=lambda n: token.cancel() if n == 14 else None)
    export = make_export(character, one_second_clip, camera, renderer, cancel=token)

    with pytest.raises(ExportCancelled):
        asyncio.run(export.run())

    assert identities(character) == before
    assert export.state == ExportState.RESTORED
    assert len(renderer.dts) == 15


def test_task_cancellation_restores_materials(character, one_second_clip, camera):
    before = identities(character)

    class HangingSecondPass(FrameRenderer):
        def __init__(self):
            self.passes = 0
            self.hanging = None

        def start(self, clip, camera, cell_size):
            self.passes += 1
            hang = self.passes == 2

            async def render_frame(dt):
                if hang:
                    self.hanging.set()
                    await asyncio.Event().wait()
                return Image.new("RGBA", cell_size.as_tuple())

            return render_frame

        def stop(self):
            pass

    async def scenario():
        renderer = HangingSecondPass()
        renderer.hanging = asyncio.Event()
        task = asyncio.create_task(
            make_export(character, one_second_clip, camera, renderer).run()
        )
        await renderer.hanging.wait()
        assert character.find("Body").material.name == "Normal"
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert identities(character) == before


def test_export_runs_only_once(character, one_second_clip, camera):
    export = make_export(character, one_second_clip, camera, ScriptedFrameRenderer())
    asyncio.run(export.run())

    with pytest.raises(RuntimeError):
        asyncio.run(export.run())


def test_progress_messages_cover_both_passes(character, one_second_clip, camera):
    messages = []
    asyncio.run(make_export(character, one_second_clip, camera, ScriptedFrameRenderer(),
                            on_progress=messages.append).run())

    assert messages[0].startswith("10 frames on a 4x4 grid")
    assert messages.count("Wave: frame 10/10") == 2
