import math

import pytest

from atlas_shop.core.errors import InvalidConfiguration
from atlas_shop.core.layout import CellSize, compute_layout


def test_one_second_at_30fps_packs_into_6x6():
    layout = compute_layout(CellSize(150, 150), 30, 1.0)

    assert layout.frame_count == 30
    assert layout.grid_dim == 6
    assert layout.atlas_size == (900, 900)
    assert layout.cell_position(29) == (5, 4)
    assert layout.cell_origin(29) == (750, 600)


def test_zero_length_clip_still_gets_one_cell():
    layout = compute_layout(CellSize(64, 32), 24, 0.0)

    assert layout.frame_count == 1
    assert layout.grid_dim == 1
    assert layout.atlas_size == (64, 32)


def test_tiny_duration_rounding_to_zero_frames_gets_one_cell():
    layout = compute_layout(CellSize(10, 10), 1, 0.4)
    assert layout.frame_count == 1


def test_frame_count_rounds_half_up():
    assert compute_layout(CellSize(1, 1), 1, 2.5).frame_count == 3
    assert compute_layout(CellSize(1, 1), 2, 1.25).frame_count == 3
    assert compute_layout(CellSize(1, 1), 10, 0.04).frame_count == 1


def test_perfect_square_frame_count_has_no_spare_row():
    layout = compute_layout(CellSize(10, 20), 36, 1.0)
    assert layout.grid_dim == 6
    assert layout.atlas_size == (60, 120)


@pytest.mark.parametrize("fps", [1, 7, 12, 24, 30, 60])
@pytest.mark.parametrize("duration", [0.0, 0.1, 0.5, 1.0, 2.3, 10.0])
def test_grid_always_holds_every_frame(fps, duration):
    cell = CellSize(48, 32)
    layout = compute_layout(cell, fps, duration)

    assert layout.frame_count >= 1
    assert layout.grid_dim ** 2 >= layout.frame_count
    assert (layout.grid_dim - 1) ** 2 < layout.frame_count
    assert layout.grid_dim == math.ceil(math.sqrt(layout.frame_count))
    assert layout.atlas_size == (cell.width * layout.grid_dim, cell.height * layout.grid_dim)


def test_cells_fill_in_raster_order():
    layout = compute_layout(CellSize(10, 10), 10, 0.5)  # 5 frames on a 3x3 grid

    assert [layout.cell_position(i) for i in range(5)] == [
        (0, 0), (1, 0), (2, 0), (0, 1), (1, 1),
    ]


def test_cell_position_outside_clip_raises():
    layout = compute_layout(CellSize(10, 10), 10, 0.5)
    with pytest.raises(IndexError):
        layout.cell_position(5)


def test_frame_step_is_one_over_fps():
    assert compute_layout(CellSize(1, 1), 25, 1.0).frame_step == pytest.approx(0.04)


@pytest.mark.parametrize("cell, fps, duration", [
    (CellSize(0, 10), 30, 1.0),
    (CellSize(10, -1), 30, 1.0),
    (CellSize(10.5, 10), 30, 1.0),
    (CellSize(10, 10), 0, 1.0),
    (CellSize(10, 10), 2.5, 1.0),
    (CellSize(10, 10), True, 1.0),
    (CellSize(10, 10), 30, -0.1),
    (CellSize(10, 10), 30, float("nan")),
    (CellSize(10, 10), 30, float("inf")),
])
def test_invalid_inputs_are_rejected(cell, fps, duration):
    with pytest.raises(InvalidConfiguration):
        compute_layout(cell, fps, duration)
