import pytest

from listingreel.core.camera import (
    IDENTITY,
    MAX_ZOOM,
    ORBIT_OFFSET,
    CameraAngle,
    canvas_angle,
    frame_progress,
    get_transform,
    vendor_angle,
)

STEPS = [i / 20 for i in range(21)]


def test_wide_shot_never_moves():
    """A wide shot holds the identity transform for the whole clip."""
    for p in STEPS:
        assert get_transform(CameraAngle.WIDE_SHOT, p) == IDENTITY


def test_push_in_grows_to_max_zoom():
    scales = [get_transform(CameraAngle.PUSH_IN, p).scale for p in STEPS]
    assert scales[0] == pytest.approx(1.0)
    assert scales[-1] == pytest.approx(1 + MAX_ZOOM)
    assert all(a < b for a, b in zip(scales, scales[1:]))


def test_push_out_shrinks_back_to_one():
    scales = [get_transform(CameraAngle.PUSH_OUT, p).scale for p in STEPS]
    assert scales[0] == pytest.approx(1 + MAX_ZOOM)
    assert scales[-1] == pytest.approx(1.0)
    assert all(a > b for a, b in zip(scales, scales[1:]))


def test_auto_behaves_like_push_in():
    for p in STEPS:
        assert get_transform(CameraAngle.AUTO, p) == get_transform(CameraAngle.PUSH_IN, p)


def test_orbits_slide_in_opposite_directions():
    right = get_transform(CameraAngle.ORBIT_RIGHT, 1.0)
    left = get_transform(CameraAngle.ORBIT_LEFT, 1.0)
    assert right.offset_x == pytest.approx(-ORBIT_OFFSET)
    assert left.offset_x == pytest.approx(ORBIT_OFFSET)
    assert right.scale == pytest.approx(1 + MAX_ZOOM)


def test_progress_is_clamped():
    assert get_transform(CameraAngle.PUSH_IN, 2.0) == get_transform(CameraAngle.PUSH_IN, 1.0)
    assert get_transform(CameraAngle.PUSH_IN, -1.0) == get_transform(CameraAngle.PUSH_IN, 0.0)


def test_scale_stays_within_bounds():
    for angle in CameraAngle:
        for p in STEPS:
            scale = get_transform(angle, p).scale
            assert 1.0 <= scale <= 1 + MAX_ZOOM + 1e-9


def test_vendor_names_map_to_canvas_moves():
    assert canvas_angle(CameraAngle.ZOOM_IN) == CameraAngle.PUSH_IN
    assert canvas_angle(CameraAngle.PAN_LEFT) == CameraAngle.ORBIT_LEFT
    assert canvas_angle("pan-right") == CameraAngle.ORBIT_RIGHT
    assert vendor_angle(CameraAngle.PUSH_OUT) == CameraAngle.AUTO
    assert vendor_angle(CameraAngle.WIDE_SHOT) == CameraAngle.WIDE_SHOT


def test_frame_progress_uses_presentation_time():
    """The same timestamp gives the same progress at any frame rate."""
    assert frame_progress(15, 30, 3.0) == pytest.approx(frame_progress(30, 60, 3.0))
    assert frame_progress(0, 30, 3.0) == 0.0
    assert frame_progress(90, 30, 3.0) == 1.0
    assert frame_progress(120, 30, 3.0) == 1.0
    assert frame_progress(5, 30, 0) == 1.0
