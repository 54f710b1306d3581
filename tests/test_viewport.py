"""Tests for the coordinate and viewport engine."""

import pytest

from site_annotator.editor.viewport import Box, ViewportTransform, midpoint, to_normalized
from site_annotator.models import Point


def test_to_normalized_maps_box_corners():
    box = Box(100, 50, 400, 200)
    assert to_normalized(100, 50, box) == Point(0.0, 0.0)
    assert to_normalized(500, 250, box) == Point(1.0, 1.0)
    assert to_normalized(300, 150, box) == Point(0.5, 0.5)


def test_to_normalized_is_not_clamped():
    box = Box(0, 0, 100, 100)
    p = to_normalized(-10, 150, box)
    assert p.x == pytest.approx(-0.1)
    assert p.y == pytest.approx(1.5)


def test_to_normalized_independent_of_zoomed_box():
    # Same image position at 1x and 2x zoom gives the same normalized point
    assert to_normalized(50, 50, Box(0, 0, 100, 100)) == to_normalized(100, 100, Box(0, 0, 200, 200))


def test_to_normalized_rejects_empty_box():
    with pytest.raises(ValueError):
        to_normalized(0, 0, Box(0, 0, 0, 100))


def test_midpoint():
    assert midpoint([(0, 0), (10, 20)]) == (5, 10)


def test_zoom_clamped():
    vt = ViewportTransform()
    assert vt.zoom_by(10).scale == 5.0
    assert vt.zoom_by(-10).scale == 1.0
    assert vt.zoom_by(0.5).scale == 1.5


def test_pan_ignored_at_base_scale():
    vt = ViewportTransform()
    assert vt.pan_by(20, 30) == vt


def test_pan_when_zoomed():
    vt = ViewportTransform(scale=2).pan_by(20, -30)
    assert (vt.x, vt.y) == (20, -30)


def test_reset():
    assert ViewportTransform(scale=3, x=5, y=6).reset() == ViewportTransform()


def test_wheel_with_modifier_zooms_proportionally():
    vt = ViewportTransform(scale=2).apply_wheel(0, -100, modifier=True)
    # -(-100) * 0.001 * 2 = +0.2
    assert vt.scale == pytest.approx(2.2)


def test_wheel_without_modifier_pans_when_zoomed():
    vt = ViewportTransform(scale=2).apply_wheel(10, 40, modifier=False)
    assert (vt.x, vt.y) == (-10, -40)
    assert vt.scale == 2


def test_wheel_without_modifier_at_base_scale_is_noop():
    vt = ViewportTransform()
    assert vt.apply_wheel(10, 40, modifier=False) == vt


def test_zoom_percent_and_css():
    vt = ViewportTransform(scale=1.5, x=10, y=-4)
    assert vt.zoom_percent == 150
    assert vt.css_transform() == "translate(10px, -4px) scale(1.5)"
