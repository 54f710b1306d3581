"""Tests for hit-testing."""

import numpy as np
import pytest
from conftest import make_dimension, make_freehand, make_text

from site_annotator.editor.hittest import (
    Hit,
    distance_to_polyline,
    hit_test,
    hits_body,
    text_bounds,
    to_units,
)
from site_annotator.models import Point


def test_distance_to_polyline_segment_interior():
    vertices = np.array([[0.0, 0.0], [100.0, 0.0]])
    assert distance_to_polyline(np.array([50.0, 10.0]), vertices) == pytest.approx(10.0)


def test_distance_to_polyline_clips_to_endpoints():
    vertices = np.array([[0.0, 0.0], [100.0, 0.0]])
    assert distance_to_polyline(np.array([130.0, 40.0]), vertices) == pytest.approx(50.0)


def test_distance_to_polyline_single_vertex():
    vertices = np.array([[10.0, 10.0]])
    assert distance_to_polyline(np.array([13.0, 14.0]), vertices) == pytest.approx(5.0)


def test_dimension_body_within_hit_stroke():
    dim = make_dimension()  # (100, 100) -> (500, 100) in overlay units
    assert hits_body(dim, np.array([300.0, 110.0]))
    assert not hits_body(dim, np.array([300.0, 120.0]))


def test_zero_length_dimension_is_hittable():
    dim = make_dimension(start=(0.4, 0.4), end=(0.4, 0.4))
    assert hits_body(dim, to_units(Point(0.405, 0.4)))


def test_freehand_body():
    stroke = make_freehand()  # (100,500) -> (300,500) -> (300,700)
    assert hits_body(stroke, np.array([300.0, 600.0]))
    assert not hits_body(stroke, np.array([200.0, 600.0]))


def test_text_bounds_start_at_baseline_left():
    text = make_text(position=(0.2, 0.2), font_size=24)
    x0, y0, x1, y1 = text_bounds(text)
    assert x0 < 200 < x1
    assert y0 < 200 <= y1


def test_text_body_hit_inside_glyph_box():
    text = make_text(position=(0.2, 0.2), text="Beam", font_size=24)
    assert hits_body(text, np.array([205.0, 195.0]))
    assert not hits_body(text, np.array([100.0, 100.0]))


def test_hit_test_prefers_most_recent():
    first = make_dimension(id="a")
    second = make_dimension(id="b")
    hit = hit_test([first, second], Point(0.3, 0.1))
    assert hit == Hit("b", "move")


def test_hit_test_empty_space():
    assert hit_test([make_dimension()], Point(0.9, 0.9)) is None


def test_hit_test_handles_only_for_selected_dimension():
    dim = make_dimension()
    near_end = Point(0.505, 0.105)
    assert hit_test([dim], near_end) == Hit("d1", "move")
    assert hit_test([dim], near_end, selected_id="d1") == Hit("d1", "resize_end")
    assert hit_test([dim], Point(0.1, 0.105), selected_id="d1") == Hit("d1", "resize_start")


def test_hit_test_handle_beats_newer_annotation_on_top():
    dim = make_dimension()
    stroke = make_freehand(points=((0.45, 0.1), (0.55, 0.1)))
    assert hit_test([dim, stroke], Point(0.5, 0.1), selected_id="d1") == Hit("d1", "resize_end")
    assert hit_test([dim, stroke], Point(0.5, 0.1)) == Hit("f1", "move")
