"""Tests for data models."""

import dataclasses

import pytest
from conftest import make_dimension, make_freehand

from site_annotator.models import (
    FreehandAnnotation,
    Point,
    TextAnnotation,
    new_annotation_id,
)


def test_point_offset():
    assert Point(0.25, 0.5).offset(0.25, -0.5) == Point(0.5, 0.0)


def test_annotation_type_tags():
    assert make_dimension().type == "dimension"
    assert TextAnnotation("t", "#FFFFFF", Point(0, 0), "x").type == "text"
    assert make_freehand().type == "freehand"


def test_annotations_are_immutable():
    ann = make_dimension()
    with pytest.raises(dataclasses.FrozenInstanceError):
        ann.label = "other"


def test_freehand_requires_points():
    with pytest.raises(ValueError):
        FreehandAnnotation(id="f", color="#FFFFFF", points=())


def test_freehand_points_stored_as_tuple():
    ann = FreehandAnnotation(id="f", color="#FFFFFF", points=[Point(0, 0), Point(1, 1)])
    assert isinstance(ann.points, tuple)
    assert len(ann.points) == 2


def test_optional_style_defaults_to_none():
    ann = make_dimension()
    assert ann.font_size is None
    assert ann.line_width is None


def test_new_annotation_id_unique():
    ids = {new_annotation_id() for _ in range(100)}
    assert len(ids) == 100
