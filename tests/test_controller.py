"""Tests for the editor controller and UI event batches."""

import json

import pytest
from conftest import BOX, make_dimension, make_text

from site_annotator.editor.controller import EditorController, decode_events
from site_annotator.editor.gestures import PointerEvent, WheelEvent
from site_annotator.editor.persistence import PersistenceAdapter, dumps, loads
from site_annotator.editor.viewport import Box


def _batch(*events, box=(0, 0, 1000, 1000)) -> str:
    return json.dumps({"box": list(box) if box else None, "events": list(events)})


@pytest.fixture
def controller(memory_store):
    memory_store.photos["p1"].annotations = dumps([make_dimension(id="d")])
    ctrl = EditorController(PersistenceAdapter(memory_store))
    assert ctrl.open("p1") == []
    return ctrl


def test_decode_events():
    raw = _batch(
        {"type": "down", "points": [[10, 20]]},
        {"type": "move", "points": [[15, 25]], "box": [5, 5, 100, 100]},
        {"type": "up"},
        {"type": "wheel", "dx": 0, "dy": -120, "modifier": True},
    )
    events = decode_events(raw)
    assert events == [
        PointerEvent("down", ((10.0, 20.0),), BOX),
        PointerEvent("move", ((15.0, 25.0),), Box(5, 5, 100, 100)),
        PointerEvent("up", (), BOX),
        WheelEvent(0.0, -120.0, True),
    ]


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[]",
        '{"events": "x"}',
        '{"events": [{"type": "pinch"}]}',
        '{"events": [{"type": "down", "points": [[1]]}]}',
        '{"events": ["down"]}',
    ],
)
def test_decode_events_rejects_malformed(raw):
    with pytest.raises(ValueError):
        decode_events(raw)


def test_open_loads_annotations(controller, memory_store):
    assert controller.loaded
    assert [a.id for a in controller.session.model] == ["d"]
    assert controller.session.image_url == "https://img.example.com/p1.jpg"


def test_open_missing_photo_leaves_empty_editor(memory_store):
    ctrl = EditorController(PersistenceAdapter(memory_store))
    notices = ctrl.open("missing")
    assert [n.kind for n in notices] == ["error"]
    assert not ctrl.loaded
    assert len(ctrl.session.model) == 0
    assert "No photo loaded" in ctrl.render_html()


@pytest.mark.parametrize("blob", ["null", '"null"', None])
def test_open_null_annotations_is_empty_set(memory_store, blob):
    memory_store.photos["p1"].annotations = blob
    ctrl = EditorController(PersistenceAdapter(memory_store))
    assert ctrl.open("p1") == []
    assert len(ctrl.session.model) == 0


def test_open_malformed_annotations(memory_store):
    memory_store.photos["p1"].annotations = "{{"
    ctrl = EditorController(PersistenceAdapter(memory_store))
    notices = ctrl.open("p1")
    assert [n.message for n in notices] == ["Annotations could not be loaded"]
    assert ctrl.loaded
    assert len(ctrl.session.model) == 0


def test_dispatch_draws_freehand(controller):
    controller.set_tool("freehand")
    assert controller.dispatch(
        _batch(
            {"type": "down", "points": [[100, 100]]},
            {"type": "move", "points": [[200, 200]]},
            {"type": "up", "points": [[200, 200]]},
        )
    )
    assert [a.type for a in controller.session.model] == ["dimension", "freehand"]


def test_dispatch_rejects_bad_batch(controller):
    assert not controller.dispatch("garbage")
    assert not controller.dispatch("")


def test_dispatch_ignores_collapsed_box(controller):
    controller.set_tool("freehand")
    controller.dispatch(
        _batch({"type": "down", "points": [[1, 1]]}, {"type": "up"}, box=(0, 0, 0, 0))
    )
    assert len(controller.session.model) == 1


def test_text_prompt_round_trip(controller):
    controller.set_tool("text")
    controller.dispatch(_batch({"type": "down", "points": [[400, 400]]}, {"type": "up"}))
    assert controller.prompt.message == "Enter text label:"
    assert controller.prompt.default == "Label"

    controller.answer_prompt("Window")
    assert controller.prompt is None
    assert controller.session.model.annotations[-1].text == "Window"


def test_prompt_cancel(controller):
    controller.set_tool("dimension")
    controller.dispatch(
        _batch(
            {"type": "down", "points": [[100, 500]]},
            {"type": "move", "points": [[600, 500]]},
            {"type": "up"},
        )
    )
    assert controller.prompt is not None
    controller.cancel_prompt()
    assert controller.prompt is None
    assert len(controller.session.model) == 1


def test_open_cancels_pending_prompt(controller):
    controller.set_tool("text")
    controller.dispatch(_batch({"type": "down", "points": [[400, 400]]}))
    controller.open("p1")
    assert controller.prompt is None
    assert [a.id for a in controller.session.model] == ["d"]


def test_zoom_buttons(controller):
    controller.zoom_in()
    assert controller.session.viewport.scale == 1.25
    controller.zoom_out()
    controller.zoom_out()
    assert controller.session.viewport.scale == 1.0
    controller.zoom_in()
    controller.reset_zoom()
    assert controller.session.viewport.scale == 1.0


def test_wheel_batch_zooms(controller):
    controller.dispatch(_batch({"type": "wheel", "dx": 0, "dy": -500, "modifier": True}))
    assert controller.session.viewport.scale == pytest.approx(1.5)
    assert "Zoom 150%" in controller.status()


def test_property_edits_apply_to_selection(controller):
    controller.session.model.select("d")
    controller.set_color("#FF0000")
    controller.set_line_width(12)
    controller.set_font_size(32)
    dim = controller.session.model.get("d")
    assert (dim.color, dim.line_width, dim.font_size) == ("#FF0000", 12, 32)
    assert controller.session.style.color == "#FF0000"


def test_undo_and_delete(controller):
    controller.session.model.create(make_text(id="t"))
    assert controller.undo()
    controller.session.model.select("d")
    assert controller.delete_selected()
    assert len(controller.session.model) == 0
    assert not controller.undo()


def test_save(controller, memory_store):
    controller.session.model.create(make_text(id="t"))
    notice = controller.save()
    assert notice.kind == "success"
    assert [a.id for a in loads(memory_store.photos["p1"].annotations)] == ["d", "t"]


def test_save_without_photo(memory_store):
    ctrl = EditorController(PersistenceAdapter(memory_store))
    assert ctrl.save().kind == "info"
    ctrl.open("missing")
    assert ctrl.save().kind == "info"
    assert memory_store.saves == []


def test_render_html_includes_overlay(controller):
    controller.session.model.select("d")
    html = controller.render_html()
    assert 'id="annotation-stage"' in html
    assert 'data-annotation-id="d"' in html
    assert 'data-handle="resize_end"' in html
