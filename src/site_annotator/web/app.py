"""Gradio application for the annotation editor and read-only viewers."""

import html
import logging

import gradio as gr

from site_annotator.config import (
    COLOR_PALETTE,
    DEFAULT_COLOR,
    DEFAULT_FONT_SIZE,
    DEFAULT_LINE_WIDTH,
    FONT_SIZE_RANGE,
    LINE_WIDTH_RANGE,
)
from site_annotator.editor.controller import EditorController
from site_annotator.editor.persistence import Notification, PersistenceAdapter
from site_annotator.editor.session import TOOLS
from site_annotator.render.svg import render_stage_html
from site_annotator.store.base import PhotoStore
from site_annotator.store.errors import StoreError
from site_annotator.web.views import photo_detail_html, shared_project_html

logger = logging.getLogger(__name__)

CUSTOM_CSS = """
.hidden-trigger {
    display: none !important;
}
#annotation-stage {
    min-height: 320px;
    border-radius: 8px;
    user-select: none;
    -webkit-user-select: none;
}
#annotation-stage.empty {
    display: flex;
    align-items: center;
    justify-content: center;
    color: #888;
}
.prompt-row {
    border: 1px solid #888;
    border-radius: 8px;
    padding: 8px;
}
.shared-photo figcaption,
.photo-caption {
    color: #888;
    font-size: 14px;
}
"""

# ── Editor input capture (injected once via head) ───────────────────
# Mouse, touch and wheel events on the editor stage are queued in client pixels together with
# the photo's on-screen rect, then handed to Python in batches through a hidden trigger button.
EDITOR_SCRIPT = """
<script>
(function() {
    var pending = [];
    var active = false;
    var timer = null;

    function stage() { return document.getElementById('annotation-stage'); }

    function inStage(target) {
        var s = stage();
        return !!(s && target && s.contains(target));
    }

    /* On-screen rect of the (possibly zoomed/panned) photo */
    function photoBox() {
        var img = document.querySelector('#annotation-stage .annotation-photo');
        if (!img) return null;
        var r = img.getBoundingClientRect();
        if (!r.width || !r.height) return null;
        return [r.left, r.top, r.width, r.height];
    }

    function push(ev) {
        if (ev.type !== 'wheel') ev.box = photoBox();
        pending.push(ev);
    }

    function flush() {
        timer = null;
        if (!pending.length) return;
        var el = document.getElementById('editor-events-trigger');
        if (!el) return;
        /* Gradio: elem_id may be on the <button> itself or on a wrapper */
        var btn = (el.tagName === 'BUTTON') ? el : el.querySelector('button');
        (btn || el).click();
    }

    function flushSoon(delay) {
        if (delay === 0) {
            if (timer) clearTimeout(timer);
            timer = null;
            flush();
            return;
        }
        if (!timer) timer = setTimeout(flush, delay);
    }

    window._takeEditorEvents = function() {
        var batch = JSON.stringify({events: pending});
        pending = [];
        return batch;
    };

    function touchPoints(e) {
        var pts = [];
        for (var i = 0; i < e.touches.length; i++) {
            pts.push([e.touches[i].clientX, e.touches[i].clientY]);
        }
        return pts;
    }

    document.addEventListener('mousedown', function(e) {
        if (e.button !== 0 || !inStage(e.target)) return;
        e.preventDefault();
        active = true;
        push({type: 'down', points: [[e.clientX, e.clientY]]});
        flushSoon(0);
    });
    document.addEventListener('mousemove', function(e) {
        if (!active) return;
        push({type: 'move', points: [[e.clientX, e.clientY]]});
        flushSoon(120);
    });
    document.addEventListener('mouseup', function(e) {
        if (!active) return;
        active = false;
        push({type: 'up', points: [[e.clientX, e.clientY]]});
        flushSoon(0);
    });
    document.documentElement.addEventListener('mouseleave', function() {
        if (!active) return;
        active = false;
        push({type: 'leave', points: []});
        flushSoon(0);
    });

    document.addEventListener('touchstart', function(e) {
        if (!inStage(e.target)) return;
        e.preventDefault();
        active = true;
        push({type: 'down', points: touchPoints(e)});
        flushSoon(0);
    }, {passive: false});
    document.addEventListener('touchmove', function(e) {
        if (!active) return;
        e.preventDefault();
        push({type: 'move', points: touchPoints(e)});
        flushSoon(120);
    }, {passive: false});
    ['touchend', 'touchcancel'].forEach(function(name) {
        document.addEventListener(name, function() {
            if (!active) return;
            active = false;
            push({type: 'up', points: []});
            flushSoon(0);
        });
    });

    /* Ctrl/Meta wheel (and trackpad pinch) zooms, plain wheel pans */
    document.addEventListener('wheel', function(e) {
        if (!inStage(e.target)) return;
        e.preventDefault();
        push({type: 'wheel', dx: e.deltaX, dy: e.deltaY, modifier: e.ctrlKey || e.metaKey});
        flushSoon(80);
    }, {passive: false});
})();
</script>
"""

# ── JS snippets for Gradio events ────────────────────────────────────

TAKE_EVENTS_JS = """
() => {
    return window._takeEditorEvents ? window._takeEditorEvents() : '';
}
"""


def _notify(notices: list[Notification]) -> None:
    for notice in notices:
        if notice.kind == "error":
            gr.Warning(notice.message)
        else:
            gr.Info(notice.message)


def create_app(store: PhotoStore | None = None) -> gr.Blocks:
    """Create and return the Gradio Blocks app.

    Defaults to the local DuckDB record store.
    """
    if store is None:
        from site_annotator.db import get_connection
        from site_annotator.store.repository import LocalRecordStore

        store = LocalRecordStore(get_connection())
    adapter = PersistenceAdapter(store)
    # Open editors, one per browser session
    controllers: dict[str, EditorController] = {}

    # ── Editor helpers ───────────────────────────────────────────────

    def _editor_view(ctrl: EditorController | None) -> tuple:
        """Stage HTML, status line, and the prompt row."""
        if ctrl is None:
            return (
                render_stage_html(None, []),
                "No photo loaded",
                gr.update(visible=False),
                "",
                gr.update(value=""),
            )
        prompt = ctrl.prompt
        if prompt is None:
            prompt_updates = (gr.update(visible=False), "", gr.update(value=""))
        else:
            prompt_updates = (
                gr.update(visible=True),
                f"**{prompt.message}**",
                gr.update(value=prompt.default),
            )
        return (ctrl.render_html(), ctrl.status()) + prompt_updates

    toolbar_reset = (
        gr.update(value="select"),
        gr.update(value=DEFAULT_COLOR),
        gr.update(value=DEFAULT_FONT_SIZE),
        gr.update(value=DEFAULT_LINE_WIDTH),
    )

    def _on_open(photo_id: str, request: gr.Request):
        photo_id = (photo_id or "").strip()
        if not photo_id:
            gr.Warning("Enter a photo ID")
            return _editor_view(controllers.get(request.session_hash)) + toolbar_reset
        ctrl = EditorController(adapter)
        _notify(ctrl.open(photo_id))
        controllers[request.session_hash] = ctrl
        return _editor_view(ctrl) + toolbar_reset

    def _on_events(raw: str, request: gr.Request):
        ctrl = controllers.get(request.session_hash)
        if ctrl is not None:
            ctrl.dispatch(raw)
        return _editor_view(ctrl)

    def _on_prompt_ok(value: str, request: gr.Request):
        ctrl = controllers.get(request.session_hash)
        if ctrl is not None:
            ctrl.answer_prompt(value)
        return _editor_view(ctrl)

    def _on_prompt_cancel(request: gr.Request):
        ctrl = controllers.get(request.session_hash)
        if ctrl is not None:
            ctrl.cancel_prompt()
        return _editor_view(ctrl)

    def _action(method: str):
        """Handler that calls a no-argument controller action and re-renders."""

        def handler(request: gr.Request):
            ctrl = controllers.get(request.session_hash)
            if ctrl is not None:
                getattr(ctrl, method)()
            return _editor_view(ctrl)

        return handler

    def _setter(method: str):
        """Handler that forwards one input value to a controller setter and re-renders."""

        def handler(value, request: gr.Request):
            ctrl = controllers.get(request.session_hash)
            if ctrl is not None and value is not None:
                try:
                    getattr(ctrl, method)(value)
                except ValueError as exc:
                    gr.Warning(str(exc))
            return _editor_view(ctrl)

        return handler

    def _on_save_start():
        return gr.update(interactive=False, value="Saving...")

    def _on_save(request: gr.Request):
        ctrl = controllers.get(request.session_hash)
        if ctrl is None:
            gr.Info("No photo loaded")
            return _editor_view(ctrl)
        _notify([ctrl.save()])
        return _editor_view(ctrl)

    def _on_save_done():
        return gr.update(interactive=True, value="Save")

    def _on_unload(request: gr.Request):
        ctrl = controllers.pop(request.session_hash, None)
        if ctrl is not None:
            ctrl.cancel_prompt()

    # ── Viewer helpers ───────────────────────────────────────────────

    def _on_view_photo(photo_id: str, show_annotations: bool):
        photo_id = (photo_id or "").strip()
        if not photo_id:
            return ""
        try:
            loaded = adapter.load(photo_id)
        except StoreError as exc:
            logger.warning("Could not load photo %s: %s", photo_id, exc)
            gr.Warning(f"Could not load photo: {exc}")
            return ""
        if loaded.parse_error:
            gr.Warning("Annotations could not be loaded")
        return photo_detail_html(loaded, show_annotations=show_annotations)

    def _on_view_share(token: str, show_annotations: bool):
        token = (token or "").strip()
        if not token:
            return ""
        try:
            shared = store.get_shared_project(token)
        except StoreError as exc:
            gr.Warning(str(exc))
            return f"<p>{html.escape(str(exc))}</p>"
        return shared_project_html(shared, store, show_annotations=show_annotations)

    # ── Build UI ─────────────────────────────────────────────────────

    with gr.Blocks(title="Site Photo Annotator", css=CUSTOM_CSS, head=EDITOR_SCRIPT) as app:
        gr.Markdown("# Site Photo Annotator")

        with gr.Tabs():
            # ── Tab 1: Editor ────────────────────────────────────────
            with gr.TabItem("Editor", id=0):
                with gr.Row():
                    photo_id_input = gr.Textbox(label="Photo ID", scale=4)
                    open_btn = gr.Button("Open", scale=1)

                with gr.Row():
                    tool_radio = gr.Radio(choices=list(TOOLS), value="select", label="Tool")
                    color_radio = gr.Radio(
                        choices=COLOR_PALETTE, value=DEFAULT_COLOR, label="Color",
                    )
                with gr.Row():
                    font_slider = gr.Slider(
                        *FONT_SIZE_RANGE, value=DEFAULT_FONT_SIZE, step=1, label="Font size",
                    )
                    width_slider = gr.Slider(
                        *LINE_WIDTH_RANGE, value=DEFAULT_LINE_WIDTH, step=1, label="Line width",
                    )
                with gr.Row():
                    text_edit_input = gr.Textbox(label="Selected text", scale=4)
                    text_edit_btn = gr.Button("Apply text", scale=1)

                with gr.Row():
                    undo_btn = gr.Button("Undo")
                    delete_btn = gr.Button("Delete selected")
                    zoom_out_btn = gr.Button("Zoom -")
                    zoom_in_btn = gr.Button("Zoom +")
                    fit_btn = gr.Button("Fit")
                    save_btn = gr.Button("Save", variant="primary")

                with gr.Row(visible=False, elem_classes=["prompt-row"]) as prompt_row:
                    prompt_message = gr.Markdown("")
                    prompt_input = gr.Textbox(show_label=False, scale=3)
                    prompt_ok_btn = gr.Button("OK", scale=1)
                    prompt_cancel_btn = gr.Button("Cancel", scale=1)

                stage_html = gr.HTML(render_stage_html(None, []))
                status_md = gr.Markdown("No photo loaded")

                events_box = gr.Textbox(visible=False, elem_id="editor-events")
                events_trigger = gr.Button(
                    "events", elem_id="editor-events-trigger", elem_classes=["hidden-trigger"],
                )
                editor_view = [stage_html, status_md, prompt_row, prompt_message, prompt_input]
                open_outputs = [
                    *editor_view,
                    tool_radio, color_radio, font_slider, width_slider,
                ]

                open_btn.click(
                    fn=_on_open,
                    inputs=[photo_id_input],
                    outputs=open_outputs,
                )
                photo_id_input.submit(
                    fn=_on_open,
                    inputs=[photo_id_input],
                    outputs=open_outputs,
                )

                # Input capture: JS hands over the queued batch → Python replays it
                events_trigger.click(
                    fn=None,
                    js=TAKE_EVENTS_JS,
                    outputs=[events_box],
                ).then(
                    fn=_on_events,
                    inputs=[events_box],
                    outputs=editor_view,
                )

                prompt_ok_btn.click(
                    fn=_on_prompt_ok,
                    inputs=[prompt_input],
                    outputs=editor_view,
                )
                prompt_input.submit(
                    fn=_on_prompt_ok,
                    inputs=[prompt_input],
                    outputs=editor_view,
                )
                prompt_cancel_btn.click(
                    fn=_on_prompt_cancel,
                    outputs=editor_view,
                )

                tool_radio.input(
                    fn=_setter("set_tool"), inputs=[tool_radio],
                    outputs=editor_view,
                )
                color_radio.input(
                    fn=_setter("set_color"), inputs=[color_radio],
                    outputs=editor_view,
                )
                font_slider.release(
                    fn=_setter("set_font_size"), inputs=[font_slider],
                    outputs=editor_view,
                )
                width_slider.release(
                    fn=_setter("set_line_width"), inputs=[width_slider],
                    outputs=editor_view,
                )
                text_edit_btn.click(
                    fn=_setter("edit_text"), inputs=[text_edit_input],
                    outputs=editor_view,
                )

                undo_btn.click(fn=_action("undo"), outputs=editor_view)
                delete_btn.click(
                    fn=_action("delete_selected"), outputs=editor_view,
                )
                zoom_in_btn.click(
                    fn=_action("zoom_in"), outputs=editor_view,
                )
                zoom_out_btn.click(
                    fn=_action("zoom_out"), outputs=editor_view,
                )
                fit_btn.click(
                    fn=_action("reset_zoom"), outputs=editor_view,
                )

                save_btn.click(
                    fn=_on_save_start,
                    outputs=[save_btn],
                ).then(
                    fn=_on_save,
                    outputs=editor_view,
                ).then(
                    fn=_on_save_done,
                    outputs=[save_btn],
                )

            # ── Tab 2: Photo detail ──────────────────────────────────
            with gr.TabItem("Photo", id=1):
                with gr.Row():
                    view_photo_input = gr.Textbox(label="Photo ID", scale=4)
                    show_annotations = gr.Checkbox(value=True, label="Show annotations")
                    view_photo_btn = gr.Button("View", scale=1)
                photo_html = gr.HTML("")

                view_photo_btn.click(
                    fn=_on_view_photo,
                    inputs=[view_photo_input, show_annotations],
                    outputs=[photo_html],
                )
                show_annotations.change(
                    fn=_on_view_photo,
                    inputs=[view_photo_input, show_annotations],
                    outputs=[photo_html],
                )

            # ── Tab 3: Shared project ────────────────────────────────
            with gr.TabItem("Shared", id=2):
                with gr.Row():
                    token_input = gr.Textbox(label="Share token", scale=4)
                    share_show_annotations = gr.Checkbox(value=True, label="Show annotations")
                    view_share_btn = gr.Button("Open", scale=1)
                shared_html = gr.HTML("")

                share_inputs = [token_input, share_show_annotations]
                view_share_btn.click(
                    fn=_on_view_share, inputs=share_inputs, outputs=[shared_html],
                )
                token_input.submit(
                    fn=_on_view_share, inputs=share_inputs, outputs=[shared_html],
                )
                share_show_annotations.change(
                    fn=_on_view_share, inputs=share_inputs, outputs=[shared_html],
                )

        app.unload(_on_unload)

    return app
