"""Read-only views: photo detail and public share page."""

from html import escape

from site_annotator.editor.persistence import LoadedPhoto, parse_annotation_set
from site_annotator.models import SharedProject
from site_annotator.render.layout import layout_annotations
from site_annotator.render.svg import render_stage_html
from site_annotator.store.base import PhotoStore


def photo_detail_html(loaded: LoadedPhoto, show_annotations: bool = True) -> str:
    """Photo with its annotations drawn exactly as the editor draws them (minus edit chrome)."""
    photo = loaded.photo
    stage = render_stage_html(
        loaded.image_url,
        layout_annotations(loaded.annotations),
        show_overlay=show_annotations,
        stage_id=f"photo-{photo.id}",
    )
    caption = f'<p class="photo-caption">{escape(photo.caption)}</p>' if photo.caption else ""
    status = (
        f'<span class="photo-status">{escape(photo.status_at_capture)}</span>'
        if photo.status_at_capture
        else ""
    )
    return f'<div class="photo-detail">{stage}{caption}{status}</div>'


def shared_project_html(
    shared: SharedProject, store: PhotoStore, show_annotations: bool = True
) -> str:
    """The public share page: project header, annotated photos, notes."""
    parts = [
        '<div class="shared-project">',
        f"<h2>{escape(shared.client_name)}</h2>",
        f'<p class="job-number">Job #{escape(shared.job_number)} &middot; '
        f"{escape(shared.status)}</p>",
    ]
    if shared.site_address:
        parts.append(f'<p class="site-address">{escape(shared.site_address)}</p>')

    parts.append('<div class="shared-photos">')
    for photo in shared.photos:
        annotations = parse_annotation_set(photo.annotations).annotations
        parts.append('<figure class="shared-photo">')
        parts.append(
            render_stage_html(
                store.image_url(photo),
                layout_annotations(annotations),
                show_overlay=show_annotations,
                stage_id=f"shared-{photo.id}",
                max_height="60vh",
            )
        )
        if photo.caption:
            parts.append(f"<figcaption>{escape(photo.caption)}</figcaption>")
        parts.append("</figure>")
    if not shared.photos:
        parts.append("<p>No photos yet.</p>")
    parts.append("</div>")

    if shared.notes:
        parts.append('<div class="shared-notes"><h3>Notes</h3><ul>')
        parts.extend(f"<li>{escape(note.note_text)}</li>" for note in shared.notes)
        parts.append("</ul></div>")
    parts.append("</div>")
    return "".join(parts)
