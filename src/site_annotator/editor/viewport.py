"""Viewport-to-image coordinate mapping and the editor's zoom/pan transform."""

from dataclasses import dataclass, replace

from site_annotator.config import MAX_SCALE, MIN_SCALE, ZOOM_SENSITIVITY
from site_annotator.models import Point


@dataclass(frozen=True)
class Box:
    """On-screen bounding box of the rendered image, in client pixels."""

    left: float
    top: float
    width: float
    height: float


def to_normalized(client_x: float, client_y: float, box: Box) -> Point:
    """Map a client-pixel position to normalized image space.

    No clamping: a drag that drifts past the image edge yields coordinates outside [0, 1].
    """
    if box.width <= 0 or box.height <= 0:
        raise ValueError(f"Image box has no area: {box}")
    return Point(
        (client_x - box.left) / box.width,
        (client_y - box.top) / box.height,
    )


def midpoint(points: list[tuple[float, float]]) -> tuple[float, float]:
    """Average of the given client points (used for two-finger pan)."""
    n = len(points)
    return (sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


@dataclass(frozen=True)
class ViewportTransform:
    """Zoom/pan applied to the image+overlay wrapper. Purely visual, never persisted."""

    scale: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def zoom_by(self, delta_scale: float) -> "ViewportTransform":
        return replace(self, scale=_clamp(self.scale + delta_scale, MIN_SCALE, MAX_SCALE))

    def pan_by(self, dx: float, dy: float) -> "ViewportTransform":
        """Translate by pixel deltas. Panning is only allowed while zoomed in."""
        if self.scale <= MIN_SCALE:
            return self
        return replace(self, x=self.x + dx, y=self.y + dy)

    def reset(self) -> "ViewportTransform":
        return ViewportTransform()

    def apply_wheel(
        self, delta_x: float, delta_y: float, modifier: bool
    ) -> "ViewportTransform":
        """Handle a wheel event.

        Ctrl/Meta-qualified wheel (and trackpad pinch, which browsers report the same way)
        zooms proportionally to the current scale; a plain wheel scrolls the zoomed image.
        """
        if modifier:
            return self.zoom_by(-delta_y * ZOOM_SENSITIVITY * self.scale)
        return self.pan_by(-delta_x, -delta_y)

    @property
    def zoom_percent(self) -> int:
        return round(self.scale * 100)

    def css_transform(self) -> str:
        return f"translate({self.x:g}px, {self.y:g}px) scale({self.scale:g})"
