"""Font loading and text measurement shared by hit-testing and raster export."""

from functools import lru_cache

from PIL import ImageFont


@lru_cache(maxsize=32)
def load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Pillow's bundled default font at the given pixel size."""
    return ImageFont.load_default(size=max(1, size))


def text_extent(text: str, size: int) -> tuple[float, float, float]:
    """Return (width, ascent, descent) of ``text`` at ``size``, relative to its baseline."""
    font = load_font(size)
    left, _, right, bottom = font.getbbox(text)
    if isinstance(font, ImageFont.FreeTypeFont):
        ascent, descent = font.getmetrics()
    else:
        # Bitmap fallback font (Pillow built without FreeType): no baseline metrics.
        ascent, descent = bottom, 0
    return float(right - left), float(ascent), float(descent)
