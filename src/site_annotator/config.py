"""Project-wide configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(os.environ.get("SITE_ANNOTATOR_PROJECT_ROOT", Path.cwd()))

load_dotenv(PROJECT_ROOT / ".env")

DB_PATH = PROJECT_ROOT / "site_annotator.duckdb"
UPLOAD_DIR = Path(os.environ.get("UPLOAD_DIR", PROJECT_ROOT / "uploads"))

LOG_LEVEL = os.environ.get("SITE_ANNOTATOR_LOG_LEVEL", "INFO")

# Remote record store (REST API)
API_BASE_URL = os.environ.get("SITE_ANNOTATOR_API_URL", "http://localhost:5001/api")
API_TOKEN = os.environ.get("SITE_ANNOTATOR_API_TOKEN", "")
IMAGE_BASE_URL = os.environ.get("SITE_ANNOTATOR_IMAGE_URL", "http://localhost:3000/uploads")

# Uploads
ALLOWED_IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Annotation styling
COLOR_PALETTE = ["#FFFF00", "#FF0000", "#00FFFF", "#00FF00", "#FFFFFF", "#000000"]
DEFAULT_COLOR = "#FFFF00"
DEFAULT_FONT_SIZE = 24
DEFAULT_LINE_WIDTH = 5
FONT_SIZE_PRESETS = [16, 24, 32, 48, 64]
LINE_WIDTH_PRESETS = [3, 5, 8, 12, 20]
FONT_SIZE_RANGE = (12, 72)
LINE_WIDTH_RANGE = (1, 20)

# Viewport
MIN_SCALE = 1.0
MAX_SCALE = 5.0
ZOOM_SENSITIVITY = 0.001
ZOOM_STEP = 0.25

# Overlay geometry, in overlay units (viewBox is OVERLAY_SIZE x OVERLAY_SIZE)
OVERLAY_SIZE = 1000
HIT_STROKE_WIDTH = 30
HANDLE_RADIUS = 15
TEXT_HIT_MARGIN = 4
LABEL_OFFSET = 10
DIMENSION_LABEL_SCALE = 0.7

# Prompts
TEXT_PROMPT = ("Enter text label:", "Label")
DIMENSION_PROMPT = ("Enter dimension (e.g. 10ft):", '0"')
