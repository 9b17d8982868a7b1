"""CrimeStat — Configuration & Constants"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (one level up from crimestat/)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)


def _optional_float(name: str) -> float | None:
    raw = os.environ.get(name, "").strip()
    return float(raw) if raw else None


# ── Police API ──
POLICE_API_URL = os.environ.get(
    "CRIMESTAT_API_URL", "https://data.police.uk/api/crimes-street/all-crime"
)
# The API answers 503 when more than 10,000 crimes match the query
TOO_MANY_RESULTS_STATUS = 503
# None = no client-side timeout; a hung request stays in Loading
HTTP_TIMEOUT = _optional_float("CRIMESTAT_HTTP_TIMEOUT")

# Month selector offers the 12 months of a single year
DATA_YEAR = int(os.environ.get("CRIMESTAT_DATA_YEAR", "2024"))

# ── App shell ──
BASE_PATH = os.environ.get("CRIMESTAT_BASE_PATH", "").rstrip("/")
SESSION_TTL = int(os.environ.get("CRIMESTAT_SESSION_TTL", "3600"))
SESSION_MAX = int(os.environ.get("CRIMESTAT_SESSION_MAX", "500"))

# Transient banners (map view) disappear after this many seconds
BANNER_SECONDS = float(os.environ.get("CRIMESTAT_BANNER_SECONDS", "7"))

# Stands in for "no polygon was ever closed" when navigating to statistics
NO_AREA = "noarea"

# ── Drawing ──
CLOSE_DISTANCE_METERS = 500.0
CLOSE_PIXEL_RADIUS = 10.0
MIN_POLYGON_VERTICES = 3
DRAW_COLOR = "#f357a1"
FIRST_VERTEX_RADIUS = 5
VERTEX_RADIUS = 4
VERTEX_WEIGHT = 2
LINE_WEIGHT = 4
TOOLTIP_OFFSET_X = 20

TOOLTIP_START = "Click to start drawing"
TOOLTIP_CONTINUE = "Keep clicking to draw polygon"
TOOLTIP_FINISH = "Click near start point to finish"

# ── Map ──
MAP_CENTER = (54.5, -3.5)
MAP_ZOOM = 6
TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILE_ATTRIBUTION = "&copy; OpenStreetMap contributors"
HEAT_RADIUS = 25
HUE_STEP = 30

# ── Statistics view ──
LEGEND_MIN_HEIGHT = 500
CHART_TITLE = "Crimes by Category"

# Crime category → display colour (shared by the markers and the bar chart)
CATEGORY_COLORS = {
    "anti-social-behaviour": "#6d2ddd",
    "bicycle-theft": "#49dacf",
    "burglary": "#d1a545",
    "criminal-damage-arson": "#f14a12",
    "drugs": "#232ab8",
    "other-theft": "#38d8a7",
    "possession-of-weapons": "#4e3a20",
    "public-order": "#a2c2cf",
    "robbery": "#1b8a69",
    "shoplifting": "#ea85e2",
    "theft-from-the-person": "#835ed1",
    "vehicle-crime": "#bbd50f",
    "violent-crime": "#bf0b0b",
    "other-crime": "#887474",
}
MARKER_DEFAULT_COLOR = "#0000ff"
CHART_DEFAULT_COLOR = "#8884d8"

# ── Themes ──
THEMES = {
    "light": {
        "primary": "#1976d2",
        "secondary": "#dc004e",
        "background": "#edf1f1",
        "paper": "#ffffff",
        "text_primary": "#000000",
        "text_secondary": "#333333",
    },
    "dark": {
        "primary": "#90caf9",
        "secondary": "#f48fb1",
        "background": "#323232",
        "paper": "#1e1e1e",
        "text_primary": "#ffffff",
        "text_secondary": "#bbbbbb",
    },
}
DEFAULT_THEME = "light"

# ── User-facing messages ──
MSG_TOO_MANY = (
    "The area you have selected contains more than 10,000 crimes. "
    "Please try restricting the field."
)
MSG_FETCH_FAILED = "Could not load crimes for this area. Please try again."
MSG_NO_AREA = (
    "You must select a valid area on the map first. If you already selected it, "
    "it's possible you are now on a month with too many crimes. Please try "
    "selecting a month and area on the map page and then try again."
)
MSG_MAP_LOADING = "Loading crimes data, please wait..."
MSG_STATS_LOADING = "Loading statistics, please wait..."
