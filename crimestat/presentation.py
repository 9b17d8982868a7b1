"""CrimeStat — Result presentation (markers / heatmap) on a map surface"""

import colorsys
import html
import logging
import math
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import folium
from folium.plugins import HeatMap

from crimestat.config import (
    CATEGORY_COLORS, MARKER_DEFAULT_COLOR, HEAT_RADIUS, HUE_STEP,
    MAP_CENTER, MAP_ZOOM, TILE_URL, TILE_ATTRIBUTION,
)
from crimestat.drawing import Shape
from crimestat.models import CrimeRecord

logger = logging.getLogger("crimestat.presentation")


def format_category(category: str) -> str:
    """'anti-social-behaviour' → 'Anti social behaviour'."""
    words = category.split("-")
    head = words[0][:1].upper() + words[0][1:]
    return " ".join([head, *words[1:]])


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def color_hue(hex_color: str) -> int:
    """HSL hue of a '#rrggbb' colour, in whole degrees."""
    value = hex_color.lstrip("#")
    r, g, b = (int(value[i:i + 2], 16) / 255 for i in (0, 2, 4))
    h, _, _ = colorsys.rgb_to_hls(r, g, b)
    return _round_half_up(h * 360)


def hue_bucket(hue: float) -> int:
    """Nearest multiple of 30°, giving at most 12 marker tints."""
    return _round_half_up(hue / HUE_STEP) * HUE_STEP % 360


def category_bucket(category: str) -> int:
    return hue_bucket(color_hue(CATEGORY_COLORS.get(category, MARKER_DEFAULT_COLOR)))


def bucket_color(bucket: int) -> str:
    r, g, b = colorsys.hls_to_rgb(bucket / 360, 0.45, 0.75)
    return "#{:02x}{:02x}{:02x}".format(*(round(c * 255) for c in (r, g, b)))


def popup_html(record: CrimeRecord) -> str:
    parts = [f"<strong>Category:</strong> {html.escape(format_category(record.category))}<br>"]
    if record.outcome_status:
        parts.append(f"<strong>Outcome:</strong> {html.escape(record.outcome_status.category)}<br>")
        parts.append(f"<strong>Date of the outcome:</strong> {html.escape(record.outcome_status.date)}")
    return "".join(parts)


@dataclass(frozen=True)
class MarkerSpec:
    id: str
    lat: float
    lng: float
    hue: int
    color: str
    popup: str


def marker_specs(records: Sequence[CrimeRecord]) -> list[MarkerSpec]:
    specs = []
    for r in records:
        bucket = category_bucket(r.category)
        specs.append(MarkerSpec(
            id=str(r.id), lat=r.lat, lng=r.lng,
            hue=bucket, color=bucket_color(bucket), popup=popup_html(r),
        ))
    return specs


def heat_points(records: Sequence[CrimeRecord]) -> list[list[float]]:
    return [[r.lat, r.lng, 1] for r in records]


# ─────────────────────────── Surfaces ───────────────────────────

class MapSurface(Protocol):
    """What the presentation needs from a map widget."""

    def set_view(self, center: tuple[float, float], zoom: float, bounds=None) -> None: ...

    def render_shapes(self, shapes: list[Shape]) -> None: ...

    def render_markers(self, markers: list[MarkerSpec]) -> None: ...

    def render_heat(self, points: list[list[float]], radius: int) -> None: ...

    def clear_results(self) -> None: ...


class FoliumSurface:
    """Collects layers and renders them into a Leaflet page via folium."""

    def __init__(self, center=MAP_CENTER, zoom: int = MAP_ZOOM):
        self.center = center
        self.zoom = zoom
        self.bounds = None
        self.shapes: list[Shape] = []
        self.markers: list[MarkerSpec] = []
        self.heat: Optional[tuple[list[list[float]], int]] = None

    def set_view(self, center: tuple[float, float], zoom: float, bounds=None) -> None:
        """Centre and zoom for the next build; `bounds` overrides both."""
        self.center = center
        self.zoom = zoom
        self.bounds = bounds

    def render_shapes(self, shapes: list[Shape]) -> None:
        self.shapes = list(shapes)

    def render_markers(self, markers: list[MarkerSpec]) -> None:
        self.markers = list(markers)

    def render_heat(self, points: list[list[float]], radius: int) -> None:
        self.heat = (list(points), radius)

    def clear_results(self) -> None:
        self.markers = []
        self.heat = None

    def build_map(self) -> folium.Map:
        m = folium.Map(location=list(self.center), zoom_start=self.zoom, tiles=None)
        folium.TileLayer(tiles=TILE_URL, attr=TILE_ATTRIBUTION).add_to(m)

        for shape in self.shapes:
            locations = [[p.lat, p.lng] for p in shape.points]
            if shape.kind == "circle":
                folium.CircleMarker(
                    location=locations[0], radius=shape.radius, color=shape.color,
                    weight=shape.weight, fill=True, fill_color=shape.fill_color, fill_opacity=1,
                ).add_to(m)
            elif shape.kind == "polyline":
                folium.PolyLine(locations=locations, color=shape.color, weight=shape.weight).add_to(m)
            elif shape.kind == "polygon":
                folium.Polygon(locations=locations, color=shape.color, weight=shape.weight).add_to(m)

        for mk in self.markers:
            folium.CircleMarker(
                location=[mk.lat, mk.lng], radius=6, color=mk.color, weight=1,
                fill=True, fill_color=mk.color, fill_opacity=0.9,
                popup=folium.Popup(mk.popup, max_width=300),
            ).add_to(m)

        if self.heat is not None:
            points, radius = self.heat
            HeatMap(points, radius=radius).add_to(m)
        if self.bounds is not None:
            m.fit_bounds(self.bounds)
        return m

    def to_html(self) -> str:
        return self.build_map().get_root().render()


class ResultPresenter:
    """Keeps one map surface in sync with the current records and render mode.

    Result layers are torn down and rebuilt whenever the record set or the
    mode changes; a loading overlay hides them.
    """

    def __init__(self, surface: MapSurface):
        self.surface = surface
        self._records: Optional[tuple[CrimeRecord, ...]] = None
        self._heatmap: Optional[bool] = None

    def present(self, records: tuple[CrimeRecord, ...], heatmap: bool, loading: bool = False) -> None:
        if loading:
            if self._records is not None:
                self.surface.clear_results()
                self._records = None
            return

        if records is self._records and heatmap == self._heatmap:
            return
        self.surface.clear_results()
        if heatmap:
            self.surface.render_heat(heat_points(records), HEAT_RADIUS)
        else:
            self.surface.render_markers(marker_specs(records))
        self._records = records
        self._heatmap = heatmap
        logger.debug(f"Rendered {len(records)} crimes as {'heatmap' if heatmap else 'markers'}")
