"""CrimeStat — View state containers (map view, statistics view)

Each view owns its state; transitions go through the pure reducers in
drawing.py and fetch_controller.py. Rendering is pushed to a MapSurface.
"""

import logging
import time
from typing import Callable, Optional

from crimestat.config import (
    DEFAULT_THEME, MAP_CENTER, MAP_ZOOM, NO_AREA, THEMES,
    MSG_MAP_LOADING, MSG_STATS_LOADING,
)
from crimestat import drawing
from crimestat.drawing import DrawingState, DrawStatus
from crimestat.errors import NoAreaSelected
from crimestat.fetch_controller import FetchController, Fetcher, FetchStatus
from crimestat.geometry import polygon_bounds
from crimestat.models import (
    MapViewResponse, NavigationState, Point, RegionQuery,
    StatisticsResponse, TooltipState,
)
from crimestat.presentation import FoliumSurface, MapSurface, ResultPresenter
from crimestat.query import build_region_query, encode_polygon, month_string
from crimestat.statistics import (
    aggregate, build_bar_chart, chart_data, legend_visible, recap_lines,
)

logger = logging.getLogger("crimestat.views")


def toggled_theme(theme: str) -> str:
    return "dark" if theme == "light" else "light"


class MapView:
    """Drawing, month selection and crime results for one browser session."""

    def __init__(
        self,
        session_id: str,
        fetcher: Optional[Fetcher] = None,
        surface: Optional[MapSurface] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session_id = session_id
        self.drawing = DrawingState()
        # Last closed polygon; survives redraws until a new one closes
        self.polygon: Optional[tuple[Point, ...]] = None
        self.month = 1
        self.heatmap = False
        self.theme = DEFAULT_THEME
        self.pointer = (0.0, 0.0)
        # Last viewport reported by the page
        self.center = MAP_CENTER
        self.zoom: float = MAP_ZOOM
        # Drawing session whose polygon the map was last fitted to
        self._fitted_session = 0
        self.controller = FetchController(fetcher, clock=clock)
        self.surface = surface or FoliumSurface()
        self.presenter = ResultPresenter(self.surface)

    # ── Pointer events ──

    def toggle_draw(self) -> None:
        # Previous results stay visible while a new area is drawn
        self.drawing = drawing.toggle_draw(self.drawing)

    async def on_pointer_click(
        self, point: Point, zoom: float, center: Optional[Point] = None,
    ) -> None:
        self.set_viewport(center, zoom)
        before = self.drawing
        self.drawing = drawing.click(before, point, zoom)
        if before.status is DrawStatus.DRAWING and self.drawing.status is DrawStatus.CLOSED:
            self.polygon = self.drawing.polygon
            await self.refresh()

    def set_viewport(self, center: Optional[Point], zoom: float) -> None:
        if center is not None:
            self.center = (center.lat, center.lng)
        self.zoom = zoom

    def on_pointer_move(self, x: float, y: float) -> TooltipState:
        self.pointer = (x, y)
        return drawing.tooltip(self.drawing, x, y)

    # ── Controls ──

    async def set_month(self, month: int) -> None:
        self.month = month
        if self.polygon is not None:
            await self.refresh()

    def set_heatmap(self, heatmap: bool) -> None:
        self.heatmap = heatmap

    def toggle_theme(self) -> None:
        self.theme = toggled_theme(self.theme)

    # ── Fetching ──

    def query(self) -> Optional[RegionQuery]:
        if self.polygon is None:
            return None
        return build_region_query(self.polygon, self.month)

    async def refresh(self) -> None:
        query = self.query()
        if query is not None:
            await self.controller.submit(query)

    @property
    def can_view_statistics(self) -> bool:
        return self.controller.state.succeeded and self.polygon is not None

    def navigation(self) -> NavigationState:
        poly = encode_polygon(self.polygon) if self.polygon is not None else NO_AREA
        return NavigationState(polylinePoints=poly, month=month_string(self.month))

    # ── Output ──

    def render(self) -> MapSurface:
        state = self.controller.state
        bounds = None
        if self.drawing.status is DrawStatus.CLOSED and self.drawing.session != self._fitted_session:
            bounds = polygon_bounds(list(self.drawing.polygon))
            self._fitted_session = self.drawing.session
        self.surface.set_view(self.center, self.zoom, bounds)
        self.surface.render_shapes(drawing.shapes(self.drawing))
        self.presenter.present(
            state.records, self.heatmap, loading=state.status is FetchStatus.LOADING,
        )
        return self.surface

    def to_response(self) -> MapViewResponse:
        state = self.controller.state
        return MapViewResponse(
            sessionId=self.session_id,
            drawing=self.drawing.status.value,
            points=list(self.drawing.points),
            polygon=encode_polygon(self.polygon) if self.polygon is not None else None,
            tooltip=drawing.tooltip(self.drawing, *self.pointer),
            month=self.month,
            date=month_string(self.month),
            heatmap=self.heatmap,
            theme=self.theme,
            fetch=state.to_response(),
            canViewStatistics=self.can_view_statistics,
            loadingText=MSG_MAP_LOADING if state.status is FetchStatus.LOADING else "",
        )


class StatisticsView:
    """Bar chart and recap for the area handed over by the map view.

    Error banners here stay until the user navigates away or refetches.
    """

    def __init__(
        self,
        nav: NavigationState,
        fetcher: Optional[Fetcher] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.poly = nav.polylinePoints
        self.month = nav.month
        self.controller = FetchController(fetcher, banner_seconds=None, clock=clock)

    @property
    def has_area(self) -> bool:
        return bool(self.poly) and self.poly != NO_AREA

    async def load(self) -> None:
        if not self.has_area:
            logger.info("Statistics requested without a selected area")
            self.controller.reject(NoAreaSelected())
            return
        await self.controller.submit(RegionQuery(poly=self.poly, date=self.month))

    def chart(self, viewport_height: int = 800, theme: str = DEFAULT_THEME):
        return build_bar_chart(
            chart_data(self.controller.records), legend_visible(viewport_height), theme,
        )

    def to_response(self, viewport_height: int = 800) -> StatisticsResponse:
        state = self.controller.state
        stats = aggregate(state.records)
        return StatisticsResponse(
            month=self.month,
            fetch=state.to_response(),
            totalCrimes=stats.total,
            categories=chart_data(state.records),
            legendDisplay=legend_visible(viewport_height),
            recap=recap_lines(stats),
            loadingText=MSG_STATS_LOADING if state.status is FetchStatus.LOADING else "",
        )


def theme_palette(theme: str) -> dict[str, str]:
    return THEMES.get(theme, THEMES[DEFAULT_THEME])
