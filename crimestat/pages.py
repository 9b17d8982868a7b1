"""CrimeStat — HTML pages for the map and statistics views"""

from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi.templating import Jinja2Templates

from crimestat.config import BASE_PATH, TOOLTIP_OFFSET_X
from crimestat.models import StatisticsResponse
from crimestat.query import month_options, parse_month
from crimestat.views import MapView, StatisticsView, theme_palette

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def statistics_href(poly: str, month: str, theme: str) -> str:
    return f"{BASE_PATH}/statistics?" + urlencode({"poly": poly, "month": month, "theme": theme})


def render_map_page(request: Request, view: MapView, banner_seconds: Optional[float]):
    """Embed the folium map in the page shell.

    folium renders its own document; only the header, map div and map
    script are taken from it so the page controls can reach the map.
    """
    state = view.to_response()
    nav = view.navigation()
    m = view.render().build_map()
    root = m.get_root()
    root.render()

    return templates.TemplateResponse(request, "map.html", {
        "base_path": BASE_PATH,
        "palette": theme_palette(view.theme),
        "stats_href": statistics_href(nav.polylinePoints, nav.month, view.theme),
        "state": state,
        "months": month_options(),
        "selected_month": view.month,
        "map_header": root.header.render(),
        "map_html": root.html.render(),
        "map_script": root.script.render(),
        "map_name": m.get_name(),
        "api": f"{BASE_PATH}/api/sessions/{state.sessionId}",
        "tooltip_offset": TOOLTIP_OFFSET_X,
        "banner_ms": int(banner_seconds * 1000) if banner_seconds is not None else None,
    })


def render_statistics_page(
    request: Request, view: StatisticsView, stats: StatisticsResponse, height: int, theme: str,
):
    month = parse_month(view.month)
    return templates.TemplateResponse(request, "statistics.html", {
        "base_path": BASE_PATH,
        "palette": theme_palette(theme),
        "stats_href": statistics_href(view.poly, view.month, theme),
        "poly": view.poly,
        "theme": theme,
        "months": month_options(),
        "selected_month": month,
        "stats": stats,
        "chart_spec": view.chart(height, theme).to_json(),
    })
