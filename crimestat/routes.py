"""CrimeStat — FastAPI Routes"""

import logging
import time
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, RedirectResponse

from crimestat.cache import SessionStore
from crimestat.config import BASE_PATH, DEFAULT_THEME, NO_AREA, THEMES
from crimestat.models import (
    ClickRequest, MapViewResponse, ModeRequest, MonthOption, MonthRequest,
    MoveRequest, NavigationState, Point, StatisticsResponse, TooltipState,
    ViewportRequest,
)
from crimestat.pages import render_map_page, render_statistics_page
from crimestat.query import month_options, month_string, parse_month, parse_polygon
from crimestat.views import MapView, StatisticsView

logger = logging.getLogger("crimestat.routes")


# ─────────────────────────── App Setup ──────────────────────────

app = FastAPI(title="CrimeStat API", version="1.0.0", root_path=BASE_PATH)

_allowed_origins = [
    f"http://localhost:{p}" for p in range(5173, 5180)
] + [
    f"http://127.0.0.1:{p}" for p in range(5173, 5180)
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One map view per browser session
sessions: SessionStore[MapView] = SessionStore()


def _get_view(sid: str) -> MapView:
    view = sessions.get(sid)
    if view is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return view


def _new_view() -> MapView:
    sid = uuid.uuid4().hex
    view = MapView(sid)
    sessions.put(sid, view)
    logger.info(f"New map session {sid}")
    return view


def _check_month(month: str):
    try:
        parse_month(month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _check_poly(poly: str):
    if not poly or poly == NO_AREA:
        return
    try:
        points = parse_polygon(poly)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if len(points) < 4 or points[0] != points[-1]:
        raise HTTPException(status_code=400, detail="poly must be a closed chain of at least 3 vertices")


def _check_theme(theme: str):
    if theme not in THEMES:
        raise HTTPException(status_code=400, detail=f"Unknown theme {theme!r}")


# ─────────────────────────── Map Session ────────────────────────

@app.post("/api/sessions", response_model=MapViewResponse)
async def create_session():
    return _new_view().to_response()


@app.get("/api/sessions/{sid}", response_model=MapViewResponse)
async def get_session(sid: str):
    return _get_view(sid).to_response()


@app.post("/api/sessions/{sid}/draw", response_model=MapViewResponse)
async def toggle_draw(sid: str):
    view = _get_view(sid)
    view.toggle_draw()
    return view.to_response()


@app.post("/api/sessions/{sid}/click", response_model=MapViewResponse)
async def pointer_click(sid: str, req: ClickRequest):
    """Add a vertex; closing the polygon awaits the crime fetch."""
    view = _get_view(sid)
    await view.on_pointer_click(Point(lat=req.lat, lng=req.lng), req.zoom, req.center)
    return view.to_response()


@app.put("/api/sessions/{sid}/viewport", status_code=204)
async def set_viewport(sid: str, req: ViewportRequest):
    """Remember where the user has panned and zoomed to."""
    _get_view(sid).set_viewport(Point(lat=req.lat, lng=req.lng), req.zoom)


@app.post("/api/sessions/{sid}/move", response_model=TooltipState)
async def pointer_move(sid: str, req: MoveRequest):
    return _get_view(sid).on_pointer_move(req.x, req.y)


@app.put("/api/sessions/{sid}/month", response_model=MapViewResponse)
async def set_month(sid: str, req: MonthRequest):
    view = _get_view(sid)
    await view.set_month(req.month)
    return view.to_response()


@app.put("/api/sessions/{sid}/mode", response_model=MapViewResponse)
async def set_mode(sid: str, req: ModeRequest):
    view = _get_view(sid)
    view.set_heatmap(req.heatmap)
    return view.to_response()


@app.post("/api/sessions/{sid}/theme", response_model=MapViewResponse)
async def toggle_theme(sid: str):
    view = _get_view(sid)
    view.toggle_theme()
    return view.to_response()


@app.get("/api/sessions/{sid}/records")
async def get_records(sid: str):
    records = _get_view(sid).controller.records
    return {"records": [r.model_dump() for r in records], "count": len(records)}


@app.get("/api/sessions/{sid}/navigate", response_model=NavigationState)
async def navigate(sid: str):
    """State handed to the statistics view; `noarea` when nothing was drawn."""
    return _get_view(sid).navigation()


# ─────────────────────────── Statistics ─────────────────────────

async def _load_statistics(poly: str, month: str) -> StatisticsView:
    month = month or month_string(1)
    _check_month(month)
    _check_poly(poly)
    view = StatisticsView(NavigationState(polylinePoints=poly, month=month))
    await view.load()
    return view


@app.get("/api/statistics", response_model=StatisticsResponse)
async def get_statistics(
    poly: str = NO_AREA,
    month: str = "",
    height: int = 800,
):
    view = await _load_statistics(poly, month)
    return view.to_response(height)


# ─────────────────────────── Pages ──────────────────────────────

@app.get("/", response_class=HTMLResponse)
async def map_page(request: Request, sid: str | None = None):
    view = sessions.get(sid) if sid else None
    if view is None:
        view = _new_view()
        return RedirectResponse(url=f"{BASE_PATH}/?sid={view.session_id}", status_code=303)
    state = view.controller.state
    remaining = None
    if state.banner_until is not None:
        remaining = max(0.0, state.banner_until - time.monotonic())
    return render_map_page(request, view, remaining)


@app.get("/statistics", response_class=HTMLResponse)
async def statistics_page(
    request: Request,
    poly: str = NO_AREA,
    month: str = "",
    height: int = 800,
    theme: str = DEFAULT_THEME,
):
    _check_theme(theme)
    view = await _load_statistics(poly, month)
    return render_statistics_page(request, view, view.to_response(height), height, theme)


# ─────────────────────────── Utility Endpoints ──────────────────

@app.get("/api/months", response_model=list[MonthOption])
async def get_months():
    return month_options()


@app.get("/api/health")
async def health():
    return {"status": "ok", "sessions": len(sessions), "version": "1.0.0"}
