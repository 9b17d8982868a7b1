"""CrimeStat — Polygon drawing state machine

Inactive ──toggle──▶ Drawing ──click near first vertex──▶ Closed
    ▲                   │
    └─────toggle────────┘

Every transition is a pure function returning a new `DrawingState`; the
map view keeps the current state and hands shapes to the rendering surface.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from crimestat.config import (
    CLOSE_DISTANCE_METERS, CLOSE_PIXEL_RADIUS, MIN_POLYGON_VERTICES,
    DRAW_COLOR, FIRST_VERTEX_RADIUS, VERTEX_RADIUS, VERTEX_WEIGHT, LINE_WEIGHT,
    TOOLTIP_START, TOOLTIP_CONTINUE, TOOLTIP_FINISH, TOOLTIP_OFFSET_X,
)
from crimestat.geometry import haversine_m, pixel_distance
from crimestat.models import Point, TooltipState

logger = logging.getLogger("crimestat.drawing")


class DrawStatus(str, Enum):
    INACTIVE = "inactive"
    DRAWING = "drawing"
    CLOSED = "closed"


@dataclass(frozen=True)
class DrawingState:
    status: DrawStatus = DrawStatus.INACTIVE
    points: tuple[Point, ...] = ()
    # Closed chain, first vertex repeated at the end
    polygon: Optional[tuple[Point, ...]] = None
    # Bumped on every session start; the map view fits each closed polygon once
    session: int = 0


@dataclass(frozen=True)
class Shape:
    """Primitive drawing layer handed to the map surface."""

    kind: str  # circle, polyline, polygon
    points: tuple[Point, ...]
    color: str = DRAW_COLOR
    weight: int = LINE_WEIGHT
    radius: int = 0
    fill_color: str = ""


def toggle_draw(state: DrawingState) -> DrawingState:
    """Start a fresh drawing session, or abandon the one in progress."""
    if state.status is DrawStatus.DRAWING:
        logger.debug(f"Drawing cancelled with {len(state.points)} points")
        return DrawingState(status=DrawStatus.INACTIVE, session=state.session)
    return DrawingState(status=DrawStatus.DRAWING, session=state.session + 1)


def should_close(points: tuple[Point, ...], clicked: Point, zoom: float) -> bool:
    """True when `clicked` lands on the first vertex of a closable chain."""
    if len(set(points)) < MIN_POLYGON_VERTICES:
        return False
    first = points[0]
    if pixel_distance(clicked, first, zoom) < CLOSE_PIXEL_RADIUS:
        return True
    return haversine_m(clicked, first) < CLOSE_DISTANCE_METERS


def click(state: DrawingState, clicked: Point, zoom: float) -> DrawingState:
    """Apply one map click. Ignored unless a drawing session is open."""
    if state.status is not DrawStatus.DRAWING:
        return state

    if should_close(state.points, clicked, zoom):
        polygon = state.points + (state.points[0],)
        logger.info(f"Polygon closed with {len(state.points)} vertices")
        return replace(state, status=DrawStatus.CLOSED, points=(), polygon=polygon)

    return replace(state, points=state.points + (clicked,))


def tooltip(state: DrawingState, x: float = 0.0, y: float = 0.0) -> TooltipState:
    """Guidance text that follows the pointer while drawing."""
    if state.status is not DrawStatus.DRAWING:
        return TooltipState(visible=False)
    n = len(state.points)
    if n == 0:
        text = TOOLTIP_START
    elif n < MIN_POLYGON_VERTICES:
        text = TOOLTIP_CONTINUE
    else:
        text = TOOLTIP_FINISH
    return TooltipState(visible=True, text=text, left=x + TOOLTIP_OFFSET_X, top=y)


def shapes(state: DrawingState) -> list[Shape]:
    """Interim vertices and segments, or the finished polygon."""
    if state.status is DrawStatus.CLOSED and state.polygon:
        return [Shape(kind="polygon", points=state.polygon)]
    if state.status is not DrawStatus.DRAWING:
        return []

    out = []
    for i, p in enumerate(state.points):
        first = i == 0
        out.append(Shape(
            kind="circle",
            points=(p,),
            weight=VERTEX_WEIGHT,
            radius=FIRST_VERTEX_RADIUS if first else VERTEX_RADIUS,
            # The filled vertex is the closure target
            fill_color=DRAW_COLOR if first else "#fff",
        ))
    if len(state.points) > 1:
        out.append(Shape(kind="polyline", points=state.points))
    return out
