"""CrimeStat — Pydantic Models"""

from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class Point(BaseModel):
    """A (latitude, longitude) pair in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class CrimeLocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # The API sends coordinates as decimal strings
    latitude: str
    longitude: str


class OutcomeStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    category: str
    date: str = ""


class CrimeRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    category: str
    location: CrimeLocation
    month: str = ""
    outcome_status: Optional[OutcomeStatus] = None

    @property
    def lat(self) -> float:
        return float(self.location.latitude)

    @property
    def lng(self) -> float:
        return float(self.location.longitude)


class RegionQuery(BaseModel):
    """Query parameters for one street-crime request."""

    model_config = ConfigDict(frozen=True)

    poly: str
    date: str
    seq: int = 0

    def params(self) -> dict[str, str]:
        return {"date": self.date, "poly": self.poly}


# ─────────────────────────── Requests ───────────────────────────

class ClickRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    zoom: float = Field(default=6, ge=0, le=24)
    # Map centre at the time of the click
    center: Optional[Point] = None


class ViewportRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    zoom: float = Field(ge=0, le=24)


class MoveRequest(BaseModel):
    x: float
    y: float


class MonthRequest(BaseModel):
    month: int = Field(ge=1, le=12)


class ModeRequest(BaseModel):
    heatmap: bool


# ─────────────────────────── Responses ──────────────────────────

class TooltipState(BaseModel):
    visible: bool
    text: str = ""
    left: float = 0.0
    top: float = 0.0


class BannerState(BaseModel):
    kind: str  # too_many_results, error, no_area
    message: str
    persistent: bool = False


class FetchStateResponse(BaseModel):
    status: str  # idle, loading, success, too_many_results, error
    recordCount: int = 0
    banner: Optional[BannerState] = None


class MapViewResponse(BaseModel):
    sessionId: str
    drawing: str  # inactive, drawing, closed
    points: list[Point]
    polygon: Optional[str] = None
    tooltip: TooltipState
    month: int
    date: str
    heatmap: bool
    theme: str
    fetch: FetchStateResponse
    canViewStatistics: bool = False
    loadingText: str = ""


class NavigationState(BaseModel):
    """Transient state handed from the map view to the statistics view."""

    polylinePoints: str
    month: str


class MonthOption(BaseModel):
    value: int
    date: str
    label: str


class CategoryCount(BaseModel):
    category: str
    label: str
    count: int
    color: str


class StatisticsResponse(BaseModel):
    month: str
    fetch: FetchStateResponse
    totalCrimes: int = 0
    categories: list[CategoryCount] = []
    legendDisplay: bool = True
    recap: list[str] = []
    loadingText: str = ""
