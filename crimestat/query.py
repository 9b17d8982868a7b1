"""CrimeStat — Region query encoding for the street-crime endpoint"""

import calendar
import re

from crimestat.config import DATA_YEAR
from crimestat.models import MonthOption, Point, RegionQuery

_DATE_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def month_string(month: int, year: int = DATA_YEAR) -> str:
    """1..12 → 'YYYY-MM'."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")
    return f"{year}-{month:02d}"


def parse_month(date: str) -> int:
    """'YYYY-MM' → 1..12."""
    m = _DATE_RE.match(date)
    if not m:
        raise ValueError(f"expected YYYY-MM, got {date!r}")
    return int(m.group(2))


def encode_polygon(polygon: tuple[Point, ...] | list[Point]) -> str:
    """'lat,lng:lat,lng:...' in vertex order, closing vertex included."""
    return ":".join(f"{p.lat},{p.lng}" for p in polygon)


def parse_polygon(poly: str) -> list[Point]:
    points = []
    for pair in poly.split(":"):
        try:
            lat, lng = pair.split(",")
            points.append(Point(lat=float(lat), lng=float(lng)))
        except ValueError:
            raise ValueError(f"bad vertex {pair!r} in polygon") from None
    return points


def build_region_query(polygon, month: int, seq: int = 0) -> RegionQuery:
    return RegionQuery(poly=encode_polygon(polygon), date=month_string(month), seq=seq)


def month_options(year: int = DATA_YEAR) -> list[MonthOption]:
    """Entries of the month dropdown, e.g. 'March 2024'."""
    return [
        MonthOption(value=m, date=month_string(m, year), label=f"{calendar.month_name[m]} {year}")
        for m in range(1, 13)
    ]
