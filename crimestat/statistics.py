"""CrimeStat — Per-category aggregation and the bar chart"""

from collections import Counter
from dataclasses import dataclass
from typing import Sequence

import altair as alt

from crimestat.config import (
    CATEGORY_COLORS, CHART_DEFAULT_COLOR, CHART_TITLE, LEGEND_MIN_HEIGHT, THEMES,
)
from crimestat.models import CategoryCount, CrimeRecord
from crimestat.presentation import format_category


@dataclass(frozen=True)
class CrimeStatistics:
    total: int
    # category → count, in first-seen order
    per_category: dict[str, int]


def aggregate(records: Sequence[CrimeRecord]) -> CrimeStatistics:
    # Counter keeps insertion order, i.e. first appearance in the records
    counts = Counter(r.category for r in records)
    return CrimeStatistics(total=len(records), per_category=dict(counts))


def chart_data(records: Sequence[CrimeRecord]) -> list[CategoryCount]:
    stats = aggregate(records)
    return [
        CategoryCount(
            category=category,
            label=format_category(category),
            count=count,
            color=CATEGORY_COLORS.get(category, CHART_DEFAULT_COLOR),
        )
        for category, count in stats.per_category.items()
    ]


def legend_visible(viewport_height: int) -> bool:
    return viewport_height > LEGEND_MIN_HEIGHT


def build_bar_chart(
    bars: list[CategoryCount], show_legend: bool = True, theme: str = "light",
) -> alt.Chart:
    """One bar per category, coloured with the category's fixed colour."""
    text_color = THEMES[theme]["text_primary"]
    labels = [b.label for b in bars]
    data = alt.Data(values=[{"label": b.label, "count": b.count} for b in bars])

    legend = alt.Legend(orient="bottom", labelColor=text_color, symbolType="square") if show_legend else None
    return (
        alt.Chart(data, title=CHART_TITLE)
        .mark_bar()
        .encode(
            x=alt.X("label:N", sort=labels, title=None),
            y=alt.Y("count:Q", title="Crimes"),
            color=alt.Color(
                "label:N",
                scale=alt.Scale(domain=labels, range=[b.color for b in bars]),
                legend=legend,
            ),
            tooltip=["label:N", "count:Q"],
        )
        .properties(width="container", height=400)
        .configure_axis(labelColor=text_color, titleColor=text_color)
        .configure_title(color=text_color)
    )


def recap_lines(stats: CrimeStatistics) -> list[str]:
    """Plain-text recap shown in the statistics modal."""
    lines = ["Statistics Recap", f"Total Crimes: {stats.total}", "Categories:"]
    lines += [f"{format_category(c)}: {n}" for c, n in stats.per_category.items()]
    return lines
