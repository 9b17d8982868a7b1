"""Per-category aggregation, chart data and recap text."""

import asyncio
import random

from crimestat.config import CATEGORY_COLORS, CHART_DEFAULT_COLOR, MSG_STATS_LOADING, THEMES
from crimestat.models import CrimeRecord, NavigationState
from crimestat.presentation import format_category
from crimestat.statistics import (
    aggregate, build_bar_chart, chart_data, legend_visible, recap_lines,
)
from crimestat.views import StatisticsView


def rec(id, category) -> CrimeRecord:
    return CrimeRecord.model_validate({
        "id": id, "category": category,
        "location": {"latitude": "51.5", "longitude": "-0.1"},
    })


def test_format_category():
    assert format_category("anti-social-behaviour") == "Anti social behaviour"
    assert format_category("burglary") == "Burglary"
    assert format_category("theft-from-the-person") == "Theft from the person"


def test_counts_add_up_for_random_record_sets():
    rng = random.Random(7)
    categories = list(CATEGORY_COLORS) + ["mystery-crime"]
    for size in (0, 1, 5, 200):
        records = [rec(i, rng.choice(categories)) for i in range(size)]
        stats = aggregate(records)
        assert sum(stats.per_category.values()) == stats.total == len(records)
        assert set(stats.per_category) == {r.category for r in records}


def test_categories_keep_first_seen_order():
    records = [rec(1, "drugs"), rec(2, "burglary"), rec(3, "drugs"), rec(4, "robbery")]
    assert list(aggregate(records).per_category) == ["drugs", "burglary", "robbery"]
    assert aggregate(records).per_category["drugs"] == 2


def test_chart_data_uses_fixed_colours():
    bars = chart_data([rec(1, "burglary"), rec(2, "mystery-crime"), rec(3, "burglary")])
    assert [(b.label, b.count) for b in bars] == [("Burglary", 2), ("Mystery crime", 1)]
    assert bars[0].color == CATEGORY_COLORS["burglary"]
    assert bars[1].color == CHART_DEFAULT_COLOR


def test_recap_lines():
    lines = recap_lines(aggregate([rec(1, "anti-social-behaviour"), rec(2, "drugs")]))
    assert lines == [
        "Statistics Recap",
        "Total Crimes: 2",
        "Categories:",
        "Anti social behaviour: 1",
        "Drugs: 1",
    ]


def test_legend_depends_on_viewport_height():
    assert legend_visible(800)
    assert not legend_visible(500)


def _values(spec) -> list:
    # altair moves inline values into top-level named datasets
    data = spec["data"]
    return spec["datasets"][data["name"]] if "name" in data else data["values"]


def test_bar_chart_spec():
    bars = chart_data([rec(1, "drugs"), rec(2, "robbery"), rec(3, "drugs")])
    spec = build_bar_chart(bars, show_legend=True, theme="dark").to_dict()

    mark = spec["mark"]
    assert (mark["type"] if isinstance(mark, dict) else mark) == "bar"
    assert _values(spec) == [{"label": "Drugs", "count": 2}, {"label": "Robbery", "count": 1}]
    scale = spec["encoding"]["color"]["scale"]
    assert scale["range"] == [CATEGORY_COLORS["drugs"], CATEGORY_COLORS["robbery"]]
    assert spec["encoding"]["color"]["legend"]["labelColor"] == THEMES["dark"]["text_primary"]


def test_bar_chart_without_legend():
    spec = build_bar_chart(chart_data([rec(1, "drugs")]), show_legend=False).to_dict()
    assert spec["encoding"]["color"]["legend"] is None


def test_statistics_view_shows_loading_text_while_fetching():
    nav = NavigationState(polylinePoints="51.5,-0.2:51.5,-0.1:51.55,-0.1:51.5,-0.2", month="2024-03")

    async def scenario():
        gate = asyncio.Event()

        async def fetcher(query):
            await gate.wait()
            return [rec(1, "drugs")]

        view = StatisticsView(nav, fetcher)
        task = asyncio.create_task(view.load())
        await asyncio.sleep(0)
        loading = view.to_response()
        gate.set()
        await task
        return loading, view.to_response()

    loading, done = asyncio.run(scenario())
    assert loading.loadingText == MSG_STATS_LOADING
    assert loading.fetch.status == "loading"
    assert done.loadingText == ""
    assert done.totalCrimes == 1
