"""
Fetch lifecycle: HTTP outcome classification, state transitions, banner
timeout and stale-response handling.
"""

import asyncio

import httpx
import pytest

from crimestat import data_fetchers
from crimestat.data_fetchers import fetch_street_crimes
from crimestat.errors import MalformedResponse, NetworkFailure, NoAreaSelected, PayloadTooLarge
from crimestat.fetch_controller import FetchController, FetchStatus
from crimestat.models import CrimeRecord, RegionQuery

QUERY = RegionQuery(poly="51.5,-0.2:51.5,-0.1:51.55,-0.1:51.5,-0.2", date="2024-03")


def crime(id, category, lat="51.52", lng="-0.15", outcome=None) -> dict:
    return {
        "id": id,
        "category": category,
        "month": "2024-03",
        "location": {"latitude": lat, "longitude": lng, "street": {"id": 1, "name": "On or near X"}},
        "outcome_status": outcome,
    }


RECORDS = [crime(1, "burglary"), crime(2, "drugs"), crime(3, "burglary")]


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def run(coro):
    return asyncio.run(coro)


# ─────────────────────────────────────────────────────────────────
# Fetcher
# ─────────────────────────────────────────────────────────────────

def test_fetch_sends_date_and_poly():
    seen = {}

    def handler(request: httpx.Request):
        seen.update(request.url.params)
        return httpx.Response(200, json=RECORDS)

    records = run(fetch_street_crimes(QUERY, mock_client(handler)))
    assert seen == {"date": "2024-03", "poly": QUERY.poly}
    assert [r.id for r in records] == [1, 2, 3]
    assert records[0].lat == 51.52


def test_fetch_uses_shared_client(monkeypatch):
    monkeypatch.setattr(data_fetchers, "client", mock_client(lambda r: httpx.Response(200, json=[])))
    assert run(fetch_street_crimes(QUERY)) == []


@pytest.mark.parametrize("response, error", [
    (httpx.Response(503), PayloadTooLarge),
    (httpx.Response(500), NetworkFailure),
    (httpx.Response(404), NetworkFailure),
    (httpx.Response(200, text="<html>oops</html>"), MalformedResponse),
    (httpx.Response(200, json={"error": "nope"}), MalformedResponse),
    (httpx.Response(200, json=[{"id": 1}]), MalformedResponse),
])
def test_fetch_classifies_failures(response, error):
    with pytest.raises(error):
        run(fetch_street_crimes(QUERY, mock_client(lambda r: response)))


def test_transport_error_is_network_failure():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(NetworkFailure):
        run(fetch_street_crimes(QUERY, mock_client(handler)))


# ─────────────────────────────────────────────────────────────────
# Controller
# ─────────────────────────────────────────────────────────────────

def _fetcher_for(status: int, body=None):
    http = mock_client(lambda r: httpx.Response(status, json=body))

    async def fetcher(query):
        return await fetch_street_crimes(query, http)

    return fetcher


def test_success_replaces_records():
    ctrl = FetchController(_fetcher_for(200, RECORDS))
    state = run(ctrl.submit(QUERY))
    assert state.status is FetchStatus.SUCCESS
    assert len(state.records) == 3
    assert state.succeeded

    ctrl._fetcher = _fetcher_for(200, RECORDS[:1])
    state = run(ctrl.submit(QUERY))
    assert [r.id for r in state.records] == [1]


def test_too_many_results_banner_lasts_seven_seconds():
    clock = FakeClock()
    ctrl = FetchController(_fetcher_for(200, RECORDS), clock=clock)
    run(ctrl.submit(QUERY))

    ctrl._fetcher = _fetcher_for(503)
    state = run(ctrl.submit(QUERY))
    assert state.status is FetchStatus.TOO_MANY_RESULTS
    assert state.banner.kind == "too_many_results"
    assert "10,000" in state.banner.message
    # The overflow never populates the record set
    assert [r.id for r in state.records] == [1, 2, 3]

    clock.now = 1006.5
    assert ctrl.state.status is FetchStatus.TOO_MANY_RESULTS
    clock.now = 1007.0
    assert ctrl.state.status is FetchStatus.IDLE
    assert ctrl.state.banner is None


def test_too_many_results_on_empty_view_has_no_records():
    ctrl = FetchController(_fetcher_for(503), clock=FakeClock())
    state = run(ctrl.submit(QUERY))
    assert state.records == ()


def test_error_clears_records():
    clock = FakeClock()
    ctrl = FetchController(_fetcher_for(200, RECORDS), clock=clock)
    run(ctrl.submit(QUERY))

    ctrl._fetcher = _fetcher_for(500)
    state = run(ctrl.submit(QUERY))
    assert state.status is FetchStatus.ERROR
    assert state.records == ()
    assert not state.succeeded

    clock.now += 7
    assert ctrl.state.status is FetchStatus.IDLE


def test_persistent_banner_never_expires():
    clock = FakeClock()
    ctrl = FetchController(_fetcher_for(500), banner_seconds=None, clock=clock)
    run(ctrl.submit(QUERY))
    clock.now += 3600
    assert ctrl.state.status is FetchStatus.ERROR
    assert ctrl.state.banner.persistent


def test_reject_skips_network():
    calls = []

    async def fetcher(query):
        calls.append(query)
        return []

    ctrl = FetchController(fetcher, banner_seconds=None)
    state = ctrl.reject(NoAreaSelected())
    assert state.status is FetchStatus.ERROR
    assert state.banner.kind == "no_area"
    assert calls == []


def test_loading_while_in_flight():
    async def scenario():
        gate = asyncio.Event()

        async def fetcher(query):
            await gate.wait()
            return []

        ctrl = FetchController(fetcher)
        task = asyncio.create_task(ctrl.submit(QUERY))
        await asyncio.sleep(0)
        assert ctrl.state.status is FetchStatus.LOADING
        gate.set()
        await task
        return ctrl.state.status

    assert run(scenario()) is FetchStatus.SUCCESS


def test_latest_request_wins_over_slow_earlier_one():
    answers = {
        1: [CrimeRecord.model_validate(crime(1, "drugs"))],
        2: [CrimeRecord.model_validate(crime(2, "robbery"))],
    }

    async def scenario():
        gates: dict[int, asyncio.Event] = {}

        async def fetcher(query):
            gates[query.seq] = asyncio.Event()
            await gates[query.seq].wait()
            return answers[query.seq]

        ctrl = FetchController(fetcher)
        first = asyncio.create_task(ctrl.submit(QUERY))
        await asyncio.sleep(0)
        second = asyncio.create_task(ctrl.submit(QUERY))
        await asyncio.sleep(0)

        gates[2].set()
        await second
        gates[1].set()
        await first
        return ctrl.state

    state = run(scenario())
    assert state.status is FetchStatus.SUCCESS
    assert [r.id for r in state.records] == [2]
