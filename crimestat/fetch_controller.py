"""CrimeStat — Crime fetch lifecycle

FetchState is the single source of truth for loading / error UI. Reducers
are pure; `FetchController` wires them to the fetcher and a clock.

Every submitted query gets a monotonically increasing sequence number and a
response is applied only if it belongs to the latest request, so a slow
earlier response can never overwrite a newer one.
"""

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Optional

from crimestat.config import BANNER_SECONDS
from crimestat.data_fetchers import fetch_street_crimes
from crimestat.errors import CrimeStatError, PayloadTooLarge
from crimestat.models import BannerState, CrimeRecord, FetchStateResponse, RegionQuery

logger = logging.getLogger("crimestat.controller")

Fetcher = Callable[[RegionQuery], Awaitable[list[CrimeRecord]]]


class FetchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    TOO_MANY_RESULTS = "too_many_results"
    ERROR = "error"


@dataclass(frozen=True)
class FetchState:
    status: FetchStatus = FetchStatus.IDLE
    records: tuple[CrimeRecord, ...] = ()
    seq: int = 0
    banner: Optional[BannerState] = None
    # Monotonic deadline after which the banner reverts to Idle; None = sticky
    banner_until: Optional[float] = None
    # Whether the most recent completed fetch succeeded
    succeeded: bool = False

    def to_response(self) -> FetchStateResponse:
        return FetchStateResponse(
            status=self.status.value, recordCount=len(self.records), banner=self.banner,
        )


def start(state: FetchState, seq: int) -> FetchState:
    # Old records stay until the new answer lands
    return replace(state, status=FetchStatus.LOADING, seq=seq, banner=None, banner_until=None)


def succeed(state: FetchState, seq: int, records: list[CrimeRecord]) -> FetchState:
    if seq != state.seq:
        return state
    return replace(
        state, status=FetchStatus.SUCCESS, records=tuple(records),
        banner=None, banner_until=None, succeeded=True,
    )


def fail(
    state: FetchState, seq: int, error: CrimeStatError,
    now: float, banner_seconds: Optional[float],
) -> FetchState:
    if seq != state.seq:
        return state
    until = None if banner_seconds is None else now + banner_seconds
    banner = BannerState(kind=error.kind, message=error.message, persistent=until is None)
    if isinstance(error, PayloadTooLarge):
        # Overflow never touches the record set
        return replace(state, status=FetchStatus.TOO_MANY_RESULTS, banner=banner, banner_until=until)
    return replace(
        state, status=FetchStatus.ERROR, records=(), banner=banner,
        banner_until=until, succeeded=False,
    )


def expire(state: FetchState, now: float) -> FetchState:
    """Revert a timed-out banner state to Idle."""
    if state.banner_until is None or now < state.banner_until:
        return state
    logger.debug(f"Banner {state.banner.kind if state.banner else '-'} dismissed")
    return replace(state, status=FetchStatus.IDLE, banner=None, banner_until=None)


class FetchController:
    """Owns one FetchState and the request sequence counter.

    `banner_seconds=None` keeps error banners until the next fetch, which is
    how the statistics view behaves.
    """

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        banner_seconds: Optional[float] = BANNER_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetcher = fetcher or fetch_street_crimes
        self._banner_seconds = banner_seconds
        self._clock = clock
        self._state = FetchState()
        self._seq = 0

    @property
    def state(self) -> FetchState:
        self._state = expire(self._state, self._clock())
        return self._state

    @property
    def records(self) -> tuple[CrimeRecord, ...]:
        return self.state.records

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    async def submit(self, query: RegionQuery) -> FetchState:
        """Run one fetch; its outcome is applied only if no newer one was issued."""
        seq = self._next_seq()
        query = query.model_copy(update={"seq": seq})
        self._state = start(self._state, seq)
        try:
            records = await self._fetcher(query)
        except CrimeStatError as e:
            if seq != self._state.seq:
                logger.debug(f"Dropping stale failure seq={seq} (latest {self._state.seq})")
            self._state = fail(self._state, seq, e, self._clock(), self._banner_seconds)
        else:
            if seq != self._state.seq:
                logger.debug(f"Dropping stale response seq={seq} (latest {self._state.seq})")
            self._state = succeed(self._state, seq, records)
        return self.state

    def reject(self, error: CrimeStatError) -> FetchState:
        """Enter an error state without touching the network."""
        seq = self._next_seq()
        self._state = fail(start(self._state, seq), seq, error, self._clock(), self._banner_seconds)
        return self.state
