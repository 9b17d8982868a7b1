"""CrimeStat — data.police.uk street-crime fetcher"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from crimestat.config import POLICE_API_URL, TOO_MANY_RESULTS_STATUS, HTTP_TIMEOUT
from crimestat.errors import MalformedResponse, NetworkFailure, PayloadTooLarge
from crimestat.models import CrimeRecord, RegionQuery

logger = logging.getLogger("crimestat.fetchers")

# Shared async HTTP client
client = httpx.AsyncClient(timeout=HTTP_TIMEOUT)


async def fetch_street_crimes(
    query: RegionQuery, http: Optional[httpx.AsyncClient] = None
) -> list[CrimeRecord]:
    """One GET for all street-level crimes inside `query.poly` during `query.date`.

    Raises PayloadTooLarge when the API reports more than 10,000 matches,
    NetworkFailure for transport errors and other non-2xx answers, and
    MalformedResponse when a 2xx body is not a list of crime records.
    """
    http = http or client
    vertices = query.poly.count(":") + 1
    logger.info(f"Fetching crimes for {query.date} ({vertices} vertices, seq={query.seq})")

    try:
        resp = await http.get(POLICE_API_URL, params=query.params())
    except httpx.HTTPError as e:
        logger.warning(f"Police API request failed: {e}")
        raise NetworkFailure(str(e)) from e

    if resp.status_code == TOO_MANY_RESULTS_STATUS:
        logger.info(f"Police API overflow for {query.date} (seq={query.seq})")
        raise PayloadTooLarge()
    if not resp.is_success:
        logger.warning(f"Police API returned {resp.status_code}")
        raise NetworkFailure(f"HTTP {resp.status_code}")

    try:
        data = resp.json()
    except ValueError as e:
        logger.warning(f"Police API returned a non-JSON body: {e}")
        raise MalformedResponse(str(e)) from e
    if not isinstance(data, list):
        raise MalformedResponse(f"expected a JSON list, got {type(data).__name__}")

    try:
        records = [CrimeRecord.model_validate(item) for item in data]
    except ValidationError as e:
        logger.warning(f"Police API records did not validate: {e.error_count()} errors")
        raise MalformedResponse(str(e)) from e

    logger.info(f"Police API returned {len(records)} crimes for {query.date}")
    return records
