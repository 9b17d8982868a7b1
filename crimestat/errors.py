"""CrimeStat — Error taxonomy for the crime fetch pipeline"""

from crimestat.config import MSG_FETCH_FAILED, MSG_NO_AREA, MSG_TOO_MANY


class CrimeStatError(Exception):
    """Base class; `kind` is the banner type shown to the user."""

    kind = "error"
    message = MSG_FETCH_FAILED


class NetworkFailure(CrimeStatError):
    """Transport error or a non-2xx answer other than the overflow status."""


class MalformedResponse(CrimeStatError):
    """2xx answer whose body is not a JSON list of crime records."""


class PayloadTooLarge(CrimeStatError):
    kind = "too_many_results"
    message = MSG_TOO_MANY


class NoAreaSelected(CrimeStatError):
    kind = "no_area"
    message = MSG_NO_AREA
