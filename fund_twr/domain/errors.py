"""
Domain errors.

Missing data for a single fund is not an error: it is reported
as None fields on the snapshot.
"""


class FundDataError(Exception):
    """Base class for fund data errors"""


class InvalidRequest(FundDataError):
    """Malformed or missing fund ids, periods or allocations"""


class NotFound(FundDataError):
    """Fund cannot be resolved to any category group"""


class UpstreamFailure(FundDataError):
    """A store query or upstream fetch failed"""
