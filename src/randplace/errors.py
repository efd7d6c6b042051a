"""Errors a request can end in, each with its HTTP status."""

from __future__ import annotations

from typing import Any


class RandplaceError(Exception):
    """Base for all errors surfaced to callers."""

    code: str = "internal_error"
    status_code: int = 500
    retryable: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.code, "message": str(self), "retryable": self.retryable}


class ConfigurationError(RandplaceError):
    """Local settings are invalid (raised at startup, not per request)."""

    code = "configuration_invalid"


class ConfigFetchError(RandplaceError):
    """The weighting document could not be retrieved."""

    code = "config_fetch_failed"
    status_code = 502

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class ConfigParseError(RandplaceError):
    """The weighting document was retrieved but is malformed or invalid."""

    code = "config_invalid"
    status_code = 424


class StoreQueryError(RandplaceError):
    """A backing-store query failed (candidate load or detail resolve)."""

    code = "store_query_failed"


class CacheStoreError(RandplaceError):
    """The cache backend failed, or held bytes that do not decode to a table."""

    code = "cache_store_failed"
    status_code = 507


class EmptyDistributionError(RandplaceError):
    """No entry with a strictly positive weight to sample from."""

    code = "empty_distribution"
    status_code = 404


class NotFoundError(RandplaceError):
    """A sampled id no longer exists in the backing store.

    Retryable: the cached table is stale and the next request rebuilds it.
    """

    code = "location_not_found"
    status_code = 503
    retryable = True

    def __init__(self, message: str, location_id: int | None = None):
        super().__init__(message)
        self.location_id = location_id
