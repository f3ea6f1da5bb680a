"""Custom exceptions for the catalog seeding pipeline

This module defines the exception hierarchy for the seeder:
- Base exception for all seeder errors
- Fetch errors for every failure kind of an external HTTP call
- Boundary errors for payloads that do not match the expected schema
- Persistence and configuration errors

All exceptions inherit from SeederError to allow catching all pipeline-related
errors in a single except block when needed.
"""

from typing import Any, List, Optional


class SeederError(Exception):
    """Base exception for all seeder errors

    Use this to catch any expected failure in the seeding pipeline:
    ```python
    try:
        record = await detail_fetcher.fetch(appid)
    except SeederError as e:
        logger.warning("detail_skipped", appid=appid, error=str(e))
    ```
    """

    pass


class ConfigurationError(SeederError):
    """Required configuration is missing or invalid

    Raised when:
    - Store credentials (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY) are absent
    - Settings fail validation

    Fatal at startup; the CLI exits with code 1.
    """

    pass


# Fetch errors


class FetchError(SeederError):
    """An external HTTP call failed after all retry attempts

    Subclasses identify the kind of the last failure. Every subclass is
    retryable and shares the same backoff ladder inside ResilientFetcher.
    """

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class HTTPStatusError(FetchError):
    """Server answered with a non-2xx status

    Raised when:
    - API returns 4xx (other than 429) or 5xx
    """

    def __init__(self, status: int, url: Optional[str] = None) -> None:
        super().__init__(f"HTTP {status}", url=url)
        self.status = status


class RateLimitError(HTTPStatusError):
    """Rate limit exceeded (HTTP 429)"""

    def __init__(self, url: Optional[str] = None) -> None:
        super().__init__(429, url=url)


class FetchTimeoutError(FetchError):
    """Request did not complete within the per-attempt timeout

    Surfaced as its own kind so callers can tell a slow API apart from a
    failing one.
    """

    pass


class TransportError(FetchError):
    """Connection-level failure (DNS, reset, refused, TLS)"""

    pass


class ResponseDecodeError(FetchError):
    """2xx response whose body is not valid JSON"""

    pass


# Boundary and pipeline errors


class SchemaValidationError(SeederError):
    """External payload does not match the expected schema

    Carries the source name and the pydantic error list so the log entry
    shows which fields were wrong.
    """

    def __init__(self, source: str, errors: Optional[List[Any]] = None) -> None:
        self.source = source
        self.errors = errors or []
        super().__init__(
            f"Invalid payload from {source}: {len(self.errors)} validation error(s)"
        )


class DetailNotFoundError(SeederError):
    """Detail endpoint returned the absent-identifier sentinel"""

    def __init__(self, appid: int) -> None:
        super().__init__(f"No details returned for appid {appid}")
        self.appid = appid


class PersistenceError(SeederError):
    """Store-level write or query failed"""

    pass
