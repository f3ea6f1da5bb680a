"""Hash utilities for response cache keys."""

import hashlib
import json
from typing import Any, Mapping, Optional


def request_fingerprint(
    url: str,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> str:
    """Calculate a stable SHA-256 fingerprint of a GET request.

    Params and headers are serialized as sorted JSON so that dict ordering
    never produces two keys for the same request.

    Args:
        url: Request URL (without query params)
        params: Query parameters
        headers: Request headers that change the response

    Returns:
        SHA-256 hex digest
    """
    payload = json.dumps(
        {"url": url, "params": dict(params or {}), "headers": dict(headers or {})},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
