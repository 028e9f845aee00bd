"""HTTP helpers for talking to the Catalog API."""
from __future__ import annotations

from typing import Iterable

import httpx

CALLER_UID_HEADER = "X-Caller-Uid"
CALLER_SCOPES_HEADER = "X-Caller-Scopes"


def create_client(base_url: str, *, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """Instantiate an HTTPX client bound to the catalog base URL."""

    return httpx.Client(base_url=base_url, timeout=timeout, transport=transport)


def caller_headers(uid: str, scopes: Iterable[str] | None = None) -> dict[str, str]:
    """Build the identity headers the API expects from its authentication proxy."""

    headers = {CALLER_UID_HEADER: uid}
    joined = ",".join(scope.strip() for scope in scopes or () if scope.strip())
    if joined:
        headers[CALLER_SCOPES_HEADER] = joined
    return headers
