"""Shared async HTTP client pool for provider SDKs.

Purpose:
    Provide a centralized pool of reusable ``httpx.AsyncClient`` instances
    handed to the provider SDK constructors (``AsyncOpenAI``,
    ``AsyncAnthropic``) so that handles built per request reuse connections
    instead of opening a fresh pool each time.

Timeout strategy:
    - The connect timeout comes from :func:`get_timeout_config`. Read timeouts
      are left to the generation deadline, which aborts the whole request via
      the cancellation token; the client itself never cuts a long stream.

Lifecycle & cleanup:
    - Clients are cached by ``purpose``. SDKs carry their own base URL, so
      one pool per purpose is enough.
    - :func:`close_all_clients` closes every pooled client; the service layer
      calls it on shutdown and tests may call it in teardown.
"""

from __future__ import annotations

import threading
from typing import Dict

import httpx

from ..timeouts import get_timeout_config

_CLIENTS: Dict[str, httpx.AsyncClient] = {}
_LOCK = threading.RLock()


def get_async_client(purpose: str = "providers") -> httpx.AsyncClient:
    """Return a pooled ``httpx.AsyncClient`` for ``purpose``.

    Parameters:
        purpose: A short string discriminating separate pools. Keep stable to
            maximize reuse.

    Returns:
        A reusable client. A client closed by a previous owner is replaced.
    """
    client = _CLIENTS.get(purpose)
    if client is not None and not client.is_closed:
        return client

    with _LOCK:
        client = _CLIENTS.get(purpose)
        if client is not None and not client.is_closed:
            return client
        cfg = get_timeout_config()
        timeout = httpx.Timeout(None, connect=cfg.http_connect_seconds)
        client = httpx.AsyncClient(timeout=timeout)
        _CLIENTS[purpose] = client
        return client


async def close_all_clients() -> None:
    """Close and clear all pooled clients."""
    with _LOCK:
        clients = list(_CLIENTS.values())
        _CLIENTS.clear()
    for c in clients:
        if not c.is_closed:
            await c.aclose()


__all__ = ["get_async_client", "close_all_clients"]
