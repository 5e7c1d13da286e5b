"""HTTP helpers (pooled async clients)."""

from .client import close_all_clients, get_async_client

__all__ = ["get_async_client", "close_all_clients"]
