from __future__ import annotations

import os
import uvicorn


def _parse_port(value: str | None, default: int) -> int:
    """Best-effort parse of a port from string, falling back to a sane default."""
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def main() -> None:
    """Start the development server for the orchestrator FastAPI app.

    - SERVICE_HOST: interface to bind (default "127.0.0.1")
    - SERVICE_PORT: port to bind (default 8091)
    - SERVICE_RELOAD: "true" to enable auto-reload (default off; the
      in-memory stores do not survive a reload)
    """
    host = os.getenv("SERVICE_HOST", "127.0.0.1")
    port = _parse_port(os.getenv("SERVICE_PORT"), 8091)
    reload_enabled = (os.getenv("SERVICE_RELOAD") or "").lower() == "true"

    uvicorn.run(
        "chat_orchestrator.service.app:app",
        host=host,
        port=port,
        reload=reload_enabled,
    )


if __name__ == "__main__":
    main()
