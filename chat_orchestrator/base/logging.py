"""Structured logging utilities for the orchestrator.

Rationale:
- Central place to configure consistent JSON (or plain) logging.
- Avoid ad-hoc logger setup across orchestration, providers and service code.

All loggers are children of the shared ``chat_orchestrator`` logger, which owns
a single stderr handler. ``log_event`` emits one JSON line per event and
``normalized_log_event`` guarantees a canonical key set (``structured``,
``phase``, ``attempt``, ``error_code``, ``emitted``, ``tokens``) so that
generation lifecycles can be aggregated regardless of provider.
"""
from __future__ import annotations

import contextlib
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Mapping, Optional

from .log_support import JsonFormatter, LogContext

ROOT_LOGGER_NAME = "chat_orchestrator"
LEVEL_ENV_VAR = "CHAT_ORCHESTRATOR_LOG_LEVEL"

_BASE_LOGGER_ATTR = "_orchestrator_logger_initialized"
_CONSOLE_HANDLER_ATTR = "_orchestrator_console_handler"
_FILE_HANDLER_ATTR = "_orchestrator_file_handler"
_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _make_formatter(json_mode: bool) -> logging.Formatter:
    return JsonFormatter() if json_mode else logging.Formatter(_PLAIN_FORMAT)


def _parse_level(value: str | None, default: int = logging.INFO) -> int:
    """Parse a logging level name into its integer constant.

    Accepts common names (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    case-insensitively and falls back to ``default`` on unknown values.
    """
    if not value:
        return default
    mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return mapping.get(value.strip().upper(), default)


def _ensure_base_logger(json_mode: bool, level: int) -> logging.Logger:
    """Initialize and return the shared ``chat_orchestrator`` logger."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    desired_level = _parse_level(os.getenv(LEVEL_ENV_VAR), default=level)
    if getattr(logger, _BASE_LOGGER_ATTR, False):
        if logger.level != desired_level:
            logger.setLevel(desired_level)
        for existing in list(logger.handlers):
            if not getattr(existing, _CONSOLE_HANDLER_ATTR, False):
                continue
            stream_obj = getattr(existing, "stream", None)
            if stream_obj is None or getattr(stream_obj, "closed", False):
                # pytest capture swaps stderr between tests; rebind to the live stream.
                logger.removeHandler(existing)
                with contextlib.suppress(Exception):
                    existing.close()
                logger.addHandler(_console_handler(json_mode, desired_level))
                continue
            existing.setLevel(desired_level)
        return logger

    logger.setLevel(desired_level)
    logger.handlers[:] = [_console_handler(json_mode, desired_level)]
    logger.propagate = False
    setattr(logger, _BASE_LOGGER_ATTR, True)
    return logger


def _console_handler(json_mode: bool, level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_make_formatter(json_mode))
    setattr(handler, _CONSOLE_HANDLER_ATTR, True)
    return handler


def get_logger(name: str = ROOT_LOGGER_NAME, json_mode: bool = True, level: int = logging.INFO) -> logging.Logger:
    """Return a logger that writes through the shared orchestrator handler.

    Child names are nested under ``chat_orchestrator`` so that a single level
    and handler configuration governs every module.
    """
    base_logger = _ensure_base_logger(json_mode=json_mode, level=level)
    if name == ROOT_LOGGER_NAME:
        return base_logger
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    return logger


def configure_logger(
    *,
    level: int | str | None = None,
    file_path: Optional[str] = None,
    json_mode: bool = True,
) -> logging.Logger:
    """Reconfigure the shared orchestrator logger at runtime.

    Parameters
    ----------
    level: int | str | None
        Desired logging level. Accepts numeric levels or names (e.g., "DEBUG").
        When ``None``, the current level is preserved.
    file_path: Optional[str]
        When provided, a rotating file handler writing to ``file_path`` is
        attached (or reused). When ``None``, any previously attached managed
        file handler is removed.
    json_mode: bool
        Whether the managed file handler uses the JSON formatter.

    Returns
    -------
    logging.Logger
        The configured shared logger.
    """
    logger = get_logger(ROOT_LOGGER_NAME, json_mode=json_mode)

    if level is not None:
        resolved = _parse_level(level, default=logger.level) if isinstance(level, str) else level
        logger.setLevel(resolved)
        for h in logger.handlers:
            h.setLevel(resolved)

    managed = [h for h in logger.handlers if getattr(h, _FILE_HANDLER_ATTR, False)]
    if file_path is None:
        for h in managed:
            logger.removeHandler(h)
            with contextlib.suppress(Exception):
                h.close()
        return logger

    abs_path = os.path.abspath(os.path.expanduser(file_path))
    os.makedirs(os.path.dirname(abs_path) or ".", exist_ok=True)

    existing: Optional[logging.FileHandler] = None
    for h in managed:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == abs_path:
            existing = h
        else:
            logger.removeHandler(h)
            with contextlib.suppress(Exception):
                h.close()

    if existing is None:
        # 10MB x 5 backups
        existing = RotatingFileHandler(abs_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        setattr(existing, _FILE_HANDLER_ATTR, True)
        logger.addHandler(existing)
    existing.setFormatter(_make_formatter(json_mode))
    existing.setLevel(logger.level)
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    level: int = logging.INFO,
    keep_none: bool = False,
    **fields: Any,
) -> None:
    """Emit a structured log event as a single JSON line.

    Parameters
    ----------
    logger: logging.Logger
        Logger instance (JSON formatted by ``get_logger``).
    event: str
        Event name (e.g. ``generation.start``).
    ctx: LogContext | None
        Generation context; merged shallowly.
    level: int
        Logging level for the record.
    keep_none: bool
        When ``True``, keys whose values are ``None`` are preserved.
    **fields: Any
        Arbitrary serializable key/value pairs.
    """
    payload: Dict[str, Any] = {"event": event}
    if ctx:
        payload |= ctx.to_dict()
    if keep_none:
        payload.update(fields)
    else:
        payload.update({k: v for k, v in fields.items() if v is not None})
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


# ---------------------- Normalization Layer ---------------------------------
REQUIRED_NORMALIZED_KEYS = (
    "structured",
    "phase",
    "attempt",
    "error_code",
    "emitted",
    "tokens",
)


def _coerce_tokens(tokens: Any) -> Any:
    """Coerce token usage info into a JSON-friendly mapping (or ``None``)."""
    if tokens is None:
        return None
    if isinstance(tokens, Mapping):
        return dict(tokens.items())
    if isinstance(tokens, (list, tuple)):
        try:
            return dict(tokens)
        except (TypeError, ValueError):
            return {"value": repr(tokens)}
    return {"value": repr(tokens)}


def normalized_log_event(  # noqa: PLR0913
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    phase: str,
    attempt: int | None = None,
    error_code: str | None = None,
    emitted: bool | None = None,
    tokens: Any = None,
    level: int = logging.INFO,
    **extra_fields: Any,
) -> None:
    """Emit a log event carrying the normalized key set.

    ``error_code`` is omitted when ``None``; the remaining required keys are
    always present (possibly ``null``). Extra fields never clobber the
    normalized values.
    """
    base_fields: Dict[str, Any] = {
        "structured": True,
        "phase": phase,
        "attempt": attempt,
        "error_code": error_code,
        "emitted": emitted,
        "tokens": _coerce_tokens(tokens),
    }
    if error_code is None:
        base_fields.pop("error_code", None)
    for k, v in extra_fields.items():
        if v is None:
            continue
        if k in base_fields and base_fields[k] is not None:
            continue
        base_fields[k] = v
    log_event(logger, event, ctx, level=level, keep_none=True, **base_fields)


__all__ = [
    "LogContext",
    "get_logger",
    "configure_logger",
    "log_event",
    "normalized_log_event",
    "REQUIRED_NORMALIZED_KEYS",
]
