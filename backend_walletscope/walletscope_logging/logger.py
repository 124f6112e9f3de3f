"""
structlog setup for retrieval and report events.

Every event carries `event_type` (snake_case name), `timestamp`, `level` and
the emitting `logger`; retrieval events add `wallet_id`, `page_index`,
`signature_count`, `attempt` / `delay_ms` and similar keyword fields.

Two project-specific processors run before rendering:
- RPC endpoints are logged with their Helius `api-key` masked;
- `wallet_id` fields are shortened to `head...tail` unless LOG_FULL_WALLET_IDS=1.

No backend_walletscope imports here; every other module imports this one.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# json (default) or console
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()
LOG_FULL_WALLET_IDS = os.getenv("LOG_FULL_WALLET_IDS", "").strip().lower() in ("1", "true", "yes")

_API_KEY_RE = re.compile(r"(api-key=)[^&\s]+")
_WALLET_ID_KEEP = 4


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog 'event' becomes event_type; message mirrors it for log shippers."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    event_dict.setdefault("message", str(event_dict.get("event_type", "")))
    return event_dict


def _mask_api_keys(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask `api-key=...` in any string field (RPC URLs, httpx error messages)."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "api-key=" in value:
            event_dict[key] = _API_KEY_RE.sub(r"\1***", value)
    return event_dict


def _shorten_wallet_id(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    wallet_id = event_dict.get("wallet_id")
    if LOG_FULL_WALLET_IDS or not isinstance(wallet_id, str):
        return event_dict
    if len(wallet_id) > 2 * _WALLET_ID_KEEP + 3:
        event_dict["wallet_id"] = f"{wallet_id[:_WALLET_ID_KEEP]}...{wallet_id[-_WALLET_ID_KEEP:]}"
    return event_dict


def build_processors(log_format: str = LOG_FORMAT) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _event_type,
        _mask_api_keys,
        _shorten_wallet_id,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_structlog() -> None:
    """Configure structlog once at import; LOG_LEVEL and LOG_FORMAT are read from env."""
    structlog.configure(
        processors=build_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Structured logger for a module:

        logger = get_logger(__name__)
        logger.info("pagination_page_fetched", wallet_id=addr, page_index=3, signature_count=20)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(wallet_id: str, name: str = "backend_walletscope") -> structlog.BoundLogger:
    """Logger with wallet_id bound to every event of one report invocation."""
    return get_logger(name).bind(wallet_id=wallet_id)
