"""Structured logging for the fulfillment service.

All stdlib records (ours, httpx, litellm, uvicorn) are rendered by one
structlog ``ProcessorFormatter``: JSON lines when stderr is not a TTY,
colored console output otherwise.  Every line carries the service name
plus whatever request context is bound (run id, document id).
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from lmn_fulfillment.core.config import ObservabilityConfig

# Third-party loggers that flood INFO with per-request lines
_NOISY_LOGGERS = ("LiteLLM", "httpx", "httpcore", "stripe")


def _service_stamper(service_name: str) -> Any:
    def add_service(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service


def setup_logging(config: ObservabilityConfig) -> None:
    """Route every stdlib logger through structlog at ``config.log_level``."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _service_stamper(config.service_name),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    console = sys.stderr.isatty()
    final: list[Any] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if console:
        final.append(structlog.dev.ConsoleRenderer())
    else:
        final += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(foreign_pre_chain=pre_chain, processors=final)
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_request_context(**values: str) -> None:
    """Attach *values* (run id, document id) to every log line in this context."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
