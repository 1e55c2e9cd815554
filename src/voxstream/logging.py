"""Structured logging para o VoxStream.

Usa structlog com stdlib logging como backend. Dois formatos:
- console: legivel para desenvolvimento (default)
- json: estruturado para producao
"""

from __future__ import annotations

import logging
import os

import structlog

_configured = False

_QUIET_LOGGERS = ("uvicorn.access",)


def configure_logging(
    log_format: str | None = None,
    level: str | None = None,
    *,
    force: bool = False,
) -> None:
    """Configura logging estruturado para o runtime.

    Idempotente: chamadas subsequentes sao ignoradas, exceto com
    ``force=True`` (usado pela CLI para aplicar as opcoes de linha de
    comando depois que loggers de modulo ja configuraram o default).

    Args:
        log_format: "json" ou "console". Default via VOXSTREAM_LOG_FORMAT env ou "console".
        level: Nivel de log (DEBUG, INFO, WARNING, ERROR). Default via
            VOXSTREAM_LOG_LEVEL env ou "INFO".
    """
    global _configured
    if _configured and not force:
        return

    resolved_format = log_format or os.environ.get("VOXSTREAM_LOG_FORMAT", "console")
    resolved_level = level or os.environ.get("VOXSTREAM_LOG_LEVEL", "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    if resolved_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, resolved_level.upper(), logging.INFO))

    # Access log do uvicorn gera uma linha por request de streaming; os
    # eventos de sessao ja cobrem o ciclo de vida.
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Retorna logger com contexto de componente.

    Args:
        component: Nome do componente (ex: "session.streaming", "server.routes").

    Returns:
        BoundLogger com campo component vinculado.
    """
    configure_logging()
    return structlog.get_logger().bind(component=component)  # type: ignore[no-any-return]
