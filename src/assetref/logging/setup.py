"""
Configuración del sistema de logging estructurado.

Dos pipelines independientes:
1. Archivo (JSON) - Si config.file está configurado. Captura todo (DEBUG+).
2. Console (stderr) - Nivel controlado por -v. Sin -v solo WARNING+.

Con -v: añade INFO. Con -vv: añade DEBUG. Con --quiet: silencia la consola.
"""

import logging
import sys
from pathlib import Path

import structlog

from ..config.schema import LoggingConfig

_LEVEL_NAMES: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(
    config: LoggingConfig,
    json_output: bool = False,
    quiet: bool = False,
) -> None:
    """Configura el sistema de logging.

    Args:
        config: Configuración de logging (level, file, verbose)
        json_output: Si True, desactiva el console handler (--json)
        quiet: Si True, desactiva el console handler (--quiet)
    """
    # Limpiar configuración anterior
    logging.root.handlers.clear()
    structlog.reset_defaults()

    # Root logger captura todo - los handlers filtran por nivel
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[],
    )

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    # ── Pipeline 1: Archivo JSON ──────────────────────────────────────────
    file_handler = None
    if config.file:
        file_path = Path(config.file)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(file_path), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=shared_processors,
            )
        )
        logging.root.addHandler(file_handler)

    # ── Pipeline 2: Console ───────────────────────────────────────────────
    if not quiet and not json_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(_console_level(config))

        if file_handler:
            # Dual pipeline: usar ProcessorFormatter para consistencia
            console_handler.setFormatter(
                structlog.stdlib.ProcessorFormatter(
                    processor=structlog.dev.ConsoleRenderer(
                        colors=sys.stderr.isatty(),
                    ),
                    foreign_pre_chain=shared_processors,
                )
            )

        logging.root.addHandler(console_handler)
    elif not file_handler:
        # Sin handlers, logging usaría lastResort y escribiría en stderr
        logging.root.addHandler(logging.NullHandler())

    # ── Configurar structlog ──────────────────────────────────────────────
    if file_handler:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _console_level(config: LoggingConfig) -> int:
    """Nivel del console handler: el más detallado entre level y -v.

    Sin -v  → según config.level (WARNING por defecto)
    -v      → INFO
    -vv+    → DEBUG
    """
    configured = _LEVEL_NAMES.get(config.level, logging.WARNING)
    return min(configured, _verbose_to_level(config.verbose))


def _verbose_to_level(verbose: int) -> int:
    levels = {
        0: logging.WARNING,
        1: logging.INFO,
        2: logging.DEBUG,
    }
    return levels.get(verbose, logging.DEBUG)


def get_logger(name: str) -> structlog.BoundLogger:
    """Obtiene un logger estructurado.

    Args:
        name: Nombre del logger (usualmente __name__)

    Returns:
        Logger estructurado de structlog
    """
    return structlog.get_logger(name)
