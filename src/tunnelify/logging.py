"""structlog setup for the ``tunnelify`` logger namespace.

Modules log through :func:`get_logger`. Nothing is configured on import;
applications either route the ``tunnelify`` stdlib logger themselves or call
:func:`setup_logging`, which only touches that namespace.
"""

import logging
import sys

import structlog
from structlog.typing import Processor

LOGGER_NAMESPACE = "tunnelify"

# set on handlers installed by setup_logging so a second call replaces them
_HANDLER_MARKER = "_tunnelify_handler"


def _shared_processors() -> list[Processor]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _remove_installed_handlers(package_logger: logging.Logger) -> None:
    for handler in list(package_logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            package_logger.removeHandler(handler)
            handler.close()


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
) -> logging.Logger:
    """Send tunnelify's logs (state changes, ssh commands) to stderr.

    Handlers are attached to the ``tunnelify`` logger only and it stops
    propagating, so the root logger and the host application's handlers are
    left as they were. Calling this again replaces the handlers it installed.

    Args:
        level: Logging level for the namespace (DEBUG shows every ssh command)
        json_format: If True, render events as JSON lines
        log_file: Optional file that receives the same events

    Returns:
        The configured ``tunnelify`` stdlib logger
    """
    log_level = getattr(logging, level.upper())

    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    _remove_installed_handlers(package_logger)
    package_logger.setLevel(log_level)
    package_logger.propagate = False

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        setattr(handler, _HANDLER_MARKER, True)
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)

    processors = _shared_processors()
    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    return package_logger


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger, normally with ``__name__`` inside the ``tunnelify`` package.

    Args:
        name: Logger name

    Returns:
        structlog logger backed by the stdlib logger of the same name
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]
