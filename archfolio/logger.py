import logging
import re
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor


def drop_color_message_key(_, __, event_dict: EventDict) -> EventDict:
    """
    Some servers log the message a second time in the extra `color_message`, but we
    don't need it. This processor drops the key from the event dict if it exists.
    """
    event_dict.pop("color_message", None)
    return event_dict


def setup_logging(json_logs: bool = False, log_level: str = "INFO", force: bool = False):
    """Configure structlog for the archfolio package"""

    if not force:
        # Don't reconfigure when the host application already set structlog up
        root_logger = logging.getLogger()
        for handler in root_logger.handlers:
            if (isinstance(handler, logging.StreamHandler) and
                    isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter)):
                return

    timestamper = structlog.processors.TimeStamper(fmt="iso")

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.stdlib.ExtraAdder(),
        drop_color_message_key,
        timestamper,
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        # Format the exception only for JSON logs, as we want to pretty-print them when
        # using the ConsoleRenderer
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    log_renderer: structlog.types.Processor
    if json_logs:
        log_renderer = structlog.processors.JSONRenderer()
    else:
        log_renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        # These run ONLY on `logging` entries that do NOT originate within
        # structlog.
        foreign_pre_chain=shared_processors,
        # These run on ALL entries after the pre_chain is done.
        processors=[
            # Remove _record & _from_structlog.
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            log_renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())


class ArchfolioStructLogger:
    """
    Structured logger for the archfolio package.

    Values passed to `bind` are kept on this logger instance only, so two
    components binding `component=...` never overwrite each other.
    """

    def __init__(self, log_name: str = "archfolio", logger: Optional[Any] = None):
        self.log_name = log_name
        self.logger = logger if logger is not None else structlog.stdlib.get_logger(log_name)

    @staticmethod
    def _to_snake_case(name):
        """Convert CamelCase to snake_case"""
        return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()

    def bind(self, *args, **new_values: Any) -> "ArchfolioStructLogger":
        """
        Return a child logger with extra context.

        Args:
            *args: Objects that have an 'id' attribute (keyed by their snake_case class name)
            **new_values: Key-value pairs to bind to the context
        """
        for arg in args:
            if hasattr(arg, 'id'):
                new_values[self._to_snake_case(type(arg).__name__)] = arg.id
            else:
                self.logger.error(
                    "Unsupported argument when trying to log.",
                    invalid_argument=type(arg).__name__
                )
        return ArchfolioStructLogger(self.log_name, self.logger.bind(**new_values))

    @staticmethod
    def bind_contextvars(**new_values: Any):
        """Bind values to the process-wide logging context."""
        structlog.contextvars.bind_contextvars(**new_values)

    @staticmethod
    def unbind(*keys: str):
        """Unbind keys from the process-wide logging context"""
        structlog.contextvars.unbind_contextvars(*keys)

    def debug(self, event: str | None = None, *args: Any, **kw: Any):
        self.logger.debug(event, *args, **kw)

    def info(self, event: str | None = None, *args: Any, **kw: Any):
        self.logger.info(event, *args, **kw)

    def warning(self, event: str | None = None, *args: Any, **kw: Any):
        self.logger.warning(event, *args, **kw)

    warn = warning

    def error(self, event: str | None = None, *args: Any, **kw: Any):
        self.logger.error(event, *args, **kw)

    def critical(self, event: str | None = None, *args: Any, **kw: Any):
        self.logger.critical(event, *args, **kw)

    def exception(self, event: str | None = None, *args: Any, **kw: Any):
        self.logger.exception(event, *args, **kw)


def get_archfolio_logger(log_name: str = "archfolio") -> ArchfolioStructLogger:
    """Return a structured logger; configuration is left to the host application."""
    return ArchfolioStructLogger(log_name)


def init_logger(debug: bool = False, json_logs: bool = False) -> ArchfolioStructLogger:
    """
    Initialize the structured logger for the archfolio package.

    Args:
        debug: Log at DEBUG level instead of INFO
        json_logs: Render JSON lines instead of the console renderer

    Returns:
        ArchfolioStructLogger: Configured structured logger instance
    """
    log_level = "DEBUG" if debug else "INFO"
    setup_logging(json_logs=json_logs, log_level=log_level)
    return ArchfolioStructLogger("archfolio")
