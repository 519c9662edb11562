import logging
import os
import sys

from pythonjsonlogger.json import JsonFormatter

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")

_handler: logging.Handler | None = None


def json_formatter(service: str) -> JsonFormatter:
    """JSON formatter stamping every record with the service name."""
    return JsonFormatter(LOG_FORMAT, static_fields={"service": service})


def _stdout_handler() -> logging.Handler:
    global _handler
    if _handler is None:
        _handler = logging.StreamHandler(sys.stdout)
        _handler.setFormatter(
            json_formatter(os.getenv("DD_SERVICE", "caption-relay"))
        )
    return _handler


def setup_logging() -> logging.Logger:
    """
    Routes the root and Uvicorn loggers to one JSON stdout handler.

    Records carry trace_id and span_id for ddtrace log correlation and the
    DD_SERVICE name. The level comes from LOG_LEVEL (default INFO). Every
    module calls this at import; repeated calls reuse the same handler.

    Returns:
        logging.Logger: The root logger.
    """
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    handler = _stdout_handler()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for logger_name in UVICORN_LOGGERS:
        u_logger = logging.getLogger(logger_name)
        u_logger.setLevel(level)
        u_logger.handlers = [handler]
        u_logger.propagate = False

    return root_logger
