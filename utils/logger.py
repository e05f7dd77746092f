# utils/logger.py
"""
Structured logging configuration.

Uses structlog on top of the standard library handlers so uvicorn's own
records and ours share one stream.
"""
import logging
import sys

import structlog

from config import Settings


def setup_logging(settings: Settings) -> None:
     """
     Configure structlog and the root logger.

     LOG_FORMAT=json renders one JSON object per line; LOG_FORMAT=console
     renders the human-friendly key=value form for local runs.
     """
     if settings.log_format == "console":
          renderer = structlog.dev.ConsoleRenderer()
     else:
          renderer = structlog.processors.JSONRenderer()

     structlog.configure(
          processors=[
               structlog.contextvars.merge_contextvars,
               structlog.stdlib.filter_by_level,
               structlog.stdlib.add_logger_name,
               structlog.stdlib.add_log_level,
               structlog.stdlib.PositionalArgumentsFormatter(),
               structlog.processors.TimeStamper(fmt="iso"),
               structlog.processors.StackInfoRenderer(),
               structlog.processors.format_exc_info,
               structlog.processors.UnicodeDecoder(),
               renderer,
          ],
          wrapper_class=structlog.stdlib.BoundLogger,
          context_class=dict,
          logger_factory=structlog.stdlib.LoggerFactory(),
          cache_logger_on_first_use=True,
     )

     root_logger = logging.getLogger()
     root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

     for handler in root_logger.handlers[:]:
          root_logger.removeHandler(handler)

     handler = logging.StreamHandler(sys.stdout)
     handler.setFormatter(logging.Formatter("%(message)s"))
     root_logger.addHandler(handler)

     logging.getLogger("urllib3").setLevel(logging.WARNING)

     structlog.get_logger(__name__).info(
          "logging_configured",
          log_level=settings.log_level,
          gateway_env=settings.env,
     )
