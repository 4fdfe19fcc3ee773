"""
Logging setup shared by the GEET packages.

Records go to stderr through a single root handler named ``geet``. The level
comes from ``GEET_LOG_LEVEL`` and ``GEET_LOG_FMT=json`` switches to one JSON
object per line, which suits Earth Engine batch jobs run from schedulers.
"""

import logging
import os
import json
from datetime import datetime, timezone

HANDLER_NAME = "geet"
DEFAULT_FORMAT = "%(asctime)s geet [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# chatty client libraries pulled in by earthengine-api
QUIET_LOGGERS = ("googleapiclient.discovery_cache", "google.auth", "urllib3")


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs log records in JSON format with keys:
    timestamp (in ISO8601 with UTC timezone), level, name, message and, for
    records logged with ``exc_info``, exception.
    """

    def format(self, record):
        record_dict = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            record_dict["exception"] = self.formatException(record.exc_info)
        return json.dumps(record_dict)


class Logger:
    """
    Central logging setup for all modules.
    """

    _configured = False

    @staticmethod
    def setup(
        level: int | None = None,
        fmt: str | None = None,
        datefmt: str = DEFAULT_DATEFMT,
    ) -> None:
        """
        Install the ``geet`` handler on the root logger.

        If level is not provided, reads from the GEET_LOG_LEVEL environment
        variable. *fmt* is either ``"json"`` or a ``logging`` format string and
        falls back to GEET_LOG_FMT, then to :data:`DEFAULT_FORMAT`. Handlers
        installed by other libraries are left alone.
        """
        if Logger._configured:
            return
        if level is None:
            env_level = os.getenv("GEET_LOG_LEVEL", "INFO").upper()
            effective_level = getattr(logging, env_level, logging.INFO)
        else:
            effective_level = level

        fmt_mode = fmt if fmt is not None else os.getenv("GEET_LOG_FMT", "")
        if fmt_mode.lower() == "json":
            formatter: logging.Formatter = JSONFormatter(datefmt=datefmt)
        else:
            formatter = logging.Formatter(fmt_mode or DEFAULT_FORMAT, datefmt)

        root = logging.getLogger()
        for old in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
            root.removeHandler(old)
        handler = logging.StreamHandler()
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(formatter)
        root.addHandler(handler)
        root.setLevel(effective_level)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(max(effective_level, logging.WARNING))
        Logger._configured = True

    @staticmethod
    def get_logger(
        name: str = "geet", *, level: int | None = None, fmt: str | None = None
    ) -> logging.Logger:
        """
        Get a logger with the specified name.

        Parameters:
            name: The name of the logger.
            level: Optional logging level to set up.
            fmt: Optional format string for log messages.

        Returns:
            logging.Logger: The configured logger instance.
        """
        Logger.setup(level=level, fmt=fmt)
        return logging.getLogger(name)
