import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Generator, Optional, Union

# Schedule currently being evaluated by the owning loop, if any
schedule_id_var: ContextVar[Optional[str]] = ContextVar("schedule_id", default=None)


class TraceFormatter(logging.Formatter):
    """
    Formatter that tags records with the active schedule id and enforces UTC.

    Next-execution instants are stored in UTC, so log timestamps are too.
    """

    def __init__(self, fmt: str | None = None, datefmt: str | None = None):
        super().__init__(fmt, datefmt)
        self.converter = time.gmtime

    def formatTime(self, record, datefmt=None):
        """Overridden to ensure strict ISO-8601 UTC format."""
        ct = self.converter(record.created)
        if datefmt:
            return time.strftime(datefmt, ct)
        t = time.strftime("%Y-%m-%dT%H:%M:%S", ct)
        return "%s.%03dZ" % (t, record.msecs)

    def format(self, record: logging.LogRecord) -> str:
        sid = schedule_id_var.get()
        record.schedule_str = f"[schedule={sid}] " if sid else ""
        return super().format(record)


def get_logger(name: str) -> logging.Logger:
    """
    Returns a standard logger instance.

    >>> logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def setup_logging(
    level: Union[int, str, None] = None,
    log_file: Optional[Union[str, Path]] = None,
    module_name: str = "flash_scheduling",
) -> logging.Logger:
    """
    Configure the `flash_scheduling` logger namespace.

    Only the package namespace is touched; the host application's root
    logger is left alone.

    Args:
        level: Logging level. Defaults to `SchedulingSettings.LOG_LEVEL`.
        log_file: Optional path for a rotating log file.
        module_name: Logger namespace to configure.
    """
    if level is None:
        from .config import scheduling_settings

        level = scheduling_settings.LOG_LEVEL
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    target_logger = logging.getLogger(module_name)
    target_logger.handlers.clear()
    target_logger.setLevel(level)

    log_format = "%(asctime)s %(levelname)-8s %(schedule_str)s%(name)s: %(message)s"
    formatter = TraceFormatter(log_format)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    target_logger.addHandler(console)

    if log_file:
        file_path = Path(log_file).resolve()
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                file_path,
                maxBytes=10_485_760,  # 10MB
                backupCount=10,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            target_logger.addHandler(file_handler)
        except OSError as e:
            # Read-only filesystems keep the stdout handler only
            sys.stderr.write(f"Failed to setup log file: {e}\n")

    target_logger.propagate = False
    return target_logger


@contextmanager
def scoped_schedule_id(value: str) -> Generator[None, None, None]:
    """
    Tag every log record emitted inside the block with a schedule id.

    >>> with scoped_schedule_id("nightly-report"):
    ...     pass
    """
    token = schedule_id_var.set(value)
    try:
        yield
    finally:
        schedule_id_var.reset(token)
