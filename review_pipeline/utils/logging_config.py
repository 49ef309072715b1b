import contextvars
import logging
import sys
import os
from datetime import datetime

_run_id: contextvars.ContextVar[str] = contextvars.ContextVar("review_run_id", default="-")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d [%(run_id)s] - %(message)s"


def bind_run_id(run_id: str) -> contextvars.Token:
    """Tag every log record emitted from this context with the run's correlation id."""
    return _run_id.set(run_id)


def reset_run_id(token: contextvars.Token) -> None:
    _run_id.reset(token)


class RunIdFilter(logging.Filter):
    """Injects ``run_id`` into records so the format string never fails."""

    def filter(self, record):
        if not hasattr(record, "run_id"):
            record.run_id = _run_id.get()
        return True


class ColoredFormatter(logging.Formatter):
    """Custom formatter to add colors to console output."""

    cyan = "\x1b[36m"
    green = "\x1b[32m"
    yellow = "\x1b[33m"
    red = "\x1b[31m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"

    FORMATS = {
        logging.DEBUG: cyan + LOG_FORMAT + reset,
        logging.INFO: green + LOG_FORMAT + reset,
        logging.WARNING: yellow + LOG_FORMAT + reset,
        logging.ERROR: red + LOG_FORMAT + reset,
        logging.CRITICAL: bold_red + LOG_FORMAT + reset
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno, LOG_FORMAT)
        formatter = logging.Formatter(log_fmt, datefmt="%Y-%m-%d %H:%M:%S")
        return formatter.format(record)


def setup_logging(level=logging.INFO, log_dir: str = "logs"):
    """Setup centralized logging configuration (console + daily file)."""
    root_logger = logging.getLogger()

    # Clear existing handlers to prevent duplicate logs
    if root_logger.handlers:
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

    root_logger.setLevel(level)
    run_filter = RunIdFilter()

    # 1. Console handler (stderr keeps stdout free for piped output)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter())
    console_handler.addFilter(run_filter)
    root_logger.addHandler(console_handler)

    # 2. File handler for persistence
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(
            os.path.join(log_dir, f"review_{datetime.now().strftime('%Y%m%d')}.log"),
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        file_handler.addFilter(run_filter)
        root_logger.addHandler(file_handler)

    for logger_name in ["review_pipeline", "uvicorn", "uvicorn.error", "uvicorn.access", "main"]:
        l = logging.getLogger(logger_name)
        l.setLevel(level)
        l.propagate = True

    root_logger.info("Logging initialized (console%s).", " + file" if log_dir else "")
