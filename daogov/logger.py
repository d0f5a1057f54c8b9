"""
daogov Logging System
=====================

A unified, thread-safe logging utility for daogov. This module integrates with
the standard Python `logging` library and the `rich` library to provide structured,
safe, and visually distinct logging outputs.

Usage:
    >>> from daogov.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Proposal queued")
"""

import logging
import logging.handlers
import os
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_OUTPUT,
)


# Default log file location relative to the working directory
LOG_FILE_PATH = Path("logs") / "daogov.log"


class LogManager:
    """
    Manages logging configuration via the Singleton pattern.

    This class ensures that the logging subsystem is initialized exactly once.
    It handles the setup of 'Rich' console and rotating file handlers for
    persistent storage.

    Attributes:
        _instance (LogManager): The singleton instance.
        _lock (threading.Lock): Thread lock for atomic initialization.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()


    def __new__(cls) -> "LogManager":
        """Creates or returns the existing singleton instance."""
        # Double-checked locking pattern for thread-safe singleton initialization
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance


    def __init__(self) -> None:
        if self._initialized:
            return
        self._configured = False
        self._initialized = True


    @staticmethod
    def validate_log_format(log_format: str) -> str:
        """
        Validates the syntax of a logging format string.

        Formats a dummy record to catch runtime errors.

        Args:
            log_format (str): The logging format string (e.g., "%(asctime)s - %(message)s").

        Returns:
            str: The validated format string, or the default `LOG_FORMAT` if validation fails.
        """
        if not log_format:
            return str(LOG_FORMAT.default())

        log_format = str(log_format)
        format_specifier_pattern = r"\([a-zA-Z_][a-zA-Z0-9_]*\)[a-zA-Z]"
        try:
            for match in re.finditer(format_specifier_pattern, log_format):
                start_pos = match.start()
                if start_pos == 0 or log_format[start_pos - 1] != "%":
                    raise ValueError("Malformed format specifier.")

            formatter = logging.Formatter(fmt=log_format)
            record = logging.LogRecord(
                name="test", level=logging.INFO, pathname="", lineno=0,
                msg="test", args=(), exc_info=None,
            )
            formatted_output = formatter.format(record)
            if re.search(format_specifier_pattern, formatted_output):
                raise ValueError("Format specifiers not properly processed.")
        except (ValueError, KeyError, TypeError) as e:
            print(
                f"{time.strftime(str(LOG_DATE_FORMAT.default()))} - daogov.logger - "
                f"Validation Error: {e}. Using default.",
                file=sys.stderr,
            )
            return str(LOG_FORMAT.default())
        return log_format


    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Configures the package logger with console and file handlers.

        Args:
            log_level (Optional[str]): Logging level (DEBUG, INFO, etc.). Defaults to
                DAOGOV_LOG_LEVEL, then the `.env` LOG_LEVEL.
            log_file (Optional[Path]): Path to the log file. Defaults to DAOGOV_LOG_FILE,
                then `logs/daogov.log`.
            console_output (bool): Enable console logging. Defaults to True.
            file_output (Optional[bool]): Enable rotating file logging. Defaults to
                LOG_FILE_OUTPUT, or True when DAOGOV_LOG_FILE is set.
        """
        with self._lock:
            if self._configured:
                return

            level_str = log_level or os.environ.get("DAOGOV_LOG_LEVEL") or LOG_LEVEL
            numeric_level = getattr(logging, str(level_str).upper(), logging.INFO)

            # A library only configures its own namespace, never the root logger
            package_logger = logging.getLogger("daogov")
            package_logger.setLevel(numeric_level)
            package_logger.handlers.clear()
            package_logger.propagate = False

            log_format = self.validate_log_format(LOG_FORMAT)
            date_format = str(LOG_DATE_FORMAT) or str(LOG_DATE_FORMAT.default())

            # Uses UTC for consistency across different server timezones
            formatter = TerminalSafeFormatter(fmt=log_format, datefmt=date_format + " UTC")
            formatter.converter = time.gmtime

            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    theme = Theme(
                        {
                            "daogov.address":        "cyan",
                            "daogov.arrow":          "bold yellow",
                            "daogov.level_critical": "bold red reverse",
                            "daogov.level_debug":    "bold dim",
                            "daogov.level_error":    "bold red",
                            "daogov.level_info":     "bold green",
                            "daogov.level_warning":  "bold yellow",
                            "daogov.logger_name":    "magenta",
                            "daogov.status_bad":     "bold red",
                            "daogov.status_good":    "bold green",
                            "daogov.status_pending": "bold yellow",
                            "daogov.tag":            "bold magenta",
                            "daogov.timestamp":      "bold cyan",
                        }
                    )
                    console = Console(theme=theme, highlight=False, stderr=True)
                    handler = RichHandler(
                        console=console,
                        highlighter=GovernanceLogHighlighter(),
                        keywords=[],
                        rich_tracebacks=True,
                        omit_repeated_times=False,
                        show_path=False,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    )
                else:
                    handler = logging.StreamHandler(sys.stderr)
                handler.setLevel(numeric_level)
                handler.setFormatter(formatter)
                package_logger.addHandler(handler)

            env_log_file = os.environ.get("DAOGOV_LOG_FILE")
            if file_output is None:
                file_output = bool(LOG_FILE_OUTPUT) or bool(env_log_file)

            if file_output:
                log_file_path = log_file or (Path(env_log_file) if env_log_file else LOG_FILE_PATH)
                log_file_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    filename=str(log_file_path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
                file_handler.setLevel(numeric_level)
                file_handler.setFormatter(formatter)
                package_logger.addHandler(file_handler)

            self._configured = True


    def reset(self) -> None:
        """Drops the current handlers so the next `configure` call applies again."""
        with self._lock:
            package_logger = logging.getLogger("daogov")
            for handler in list(package_logger.handlers):
                handler.close()
            package_logger.handlers.clear()
            self._configured = False


    def get_logger(self, name: str) -> logging.Logger:
        """
        Retrieves a configured logger instance for a specific module.

        Args:
            name (str): The name of the logger (typically `__name__`).

        Returns:
            logging.Logger: A configured standard Python logger.
        """
        if not self._configured:
            self.configure()
        return logging.getLogger(name)


    @property
    def is_configured(self) -> bool:
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    A formatter class that sanitizes log output.

    Titles, descriptions and DAO names are user supplied and end up in log
    messages, so ANSI escape sequences and non-printable control characters
    are stripped before anything reaches a terminal or a log file.
    """

    # Matches ANSI CSI sequences (colors, cursor moves) and single ESC chars
    _ansi_escape_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
    )
    # Matches control chars (0x00-0x1F) excluding Tab and Newline
    _control_chars_re = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
    _carriage_return_re = re.compile(r"\r")


    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        text = cls._ansi_escape_re.sub("", text)
        text = cls._carriage_return_re.sub("", text)
        text = cls._control_chars_re.sub("", text)
        return text


    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class GovernanceLogHighlighter(RegexHighlighter):
    """
    Custom Rich Highlighter for governance logs.

    Colors log levels, lifecycle status names, state-transition arrows and
    base58 account addresses.
    """

    base_style = "daogov."
    highlights = [
        r"(?P<arrow>(\-\->)|(→))",
        r"(?P<level_critical>\bCRITICAL\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\bERROR\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<status_good>\b(SUCCEEDED|EXECUTED)\b)",
        r"(?P<status_bad>\b(FAILED|CANCELLED)\b)",
        r"(?P<status_pending>\b(ACTIVE|QUEUED)\b)",
        r"(?P<address>\b[1-9A-HJ-NP-Za-km-z]{32,44}\b)",
        r"(?P<tag>\[.*?\])",
        r"(?P<timestamp>^(.*?)UTC)",
    ]


_manager = LogManager()

def get_logger(name: str) -> logging.Logger:
    """
    Public accessor of the logging system.
    Delegates to the Singleton LogManager, ensuring configuration is applied.

    Args:
        name (str): The name of the module requesting the logger.

    Returns:
        logging.Logger: The configured logger instance.
    """
    return _manager.get_logger(name)


def configure_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    console_output: bool = True,
) -> None:
    """
    Re-applies the logging configuration, e.g. after a config file is loaded.

    Args:
        log_level (Optional[str]): Logging level name.
        log_file (Optional[str]): Enables rotating file output to this path.
        console_output (bool): Enable console logging.
    """
    _manager.reset()
    _manager.configure(
        log_level=log_level,
        log_file=Path(log_file) if log_file else None,
        console_output=console_output,
        file_output=True if log_file else None,
    )
