"""
Error reporting and logging setup for the CHIP-8 virtual machine.

The host reports every problem it meets here: interpreter faults, bad
configuration, unreadable ROM files, unmapped keys. Each report is logged
through the ``Chip8VM`` logger and kept in a bounded history that can be
summarized or written out as a JSON report.
"""

import logging
import sys
import os
import traceback
import json
import datetime
from typing import Dict, List, Any, Optional
from enum import Enum, auto
import threading
import inspect

logger = logging.getLogger("Chip8VM")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

class ErrorLevel(Enum):
    """Severity of a report; names match the logging module's levels."""
    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()

class ErrorCategory(Enum):
    """Where a reported problem came from."""
    SYSTEM = auto()
    CONFIGURATION = auto()
    INPUT = auto()
    EXECUTION = auto()
    UNKNOWN = auto()

class ErrorHandler:
    """
    Owns the package logger's handlers and the history of reported errors.
    """

    def __init__(self,
                log_file: Optional[str] = None,
                console_level: int = logging.INFO,
                file_level: int = logging.DEBUG,
                max_error_history: int = 100):
        """
        Initialize the error handler.

        Args:
            log_file: Path to log file (None for no file logging)
            console_level: Logging level for stderr output
            file_level: Logging level for file output
            max_error_history: Number of reports kept
        """
        self.log_file = log_file
        self.console_level = console_level
        self.file_level = file_level
        self.max_error_history = max_error_history

        self.error_history: List[Dict[str, Any]] = []
        self.error_history_lock = threading.Lock()

        self._configure_logging()

        logger.debug("Error handler initialized")

    def _configure_logging(self) -> None:
        logger.handlers = []
        logger.setLevel(logging.DEBUG)

        # stderr keeps stdout free for rendered frames and listings
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(self.console_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)

        if self.log_file:
            self._add_file_handler(self.log_file)

    def _add_file_handler(self, log_file: str) -> None:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(self.file_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    def handle_error(self,
                  exception: Optional[Exception] = None,
                  message: Optional[str] = None,
                  level: ErrorLevel = ErrorLevel.ERROR,
                  category: ErrorCategory = ErrorCategory.UNKNOWN,
                  context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Log a problem and add it to the history.

        Args:
            exception: Exception that was raised, if any
            message: Description (defaults to str(exception))
            level: Severity
            category: Origin of the problem
            context: Extra data saved with the report (machine state, paths)

        Returns:
            The report dictionary
        """
        if message is None:
            message = str(exception) if exception else "Unknown error"

        report = {
            "timestamp": datetime.datetime.now().isoformat(),
            "level": level.name,
            "category": category.name,
            "message": message,
            "exception_type": type(exception).__name__ if exception else None,
            "traceback": "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
                         if exception else None,
            "context": context or {},
            "caller": self._get_caller_info()
        }

        log_level = getattr(logging, level.name)
        logger.log(log_level, f"{message} ({category.name})")
        if exception and log_level >= logging.ERROR:
            logger.debug(f"Traceback: {report['traceback']}")

        with self.error_history_lock:
            self.error_history.append(report)
            if len(self.error_history) > self.max_error_history:
                del self.error_history[:-self.max_error_history]

        return report

    def _get_caller_info(self) -> Dict[str, Any]:
        """Locate the first stack frame outside this module."""
        frame = inspect.currentframe()
        while frame:
            frame_info = inspect.getframeinfo(frame)
            if os.path.basename(frame_info.filename) != 'error_handler.py':
                module = inspect.getmodule(frame)
                return {
                    "file": frame_info.filename,
                    "function": frame_info.function,
                    "line": frame_info.lineno,
                    "module": module.__name__ if module else None,
                }
            frame = frame.f_back

        return {"file": None, "function": None, "line": None, "module": None}

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Count reports by category, level and exception type.

        Returns:
            Dictionary with totals and the latest report
        """
        with self.error_history_lock:
            errors = list(self.error_history)

        categories: Dict[str, int] = {}
        levels: Dict[str, int] = {}
        exceptions: Dict[str, int] = {}
        for e in errors:
            categories[e["category"]] = categories.get(e["category"], 0) + 1
            levels[e["level"]] = levels.get(e["level"], 0) + 1
            if e["exception_type"]:
                exceptions[e["exception_type"]] = exceptions.get(e["exception_type"], 0) + 1

        return {
            "total": len(errors),
            "by_category": categories,
            "by_level": levels,
            "by_exception": exceptions,
            "latest": errors[-1] if errors else None
        }

    def export_error_report(self, filename: str) -> bool:
        """
        Write the summary and every kept report to a JSON file.

        Returns:
            True if the file was written, False otherwise
        """
        try:
            directory = os.path.dirname(filename)
            if directory:
                os.makedirs(directory, exist_ok=True)

            with self.error_history_lock:
                errors = list(self.error_history)

            report = {
                "timestamp": datetime.datetime.now().isoformat(),
                "summary": self.get_error_summary(),
                "errors": errors
            }

            with open(filename, 'w') as f:
                json.dump(report, f, indent=2, default=str)

            logger.info(f"Exported error report to {filename}")
            return True

        except OSError as e:
            logger.error(f"Error exporting error report: {e}")
            return False

    def set_log_levels(self, console_level: int, file_level: Optional[int] = None) -> None:
        """
        Change handler levels.

        Args:
            console_level: Level for stderr output
            file_level: Level for file output (None to keep current)
        """
        self.console_level = console_level
        if file_level is not None:
            self.file_level = file_level

        for handler in logger.handlers:
            if isinstance(handler, logging.FileHandler):
                handler.setLevel(self.file_level)
            elif isinstance(handler, logging.StreamHandler):
                handler.setLevel(console_level)

    def set_log_file(self, log_file: Optional[str]) -> None:
        """
        Replace the log file (None disables file logging).
        """
        for handler in list(logger.handlers):
            if isinstance(handler, logging.FileHandler):
                logger.removeHandler(handler)
                handler.close()

        self.log_file = log_file
        if log_file:
            self._add_file_handler(log_file)
            logger.debug(f"Logging to {log_file}")

    def log_exception(self, exception: Exception,
                    message: Optional[str] = None,
                    category: ErrorCategory = ErrorCategory.UNKNOWN,
                    context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Report an exception at ERROR level."""
        return self.handle_error(exception=exception, message=message,
                                 level=ErrorLevel.ERROR, category=category, context=context)

    def log_error(self, message: str,
                category: ErrorCategory = ErrorCategory.UNKNOWN,
                context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.handle_error(message=message, level=ErrorLevel.ERROR,
                                 category=category, context=context)

    def log_warning(self, message: str,
                  category: ErrorCategory = ErrorCategory.UNKNOWN,
                  context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.handle_error(message=message, level=ErrorLevel.WARNING,
                                 category=category, context=context)


# Shared instance used by the command line host
error_handler = ErrorHandler()
