"""
Application lifecycle hooks

Observer registry for the two application events telemetry cares about:
an unhandled exception escaping the event loop and application exit.
The host application fires these events; it decides how they are wired
to its GUI toolkit (see desktop_insights.qt for PyQt6).
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, List

from .telemetry import SeverityLevel

logger = logging.getLogger(__name__)

ExceptionHandler = Callable[[BaseException], None]
ExitHandler = Callable[[], None]


class ApplicationEvents:
    """Unhandled-exception and exit observers"""

    def __init__(self):
        self._lock = threading.Lock()
        self._exception_handlers: List[ExceptionHandler] = []
        self._exit_handlers: List[ExitHandler] = []

    def on_unhandled_exception(self, handler: ExceptionHandler) -> ExceptionHandler:
        with self._lock:
            self._exception_handlers.append(handler)
        return handler

    def on_exit(self, handler: ExitHandler) -> ExitHandler:
        with self._lock:
            self._exit_handlers.append(handler)
        return handler

    def unhandled_exception(self, exc: BaseException):
        """Notify every exception observer; the exception itself is not consumed"""
        with self._lock:
            handlers = list(self._exception_handlers)
        for handler in handlers:
            try:
                handler(exc)
            except Exception:
                logger.exception("Unhandled-exception observer failed")

    def application_exit(self):
        """Notify every exit observer"""
        with self._lock:
            handlers = list(self._exit_handlers)
        for handler in handlers:
            try:
                handler()
            except Exception:
                logger.exception("Exit observer failed")

    @contextmanager
    def guard(self):
        """Report an exception escaping the block, then re-raise it unchanged"""
        try:
            yield
        except Exception as exc:
            self.unhandled_exception(exc)
            raise


def report_unhandled_exceptions(client) -> ExceptionHandler:
    """Build an observer reporting exceptions to client at critical severity"""
    def _report(exc: BaseException):
        client.track_exception(exc, SeverityLevel.CRITICAL)
        client.flush()

    return _report


def flush_on_exit(client) -> ExitHandler:
    """Build an observer flushing client synchronously"""

    def _flush():
        client.flush()

    return _flush
