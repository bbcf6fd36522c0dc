"""
PyQt6 wiring for application lifecycle hooks

Connects a running QApplication to ApplicationEvents: exceptions reaching
sys.excepthook (slots, the main loop) or threading.excepthook (worker
threads) are reported and then handed to the previous hook, and the
aboutToQuit signal fires the exit observers. When the previous
sys.excepthook is the interpreter default, the process is then aborted
with qFatal, as PyQt6 itself does when no hook is installed.
"""

import sys
import threading
import traceback
from typing import Callable

from PyQt6.QtCore import qFatal

from .hooks import ApplicationEvents


def install_application_hooks(events: ApplicationEvents, app) -> Callable[[], None]:
    """
    Install lifecycle hooks on a QApplication

    Args:
        events: Observers to notify
        app: Running QApplication (or QCoreApplication)

    Returns:
        Callable restoring the previous hooks and disconnecting aboutToQuit
    """
    previous_excepthook = sys.excepthook
    previous_threading_excepthook = threading.excepthook

    def excepthook(exc_type, exc_value, exc_traceback):
        if exc_value is not None and not issubclass(exc_type, KeyboardInterrupt):
            events.unhandled_exception(exc_value)
        previous_excepthook(exc_type, exc_value, exc_traceback)
        if previous_excepthook is sys.__excepthook__:
            # With no custom hook PyQt6 aborts on an unhandled exception; keep that
            qFatal("Unhandled Python exception: "
                   + "".join(traceback.format_exception_only(exc_type, exc_value)).strip())

    def threading_excepthook(args):
        if args.exc_value is not None and not issubclass(args.exc_type, KeyboardInterrupt):
            events.unhandled_exception(args.exc_value)
        previous_threading_excepthook(args)

    sys.excepthook = excepthook
    threading.excepthook = threading_excepthook
    app.aboutToQuit.connect(events.application_exit)

    def uninstall():
        sys.excepthook = previous_excepthook
        threading.excepthook = previous_threading_excepthook
        try:
            app.aboutToQuit.disconnect(events.application_exit)
        except TypeError:
            pass  # Already disconnected

    return uninstall
