#!/usr/bin/env python3
"""
Desktop Insights Example App
Composition root: one registry, Qt lifecycle hooks, and a telemetry-aware window
"""

import sys

from PyQt6.QtWidgets import QApplication, QVBoxLayout, QPushButton, QLabel
from PyQt6.QtCore import QSettings

from desktop_insights import ApplicationEvents, TelemetryRegistry, SeverityLevel
from desktop_insights.config import configure_debug_logging
from desktop_insights.qt import install_application_hooks
from desktop_insights.widgets import TelemetryWidget

# Application version - single source of truth
VERSION = "1.0"

CLIENT_NAME = "DesktopInsights.ExampleApp"
BACKEND_KEY = "<backend key from your analytics project>"


class ExampleWindow(TelemetryWidget):
    """Main window reporting button clicks through its telemetry client"""

    def __init__(self, registry):
        super().__init__(registry, telemetry_client_name=CLIENT_NAME)
        self.setWindowTitle(f"Desktop Insights Example {VERSION}")

        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Telemetry example"))

        self.event_btn = QPushButton("Track event")
        self.event_btn.clicked.connect(self.on_track_event)
        layout.addWidget(self.event_btn)

        self.handled_btn = QPushButton("Log handled exception")
        self.handled_btn.clicked.connect(self.on_handled_exception)
        layout.addWidget(self.handled_btn)

        self.crash_btn = QPushButton("Raise unhandled exception")
        self.crash_btn.clicked.connect(self.on_crash)
        layout.addWidget(self.crash_btn)

    def on_track_event(self):
        if self.telemetry_client:
            self.telemetry_client.track_event("ButtonClicked", {"Button": "Track event"})

    def on_handled_exception(self):
        try:
            int("not a number")
        except ValueError as e:
            if self.telemetry_client:
                self.telemetry_client.log_handled_exception(
                    e, SeverityLevel.WARNING, "Parsing failed", {"Source": "example"})

    def on_crash(self):
        raise RuntimeError("Example unhandled exception")


def main():
    app = QApplication(sys.argv)
    configure_debug_logging()

    events = ApplicationEvents()
    install_application_hooks(events, app)

    settings = QSettings("DesktopInsights", "ExampleApp")
    registry = TelemetryRegistry(events, app_version=VERSION, settings=settings)
    registry.create_client(CLIENT_NAME, BACKEND_KEY)

    window = ExampleWindow(registry)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
