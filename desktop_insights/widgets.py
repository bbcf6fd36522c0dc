"""
Telemetry-aware widgets

Base QWidget that resolves a named telemetry client from a registry the
first time it is needed.
"""

import logging
from typing import Optional

from PyQt6.QtWidgets import QWidget

from .errors import NotFoundError

logger = logging.getLogger(__name__)

_UNRESOLVED = object()


class TelemetryWidget(QWidget):
    """QWidget with built-in telemetry client lookup"""

    def __init__(self, registry, telemetry_client_name: Optional[str] = None, parent=None):
        super().__init__(parent)
        self._registry = registry
        self._telemetry_client_name = telemetry_client_name
        self._telemetry_client = _UNRESOLVED

    @property
    def telemetry_client_name(self) -> Optional[str]:
        """Name of the telemetry client used by the widget"""
        return self._telemetry_client_name

    @telemetry_client_name.setter
    def telemetry_client_name(self, name: Optional[str]):
        self._telemetry_client_name = name
        self._telemetry_client = _UNRESOLVED

    @property
    def telemetry_client(self):
        """The telemetry client, or None if no name is set or no such client exists"""
        if self._telemetry_client is _UNRESOLVED:
            self._telemetry_client = self._resolve_client()
        return self._telemetry_client

    def _resolve_client(self):
        name = self._telemetry_client_name
        if not name or not name.strip():
            logger.warning('No telemetry client name set on widget "%s"', self.objectName())
            return None

        try:
            return self._registry.get_client(name)
        except NotFoundError as e:
            logger.warning("Couldn't find telemetry client with name %s: %s", name, e)
            return None
