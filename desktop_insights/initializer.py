"""
Telemetry Initializer

Captures environment facts once per client and stamps them onto every
telemetry item submitted through that client.
"""

import getpass
import logging
import os
import platform
import socket
import sys
from datetime import datetime
from types import MappingProxyType
from typing import Optional, Dict, Any, Callable

from PyQt6.QtCore import QLocale
from PyQt6.QtGui import QGuiApplication

logger = logging.getLogger(__name__)

# QSettings key marking that a session was already recorded on this machine
SESSION_SEEN_KEY = "telemetry_session_seen"

# Snapshot field -> global property name attached to each item
GLOBAL_PROPERTIES = {
    "language": "Language",
    "screen_resolution": "ScreenResolution",
    "is_64bit_os": "64BitOS",
    "is_64bit_process": "64BitProcess",
    "machine_name": "Machine name",
    "processor_count": "ProcessorCount",
    "runtime_version": "PythonVersion",
}

# Snapshot field -> item context field
CONTEXT_FIELDS = {
    "app_version": "component_version",
    "os_version": "device_os",
    "session_id": "session_id",
    "session_is_first": "session_is_first",
    "account_id": "account_id",
    "user_id": "user_id",
}


class EnvironmentSnapshot:
    """Read-only environment metadata captured at client creation"""

    def __init__(self, fields: Dict[str, Any]):
        self._fields = MappingProxyType(dict(fields))

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __getattr__(self, key: str) -> Any:
        try:
            return self.__dict__["_fields"][key]
        except KeyError:
            raise AttributeError(key) from None

    def __setattr__(self, key: str, value: Any):
        if key != "_fields" or "_fields" in self.__dict__:
            raise AttributeError("EnvironmentSnapshot is immutable")
        super().__setattr__(key, value)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._fields)

    def __repr__(self) -> str:
        return f"EnvironmentSnapshot({dict(self._fields)!r})"


def _language_tag() -> Optional[str]:
    languages = QLocale.system().uiLanguages()
    if languages:
        return languages[0]
    return QLocale.system().bcp47Name()


def _os_version() -> str:
    # Friendly macOS name, kernel release for everything else
    os_name = platform.system()
    if os_name == "Darwin":
        mac_ver = platform.mac_ver()[0]  # e.g., "15.4"
        return f"macOS {mac_ver if mac_ver else platform.release()}"
    return f"{os_name} {platform.release()} ({platform.version()})"


def _screen_resolution() -> Optional[str]:
    if QGuiApplication.instance() is None:
        logger.debug("No GUI application running, screen resolution unavailable")
        return None

    screens = QGuiApplication.screens()
    if len(screens) > 1:
        lines = []
        for i, screen in enumerate(screens):
            geometry = screen.geometry()
            lines.append(f"[{i}] {geometry.width()}x{geometry.height()}\n")
        return "".join(lines)

    geometry = QGuiApplication.primaryScreen().geometry()
    return f"{geometry.width()}x{geometry.height()}"


def _is_64bit_os() -> str:
    return str(platform.machine().lower() in ("amd64", "x86_64", "arm64", "aarch64", "ppc64le", "s390x"))


def _is_64bit_process() -> str:
    return str(sys.maxsize > 2 ** 32)


def _runtime_version() -> str:
    return f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"


def _session_id() -> str:
    return datetime.now().strftime("%Y%m%d%H%M%S%f")


def _account_id() -> str:
    domain = os.environ.get("USERDOMAIN")
    if domain:
        return domain
    fqdn = socket.getfqdn()
    # Hosts without a domain report their bare name
    return fqdn.partition(".")[2] or fqdn


def _session_is_first(settings) -> bool:
    if settings is None:
        return True
    seen = settings.value(SESSION_SEEN_KEY, False, type=bool)
    if not seen:
        settings.setValue(SESSION_SEEN_KEY, True)
    return not seen


def _probe(field: str, probe: Callable[[], Any]) -> Any:
    try:
        return probe()
    except Exception as e:
        logger.warning("Could not read %s for telemetry: %s", field, e)
        return None


def capture_environment(app_version: Optional[str], settings=None) -> EnvironmentSnapshot:
    """
    Collect environment metadata for a new client

    Args:
        app_version: Version of the host application
        settings: Optional QSettings used to remember whether a session was seen before

    Returns:
        EnvironmentSnapshot with None for every field that could not be read
    """
    probes = {
        "language": _language_tag,
        "os_version": _os_version,
        "screen_resolution": _screen_resolution,
        "is_64bit_os": _is_64bit_os,
        "is_64bit_process": _is_64bit_process,
        "machine_name": platform.node,
        "processor_count": lambda: str(os.cpu_count()),
        "runtime_version": _runtime_version,
        "session_id": _session_id,
        "session_is_first": lambda: _session_is_first(settings),
        "account_id": _account_id,
        "user_id": getpass.getuser,
    }

    fields: Dict[str, Any] = {"app_version": app_version}
    for field, probe in probes.items():
        fields[field] = _probe(field, probe)
    return EnvironmentSnapshot(fields)


class TelemetryInitializer:
    """Merges a fixed environment snapshot into each telemetry item"""

    def __init__(self, snapshot: EnvironmentSnapshot):
        self.snapshot = snapshot

    def initialize(self, item):
        for field, context_key in CONTEXT_FIELDS.items():
            item.context[context_key] = self.snapshot[field]
        for field, property_name in GLOBAL_PROPERTIES.items():
            item.properties[property_name] = self.snapshot[field]
