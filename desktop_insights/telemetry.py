"""
Telemetry Client

Client handle through which events and exceptions are submitted.
Items are enriched by the client's initializers, buffered, and sent to the
configured backend in batches. Sending is best-effort: transport failures are
logged and never interrupt the host application.
"""

import logging
import threading
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List, Mapping

from .errors import NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_MAX_BATCH_SIZE = 100


class SeverityLevel(str, Enum):
    """Severity attached to exception items"""

    VERBOSE = "Verbose"
    INFORMATION = "Information"
    WARNING = "Warning"
    ERROR = "Error"
    CRITICAL = "Critical"


class TelemetryItem:
    """A single telemetry event waiting to be sent"""

    def __init__(self, kind: str, name: Optional[str] = None,
                 severity: Optional[SeverityLevel] = None,
                 properties: Optional[Mapping[str, Optional[str]]] = None,
                 exception: Optional[BaseException] = None):
        self.kind = kind
        self.name = name
        self.severity = severity
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.properties: Dict[str, Optional[str]] = dict(properties or {})
        self.context: Dict[str, Any] = {}
        self.exception = exception

    @classmethod
    def event(cls, name: str, properties: Optional[Mapping[str, Optional[str]]] = None) -> "TelemetryItem":
        return cls("event", name=name, properties=properties)

    @classmethod
    def for_exception(cls, exception: BaseException, severity: SeverityLevel = SeverityLevel.ERROR,
                      properties: Optional[Mapping[str, Optional[str]]] = None) -> "TelemetryItem":
        return cls("exception", name=type(exception).__name__, severity=severity,
                   properties=properties, exception=exception)

    def _exception_info(self) -> Optional[Dict[str, str]]:
        if self.exception is None:
            return None
        exc = self.exception
        exc_type = type(exc)
        return {
            "type": f"{exc_type.__module__}.{exc_type.__qualname__}",
            "message": str(exc),
            "stack": "".join(traceback.format_exception(exc_type, exc, exc.__traceback__)),
        }

    def to_dict(self, backend_key: Optional[str] = None) -> Dict[str, Any]:
        """
        Serialize the item for a backend

        Args:
            backend_key: Key routing the item to its destination

        Returns:
            JSON-compatible dictionary
        """
        return {
            "backend_key": backend_key,
            "kind": self.kind,
            "name": self.name,
            "timestamp": self.timestamp,
            "severity": self.severity.value if self.severity else None,
            "properties": dict(self.properties),
            "context": dict(self.context),
            "exception": self._exception_info(),
        }


class TelemetryConfiguration:
    """Mutable per-client settings"""

    def __init__(self, backend_key: str, backend=None, max_batch_size: int = DEFAULT_MAX_BATCH_SIZE):
        self.backend_key = backend_key
        self.backend = backend
        self.disabled = False
        self.initializers: List[Any] = []
        self.max_batch_size = max_batch_size


class TelemetryClient:
    """Named channel for submitting telemetry to a backend"""

    def __init__(self, config: TelemetryConfiguration, registry=None):
        """
        Initialize telemetry client

        Args:
            config: Configuration owned by this client
            registry: TelemetryRegistry the client is registered with
        """
        self.config = config
        self._registry = registry
        self._buffer: List[TelemetryItem] = []
        self._lock = threading.Lock()
        # Held for the whole swap-and-send of a batch
        self._send_lock = threading.Lock()
        self._flush_thread: Optional[threading.Thread] = None

    @property
    def backend_key(self) -> str:
        """Key routing this client's items to their destination"""
        return self.config.backend_key

    @property
    def is_enabled(self) -> bool:
        """Whether tracked items are currently delivered"""
        return not self.config.disabled

    def track(self, item: TelemetryItem):
        """Enrich and buffer an item; dropped when the client is disabled"""
        if self.config.disabled:
            logger.debug("Telemetry disabled for %s, dropping %s item", self.backend_key, item.kind)
            return

        for initializer in self.config.initializers:
            initializer.initialize(item)

        with self._lock:
            self._buffer.append(item)
            full = len(self._buffer) >= self.config.max_batch_size

        if full:
            logger.debug("Buffer full, starting background flush")
            self._flush_thread = threading.Thread(target=self.flush, daemon=True)
            self._flush_thread.start()

    def track_event(self, name: str, properties: Optional[Mapping[str, Optional[str]]] = None):
        """
        Track a named event

        Args:
            name: Event name
            properties: Optional string properties attached to the event
        """
        self.track(TelemetryItem.event(name, properties))

    def track_exception(self, exception: BaseException, severity: SeverityLevel = SeverityLevel.ERROR,
                        properties: Optional[Mapping[str, Optional[str]]] = None):
        """
        Track an exception

        Args:
            exception: The exception to report
            severity: Severity assigned to the item (default: Error)
            properties: Optional string properties attached to the item
        """
        self.track(TelemetryItem.for_exception(exception, severity, properties))

    def pending(self) -> int:
        """Number of buffered items not yet sent"""
        with self._lock:
            return len(self._buffer)

    def flush(self) -> bool:
        """
        Send all buffered items synchronously

        Waits for a batch already being sent by a background flush, so that
        nothing is still in flight when this returns.

        Returns:
            True if the batch was delivered (or nothing was pending), False otherwise
        """
        with self._send_lock:
            return self._send_pending()

    def _send_pending(self) -> bool:
        with self._lock:
            items, self._buffer = self._buffer, []

        if not items:
            return True

        backend = self.config.backend
        if backend is None:
            logger.warning("Telemetry backend not configured, dropping %d item(s)", len(items))
            return False

        payload = [item.to_dict(self.backend_key) for item in items]
        try:
            success = backend.send(payload)
        except Exception as e:
            # Never interrupt the user experience
            logger.warning("Telemetry error: %s", e)
            return False

        if success:
            logger.debug("Telemetry sent successfully (%d item(s))", len(items))
        else:
            logger.warning("Telemetry failed to send %d item(s)", len(items))
        return bool(success)

    def _owning_registry(self):
        if self._registry is None:
            raise NotFoundError(f"Client with backend key {self.backend_key!r} is not registered")
        return self._registry

    def enable(self):
        """Enable delivery for this client"""
        self._owning_registry().enable(self)

    def disable(self):
        """Disable delivery for this client"""
        self._owning_registry().disable(self)

    def log_handled_exception(self, exception: BaseException, severity: SeverityLevel = SeverityLevel.ERROR,
                              message: Optional[str] = None, data: Optional[Mapping[str, str]] = None):
        """Record a caught exception through this client (see log_handled_exception)"""
        log_handled_exception(self, exception, severity, message, data)


def log_handled_exception(client: TelemetryClient, exception: BaseException,
                          severity: SeverityLevel = SeverityLevel.ERROR,
                          message: Optional[str] = None, data: Optional[Mapping[str, str]] = None):
    """
    Record an exception that was caught and recovered from

    Args:
        client: Telemetry client to submit through
        exception: The handled exception
        severity: Severity assigned to the item
        message: Optional message stored as the LogMessage property
        data: Extra string key/value pairs attached to the item
    """
    properties: Dict[str, Optional[str]] = {"LogMessage": message}
    properties.update(data or {})
    client.track_exception(exception, severity, properties)
