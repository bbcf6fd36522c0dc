"""
Telemetry Client Registry

Process-scoped mapping of client names to telemetry clients. Create one
TelemetryRegistry at the application's composition root and pass it to
whatever needs a client.
"""

import logging
import threading
from typing import Optional, Dict, List, Callable

from . import config as analytics_config
from .errors import DuplicateNameError, DuplicateKeyError, NotFoundError
from .hooks import ApplicationEvents, report_unhandled_exceptions, flush_on_exit
from .initializer import TelemetryInitializer, capture_environment
from .telemetry import TelemetryClient, TelemetryConfiguration

logger = logging.getLogger(__name__)


class ClientRecord:
    """A registered client and the configuration it owns"""

    def __init__(self, name: str, backend_key: str, client: TelemetryClient, config: TelemetryConfiguration):
        self.name = name
        self.backend_key = backend_key
        self.client = client
        self.config = config


class TelemetryRegistry:
    """Registry of named telemetry clients with unique names and backend keys"""

    def __init__(self, events: ApplicationEvents, app_version: Optional[str] = None,
                 backend_factory: Optional[Callable[[str], object]] = None, settings=None,
                 max_batch_size: Optional[int] = None):
        """
        Initialize the registry

        Args:
            events: Lifecycle events every new client subscribes to
            app_version: Host application version stamped on every item
            backend_factory: Builds the backend for a backend key (default: analytics_config.py)
            settings: QSettings used to remember earlier sessions
            max_batch_size: Items buffered before a background flush (default: analytics_config.py)
        """
        self.events = events
        self.app_version = app_version
        self.backend_factory = backend_factory or analytics_config.get_backend
        self.settings = settings
        self.max_batch_size = max_batch_size or analytics_config.get_max_batch_size()
        self._records: Dict[str, ClientRecord] = {}
        self._lock = threading.RLock()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def names(self) -> List[str]:
        """Names of all registered clients"""
        with self._lock:
            return list(self._records)

    def create_client(self, name: str, backend_key: str) -> TelemetryClient:
        """
        Create and register a new client

        Args:
            name: Unique client name
            backend_key: Key routing this client's items (unique, case-insensitive)

        Returns:
            The new client

        Raises:
            DuplicateNameError: A client already exists with this name
            DuplicateKeyError: A client already uses this backend key
        """
        with self._lock:
            if name in self._records:
                raise DuplicateNameError(name)

            # Per-character lowercase, no case folding ("ß" and "SS" stay distinct)
            if any(r.backend_key.lower() == backend_key.lower() for r in self._records.values()):
                raise DuplicateKeyError(backend_key)

            config = TelemetryConfiguration(backend_key, self.backend_factory(backend_key), self.max_batch_size)
            config.initializers.append(TelemetryInitializer(capture_environment(self.app_version, self.settings)))
            client = TelemetryClient(config, registry=self)

            self.events.on_unhandled_exception(report_unhandled_exceptions(client))
            self.events.on_exit(flush_on_exit(client))

            self._records[name] = ClientRecord(name, backend_key, client, config)
            logger.info("Registered telemetry client: %s", name)
            return client

    def get_or_create_client(self, name: str, backend_key: str) -> TelemetryClient:
        """Return the client registered under name, creating it if needed"""
        with self._lock:
            record = self._records.get(name)
            if record is not None:
                return record.client
            return self.create_client(name, backend_key)

    def get_client(self, name: str) -> TelemetryClient:
        """
        Get a registered client

        Args:
            name: Name the client was created with

        Returns:
            The client

        Raises:
            NotFoundError: No client has been created with this name
        """
        with self._lock:
            record = self._records.get(name)
        if record is None:
            raise NotFoundError(f'No client has been created with name "{name}"')
        return record.client

    def _record_for(self, client: TelemetryClient) -> ClientRecord:
        with self._lock:
            for record in self._records.values():
                if record.client is client:
                    return record
        raise NotFoundError("Client is not registered with this registry")

    def enable(self, client: TelemetryClient):
        """
        Resume delivery for a client

        Raises:
            NotFoundError: The client is not registered here
        """
        self._record_for(client).config.disabled = False
        logger.info("Telemetry enabled for %s", client.backend_key)

    def disable(self, client: TelemetryClient):
        """
        Stop delivery for a client; items tracked while disabled are dropped

        Raises:
            NotFoundError: The client is not registered here
        """
        self._record_for(client).config.disabled = True
        logger.info("Telemetry disabled for %s", client.backend_key)

    def is_enabled(self, client: TelemetryClient) -> bool:
        """Whether a registered client currently delivers items"""
        return not self._record_for(client).config.disabled
