"""
Pytest configuration and shared fixtures
"""
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Run Qt without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from desktop_insights import ApplicationEvents, TelemetryRegistry


class RecordingBackend:
    """Stub transport keeping every batch it is asked to send"""

    def __init__(self, backend_key=None, succeed=True):
        self.backend_key = backend_key
        self.succeed = succeed
        self.batches = []

    def is_configured(self):
        return True

    def send(self, items):
        self.batches.append(items)
        return self.succeed

    @property
    def items(self):
        return [item for batch in self.batches for item in batch]


class FakeSettings:
    """Dict-backed stand-in for QSettings"""

    def __init__(self):
        self.values = {}

    def value(self, key, default=None, type=None):
        value = self.values.get(key, default)
        return type(value) if type is not None and value is not None else value

    def setValue(self, key, value):
        self.values[key] = value


@pytest.fixture(scope="session")
def qapp():
    """Create QApplication instance for GUI tests"""
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    yield app
    # Don't quit - let pytest handle cleanup


@pytest.fixture
def backends():
    """Backends handed out by the registry, keyed by backend key"""
    return {}


@pytest.fixture
def events():
    return ApplicationEvents()


@pytest.fixture
def registry(events, backends):
    """Registry whose clients send to recording backends"""
    def factory(backend_key):
        backend = RecordingBackend(backend_key)
        backends[backend_key] = backend
        return backend

    return TelemetryRegistry(events, app_version="1.2.3", backend_factory=factory, max_batch_size=100)


@pytest.fixture
def fake_settings():
    return FakeSettings()
