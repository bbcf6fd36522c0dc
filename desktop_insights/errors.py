"""
Telemetry Errors

Exceptions raised by the client registry.
"""


class TelemetryError(Exception):
    """Base class for registry errors"""


class DuplicateNameError(TelemetryError, ValueError):
    """A client is already registered under the requested name"""

    def __init__(self, name: str):
        super().__init__(f'A client already exists with name "{name}". Use get_client() to retrieve it.')
        self.name = name


class DuplicateKeyError(TelemetryError, ValueError):
    """Another client already uses the requested backend key"""

    def __init__(self, backend_key: str):
        super().__init__("A client already exists with the given backend key.")
        self.backend_key = backend_key


class NotFoundError(TelemetryError, LookupError):
    """No registered client matches the lookup"""
