"""
HTTP Backend Adapter

Sends batches of telemetry items to a custom HTTP endpoint (Flask/FastAPI server).
This is a simple alternative to Supabase for self-hosted solutions.
"""

import json
import logging
import ssl
import urllib.request
import urllib.error
from typing import Dict, Any, List, Optional

import certifi

logger = logging.getLogger(__name__)

# Use certifi for SSL verification in frozen builds
SSL_CONTEXT = ssl.create_default_context(cafile=certifi.where())


class HTTPBackend:
    """HTTP backend for telemetry items (custom Flask/FastAPI endpoint)"""

    def __init__(self, endpoint_url: Optional[str] = None, api_key: Optional[str] = None,
                 backend_key: Optional[str] = None, timeout: float = 5):
        """
        Initialize HTTP backend

        Args:
            endpoint_url: Full URL to telemetry endpoint (e.g., https://your-server.com/api/telemetry)
            api_key: Optional API key for authentication
            backend_key: Key routing the items to their destination on the server
            timeout: Request timeout in seconds
        """
        self.endpoint_url = endpoint_url
        self.api_key = api_key
        self.backend_key = backend_key
        self.timeout = timeout

    def is_configured(self) -> bool:
        """Check if backend is properly configured"""
        return bool(self.endpoint_url)

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": "Desktop-Insights-Telemetry/1.0",
        }
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        if self.backend_key:
            headers["X-Backend-Key"] = self.backend_key
        return headers

    def send(self, items: List[Dict[str, Any]]) -> bool:
        """
        Send a batch of telemetry items to the HTTP endpoint

        Args:
            items: Serialized telemetry items

        Returns:
            True if successful, False otherwise
        """
        if not self.is_configured():
            logger.warning("HTTP backend not configured (endpoint URL missing)")
            return False

        payload = json.dumps(items).encode('utf-8')
        req = urllib.request.Request(
            self.endpoint_url,
            data=payload,
            headers=self._headers(),
            method='POST'
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout, context=SSL_CONTEXT) as response:
                if response.status in [200, 201, 202]:
                    return True
                logger.warning("HTTP backend error: HTTP %s", response.status)
                return False

        except urllib.error.HTTPError as e:
            logger.warning("HTTP backend HTTP error: %s - %s", e.code, e.reason)
            return False
        except urllib.error.URLError as e:
            logger.warning("HTTP backend connection error: %s", e.reason)
            return False
        except OSError as e:
            logger.warning("HTTP backend unexpected error: %s", e)
            return False
