"""
Supabase Backend Adapter

Inserts batches of telemetry items into a Supabase (PostgreSQL) table.
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


class SupabaseBackend:
    """Supabase backend for telemetry items"""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, table_name: str = "telemetry",
                 backend_key: Optional[str] = None, timeout: float = 5):
        """
        Initialize Supabase backend

        Args:
            url: Supabase project URL (e.g., https://xxxxx.supabase.co)
            key: Supabase anon/public key
            table_name: Database table name (default: "telemetry", use "telemetry_test" for CI tests)
            backend_key: Key stored with every row, used to route items per client
            timeout: Request timeout in seconds
        """
        self.url = url
        self.key = key
        self.table_name = table_name
        self.backend_key = backend_key
        self.timeout = timeout

    def is_configured(self) -> bool:
        """Check if backend is properly configured"""
        return bool(self.url and self.key)

    def _row(self, item: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(item)
        if self.backend_key and not row.get("backend_key"):
            row["backend_key"] = self.backend_key
        return row

    def send(self, items: List[Dict[str, Any]]) -> bool:
        """
        Insert a batch of telemetry items

        Args:
            items: Serialized telemetry items

        Returns:
            True if successful, False otherwise
        """
        if not self.is_configured():
            logger.warning("Supabase backend not configured (URL or key missing)")
            return False

        # Supabase REST API endpoint, accepts a JSON array for bulk insert
        endpoint = f"{self.url}/rest/v1/{self.table_name}"
        headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",  # Don't return inserted data
        }

        payload = json.dumps([self._row(item) for item in items]).encode('utf-8')
        logger.debug("Posting %d row(s), %d bytes to %s", len(items), len(payload), endpoint)

        req = urllib.request.Request(
            endpoint,
            data=payload,
            headers=headers,
            method='POST'
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout, context=SSL_CONTEXT) as response:
                if response.status in [200, 201]:
                    return True
                logger.warning("Supabase error: HTTP %s", response.status)
                return False

        except urllib.error.HTTPError as e:
            try:
                logger.debug("HTTP error body: %s", e.read().decode('utf-8'))
            except OSError:
                pass
            logger.warning("Supabase HTTP error: %s - %s", e.code, e.reason)
            return False
        except urllib.error.URLError as e:
            logger.warning("Supabase connection error: %s", e.reason)
            return False
        except OSError as e:
            logger.warning("Supabase unexpected error: %s", e)
            return False

    @staticmethod
    def get_table_schema(table_name: str = "telemetry") -> str:
        """
        Get SQL schema for creating a telemetry table in Supabase

        Args:
            table_name: Name of the table to create (default: "telemetry")

        Returns:
            SQL CREATE TABLE statement
        """
        return f"""
-- Create {table_name} table in Supabase
CREATE TABLE {table_name} (
    id BIGSERIAL PRIMARY KEY,
    backend_key TEXT NOT NULL,
    kind TEXT NOT NULL,
    name TEXT,
    timestamp TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    severity TEXT,
    properties JSONB,
    context JSONB,
    exception JSONB,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Route and filter by client
CREATE INDEX idx_{table_name}_backend_key ON {table_name}(backend_key);

-- Create index on timestamp for time-based queries
CREATE INDEX idx_{table_name}_timestamp ON {table_name}(timestamp);

-- Enable Row Level Security (RLS)
ALTER TABLE {table_name} ENABLE ROW LEVEL SECURITY;

-- Create policy to allow anonymous inserts (for telemetry)
CREATE POLICY "Allow anonymous {table_name} inserts"
ON {table_name}
FOR INSERT
TO anon
WITH CHECK (true);

-- Create policy to allow authenticated reads (for analytics dashboard)
CREATE POLICY "Allow authenticated {table_name} reads"
ON {table_name}
FOR SELECT
TO authenticated
USING (true);
        """
