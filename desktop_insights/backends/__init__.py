"""Telemetry backend adapters"""

from .supabase import SupabaseBackend
from .http import HTTPBackend

__all__ = ['SupabaseBackend', 'HTTPBackend']
