"""
Analytics Configuration Example

Copy this file to 'analytics_config.py' and fill in your credentials.
"""

# Backend selection: 'supabase' or 'http'
BACKEND_TYPE = 'supabase'

# Supabase configuration
SUPABASE_URL = 'https://xxxxx.supabase.co'
SUPABASE_KEY = 'your-anon-key-here'
SUPABASE_TABLE = 'telemetry'

# HTTP endpoint configuration (for custom server)
HTTP_ENDPOINT_URL = 'https://your-server.com/api/telemetry'
HTTP_API_KEY = 'your-api-key-here'

# Items buffered per client before a background send
MAX_BATCH_SIZE = 100

# Debug logging to ~/Desktop/desktop_insights_debug.log
TELEMETRY_DEBUG = False
DEVELOPER_USER_NAMES = []
