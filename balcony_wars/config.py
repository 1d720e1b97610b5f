"""
Single place for default match/server configuration.
Change DEFAULT_RULESET_ID to switch which ruleset is used when a match is started without one.
"""
import os

# Ruleset id from data/rulesets/<id>/ (ruleset.json + classes.json).
DEFAULT_RULESET_ID = os.environ.get("BALCONY_WARS_RULESET", "default")

API_HOST = os.environ.get("BALCONY_WARS_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("BALCONY_WARS_PORT", "8000"))

# Presentation layer dev servers allowed to call the local API.
CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174", "http://localhost:3000"]

# In-memory matches kept by the API; finished matches are evicted first, then the oldest.
MAX_MATCHES = int(os.environ.get("BALCONY_WARS_MAX_MATCHES", "100"))
