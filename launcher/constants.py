"""
launcher/constants.py

Fixed values used by the launch orchestrator.
Timing and retry numbers in business logic must be referenced from this module.
"""

# ── Connectivity retry ───────────────────────────────────────
MAX_RETRY_COUNT: int = 3
RETRY_DELAY_SECONDS: float = 3.0

# ── Token exchange ───────────────────────────────────────────
TOKEN_EXCHANGE_TIMEOUT_SECONDS: float = 5.0
SENTINEL_TOKEN: str = "token"
APNS_TOKEN_KEY: str = "apns_token"
ATT_TOKEN_KEY: str = "att_token"

# ── Presentation pacing ──────────────────────────────────────
EMIT_DELAY_SECONDS: float = 1.0

# ── Unlock gate ──────────────────────────────────────────────
UNLOCK_DATE_FORMAT: str = "%Y-%m-%d"

# ── Destination building ─────────────────────────────────────
# "/?data=" and "?data=", kept percent-encoded like the configured base
DATA_SEPARATOR_ENCODED: str = "%2F%3F%64%61%74%61%3D"
FALLBACK_DATA_SEPARATOR_ENCODED: str = "%3F%64%61%74%61%3D"
FALLBACK_QUERY: str = "apns_token=token&att_token=token"

# ── Persisted keys ───────────────────────────────────────────
HAS_LAUNCHED_BEFORE_KEY: str = "hasLaunchedBefore"
STORED_DESTINATION_KEY: str = "receivedDestination"
