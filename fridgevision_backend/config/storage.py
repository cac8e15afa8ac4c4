"""Bucket names and limits for persisted profile data."""

BUCKET_KEYS = {
    "settings": "fridgevision_settings",
    "preferences": "fridgevision_preferences",
    "favorites": "fridgevision_favorites",
    "history": "fridgevision_history",
    "api_key": "fridgevision_api_key",
}

# Most recent recipes kept in history; older entries are evicted.
HISTORY_LIMIT = 20
