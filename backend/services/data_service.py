from core.database import db_fetch_recent_logs, db_fetch_action_counts
import datetime
import time

# --- In-Memory Cache for Dashboard Stats ---
_cache = {
    "stats": None,
    "expiry": 0
}
CACHE_TTL = 5  # 5 seconds TTL for high-traffic dashboard stats

def format_timestamp(value) -> str:
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    return str(value or "")

def fetch_recent_logs(limit=100, action=None):
    return db_fetch_recent_logs(limit, action)

def get_stats():
    now_ts = time.time()
    if _cache["stats"] is not None and now_ts < _cache["expiry"]:
        return _cache["stats"]

    counts = {row["action"]: int(row["total"]) for row in db_fetch_action_counts()}
    stats = {
        "total_analyzed": sum(counts.values()),
        "total_allowed": counts.get("ALLOW", 0),
        "soft_blocked": counts.get("SOFT-BLOCK", 0),
        "total_blocked": counts.get("HARD-BLOCK", 0),
    }

    # Update Cache
    _cache["stats"] = stats
    _cache["expiry"] = now_ts + CACHE_TTL

    return stats
