import os


def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _int_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(value, minimum)


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

# Attempts made to apply a verified match before giving up and escalating.
STATS_WRITE_RETRIES = _int_env("STATS_WRITE_RETRIES", 3, minimum=1)

MATCH_SUBMIT_RATE_LIMIT = os.getenv("MATCH_SUBMIT_RATE_LIMIT") or "30/minute"

DEFAULT_MATCH_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_LEADERBOARD_SIZE = 50
