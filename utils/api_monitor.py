from urllib.parse import urlparse

from utils.logger import get_logger

api_log = get_logger("API_MONITOR")   # → data/logs/api_monitor.log when LOG_TO_FILE


# ============================
# HELPERS
# ============================

def short_url(url: str) -> str:
    """Return domain+path only — no query params (search terms stay out of logs)."""
    try:
        p = urlparse(url)
        return f"{p.netloc}{p.path}"
    except ValueError:
        return url[:80]


def infer_provider(url: str) -> str:
    """Infer provider name from URL."""
    u = url.lower()
    if "tiktok" in u:     return "tiktok"
    if "twitter" in u:    return "twitter"
    if "rapidapi" in u:   return "rapidapi"
    return "http"


def status_tag(status: int, error: str = "") -> str:
    if error:
        return f"ERR={error[:60]}"
    if status == 429:
        return "RATE_LIMIT(429)"
    if status == 403:
        return "FORBIDDEN(403)"
    if status >= 500:
        return f"SERVER_ERR({status})"
    if status >= 400:
        return f"CLIENT_ERR({status})"
    if status == 0:
        return "TIMEOUT/CONN"
    return f"OK({status})"


def log_api_call(method: str, url: str, status: int, latency_ms: float,
                 provider: str = "", key_id: str = "", error: str = "", note: str = ""):
    """
    Write one structured line to the API_MONITOR log.

    Format:
      METHOD | PROVIDER | endpoint | STATUS_TAG | 42ms [| key=XX] [| note]
    """
    prov = provider or infer_provider(url)

    parts = [method, prov, short_url(url), status_tag(status, error), f"{latency_ms:.0f}ms"]
    if key_id:
        parts.append(f"key={key_id}")
    if note:
        parts.append(note)

    msg = " | ".join(parts)

    if error or status >= 500:
        api_log.error(msg)
    elif status >= 400:
        api_log.warning(msg)
    else:
        api_log.info(msg)
