from datetime import datetime, timezone


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with offset."""
    return datetime.now(timezone.utc).isoformat()


def format_duration(seconds: float) -> str:
    """Format a duration as ``"<m>m <s>s"``.

    Negative or missing values are treated as zero.
    """
    if not seconds or seconds < 0:
        seconds = 0
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    return f"{minutes}m {secs}s"
