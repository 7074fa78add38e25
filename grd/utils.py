"""Small shared helpers."""

from datetime import datetime


def format_size(size_bytes: int) -> str:
    """Format a byte count for display.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string like "512 B", "1.5 KB" or "15.2 MB"

    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / 1024 / 1024:.1f} MB"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp as returned by the GitHub API.

    Args:
        value: Timestamp such as "2024-01-01T12:00:00Z", or None

    Returns:
        Timezone-aware datetime, or None if missing or unparsable

    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def split_terms(raw: str | None) -> list[str]:
    """Split a comma-separated option into trimmed, lowercase terms.

    Empty items are dropped and duplicates removed, preserving order.
    """
    if not raw:
        return []
    seen: set[str] = set()
    terms = []
    for item in raw.split(","):
        term = item.strip().lower()
        if term and term not in seen:
            seen.add(term)
            terms.append(term)
    return terms
