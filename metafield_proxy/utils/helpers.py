from typing import Any, Optional


def parse_numeric_id(raw: Any) -> Optional[int]:
    """Parse a query-string identifier into a positive int, or None when it is not one."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        value = int(text)
    except ValueError:
        return None
    return value if value > 0 else None


def mask_token(token: Optional[str]) -> str:
    """First and last four characters of a secret, for diagnostics."""
    if not token:
        return ""
    return f"{token[:4]}…{token[-4:]}"


def truncate(text: Optional[str], limit: int = 500) -> str:
    if not text:
        return ""
    return text if len(text) <= limit else text[:limit] + "..."
