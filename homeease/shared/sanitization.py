import html
from typing import Any, Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape HTML special characters so user text renders as text.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=True)


def sanitize_dict(data: dict[str, Any]) -> dict[str, Any]:
    """
    Escape every string value in a dictionary, recursing into nested
    dicts and lists. Non-string values are returned untouched.
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if isinstance(value, str):
            sanitized[key] = sanitize_string(value)
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value)
        elif isinstance(value, list):
            sanitized[key] = [
                (
                    sanitize_dict(item)
                    if isinstance(item, dict)
                    else sanitize_string(item) if isinstance(item, str) else item
                )
                for item in value
            ]
        else:
            sanitized[key] = value

    return sanitized
