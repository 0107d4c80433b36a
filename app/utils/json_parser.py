# app/utils/json_parser.py
"""
Helpers for reading gate scanner payloads.
Scanners send either a JSON object or a bare text body holding only the tag id.
"""

import json
from typing import Optional


def safe_parse_json(raw_body: bytes) -> Optional[dict]:
    """Parse JSON bytes safely. Returns None on error or when the body is not an object."""
    try:
        data = json.loads(raw_body.decode("utf-8", errors="replace"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


def is_json_body(raw_body: bytes, content_type: str = "") -> bool:
    """Detect if the raw body is JSON (by content-type or by inspecting first byte)."""
    if "json" in content_type.lower():
        return True
    stripped = raw_body.lstrip()
    return stripped.startswith(b"{") or stripped.startswith(b"[")


def read_bare_text(raw_body: bytes) -> Optional[str]:
    """Decode a text/plain body into a stripped string. Empty bodies give None."""
    text = raw_body.decode("utf-8", errors="replace").strip()
    return text or None
