import base64
import re
import xml.etree.ElementTree as ET
from typing import Any, List, Tuple


def _safe_json_parse(response: Any):
    """Safely parse JSON response, returning dict or text on failure."""
    try:
        return response.json()
    except Exception:
        full_text = response.text if hasattr(response, "text") else str(response.content)
        # Truncate for logging purposes only
        return {"_raw_response": full_text[:2000], "_parse_error": "Not valid JSON"}


def parse_error_entries(body: str) -> List[Tuple[str, str]]:
    """
    Parse the key/value error list returned by a rejected login.

    The sessions endpoint answers failures with an XML document shaped like
    ``<entries><entry><string>message</string><string>...</string></entry></entries>``.

    Args:
        body: Raw response body

    Returns:
        List of (key, value) pairs, one per entry carrying at least two strings

    Raises:
        ET.ParseError: If the body is not XML
    """
    root = ET.fromstring(body)
    entries = []
    for entry in root.iter("entry"):
        strings = [s.text or "" for s in entry.findall("string")]
        if len(strings) >= 2:
            entries.append((strings[0], strings[1]))
    return entries


def encode_password(password: str) -> str:
    """vCenter registration expects the password base64 encoded."""
    return base64.b64encode(password.encode("utf-8")).decode("ascii")


def redact_url(url: str) -> str:
    """Mask token query parameters so a URL can be logged."""
    return re.sub(r"(refresh_token=)[^&]+", r"\1***", url)
