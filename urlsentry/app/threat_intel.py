"""
threat_intel.py

Reputation lookups for the scanner.

Sources:
    - Google Safe Browsing v4 (threatMatches:find), when SAFE_BROWSING_API_KEY is set
    - local PhishTank/OpenPhish index built by feed_updater

Public functions:
    - check_safe_browsing(url) -> {"malicious": bool, "details": ...}
    - check_threat_feeds(url) -> {"malicious": bool, "details": ...}
    - check_reputation(url) -> first malicious verdict from the sources above

None of them raise: missing keys, HTTP errors and timeouts all read as
"not malicious".
"""

import logging
import os
from typing import Optional

import requests

from ..feed_updater import load_index, normalize_url

logger = logging.getLogger("threat_intel")

SAFE_BROWSING_API_KEY = os.getenv("SAFE_BROWSING_API_KEY")
SAFE_BROWSING_URL = "https://safebrowsing.googleapis.com/v4/threatMatches:find"
REPUTATION_TIMEOUT = float(os.getenv("URLSENTRY_REPUTATION_TIMEOUT", "5"))
CLIENT_ID = "urlsentry"
CLIENT_VERSION = "1.0"
THREAT_TYPES = [
    "MALWARE",
    "SOCIAL_ENGINEERING",
    "UNWANTED_SOFTWARE",
    "POTENTIALLY_HARMFUL_APPLICATION",
]

NOT_MALICIOUS = {"malicious": False, "details": None}


def check_safe_browsing(url: str,
                        api_key: Optional[str] = None,
                        timeout: float = REPUTATION_TIMEOUT) -> dict:
    api_key = api_key or SAFE_BROWSING_API_KEY
    if not api_key:
        logger.debug("SAFE_BROWSING_API_KEY is not set; skipping Safe Browsing")
        return dict(NOT_MALICIOUS)

    body = {
        "client": {"clientId": CLIENT_ID, "clientVersion": CLIENT_VERSION},
        "threatInfo": {
            "threatTypes": THREAT_TYPES,
            "platformTypes": ["ANY_PLATFORM"],
            "threatEntryTypes": ["URL"],
            "threatEntries": [{"url": url}],
        },
    }
    try:
        resp = requests.post(SAFE_BROWSING_URL, params={"key": api_key}, json=body, timeout=timeout)
        if not resp.ok:
            logger.warning("Safe Browsing returned status %s: %s", resp.status_code, resp.text[:200])
            return dict(NOT_MALICIOUS)
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Safe Browsing check failed: %s", e)
        return dict(NOT_MALICIOUS)

    matches = data.get("matches") if isinstance(data, dict) else None
    if matches:
        return {"malicious": True, "details": {"source": "Google Safe Browsing", "matches": matches}}
    return dict(NOT_MALICIOUS)


def check_threat_feeds(url: str, index: Optional[dict] = None) -> dict:
    """Look the normalized URL up in the local feed index."""
    if index is None:
        index = load_index()
    if not index:
        return dict(NOT_MALICIOUS)
    hit = index.get(normalize_url(url))
    if hit:
        return {"malicious": True, "details": {"source": hit.get("feed"), "entry": hit.get("entry")}}
    return dict(NOT_MALICIOUS)


def check_reputation(url: str) -> dict:
    for check in (check_safe_browsing, check_threat_feeds):
        try:
            verdict = check(url)
        except Exception:
            logger.exception("Reputation source %s failed", check.__name__)
            continue
        if verdict.get("malicious"):
            return verdict
    return dict(NOT_MALICIOUS)
