"""
redirects.py

Expands known link-shortener URLs to their destination.

Only one hop is resolved: a shortener pointing at another shortener comes back
as the second shortener's URL and is scored as such.
"""

import logging
import os
from urllib.parse import urljoin

import requests

from .constants import SHORTENERS
from .lexical import parse_url

logger = logging.getLogger("redirects")

REDIRECT_TIMEOUT = float(os.getenv("URLSENTRY_REDIRECT_TIMEOUT", "5"))
USER_AGENT = "urlsentry/1.0"


def is_shortener(url: str) -> bool:
    parsed = parse_url(url)
    return parsed is not None and parsed.hostname in SHORTENERS


def expand_url(url: str, timeout: float = REDIRECT_TIMEOUT) -> str:
    """
    Return the Location a shortener redirects to, or url unchanged.
    No request is made for non-shortener hosts.
    """
    if not is_shortener(url):
        return url

    try:
        resp = requests.head(
            url,
            allow_redirects=False,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        )
    except requests.RequestException as e:
        logger.debug("Redirect probe failed for %s: %s", url, e)
        return url

    location = resp.headers.get("Location")
    if 300 <= resp.status_code < 400 and location:
        expanded = urljoin(url, location)
        logger.info("Expanded %s -> %s", url, expanded)
        return expanded
    return url
