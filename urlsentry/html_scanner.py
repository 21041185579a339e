# html_scanner.py
"""
HTML signal extractor: turns page HTML handed over by the caller (browser
extension, crawler) into the DomSignals the heuristic scorer understands.

Nothing is fetched here.

Primary function:
    extract_dom_signals(html: str, page_url: str) -> DomSignals
"""

import logging
import re
from typing import Any, Dict, List
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from .app.constants import PAGE_KEYWORDS
from .app.models import DomSignals

logger = logging.getLogger("html_scanner")

HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.I)


def _host(url: str) -> str:
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def analyze_forms(soup: BeautifulSoup, base_url: str) -> Dict[str, Any]:
    """Count password fields in forms and collect actions posting off-site."""
    page_host = _host(base_url)
    password_fields = 0
    external_actions: List[str] = []

    for form in soup.find_all("form"):
        password_fields += len(form.find_all("input", attrs={"type": re.compile(r"^password$", re.I)}))

        action = (form.get("action") or "").strip()
        if not action or action.lower().startswith("javascript:"):
            continue
        action_full = urljoin(base_url, action)
        action_host = _host(action_full)
        if action_host and action_host != page_host and action_full not in external_actions:
            external_actions.append(action_full)

    return {"password_fields": password_fields, "external_actions": external_actions}


def count_hidden_elements(soup: BeautifulSoup) -> int:
    count = 0
    for tag in soup.find_all(True):
        if tag.name == "input" and (tag.get("type") or "").lower() == "hidden":
            count += 1
        elif tag.has_attr("hidden"):
            count += 1
        elif HIDDEN_STYLE_RE.search(tag.get("style") or ""):
            count += 1
    return count


def find_body_keywords(soup: BeautifulSoup) -> List[str]:
    body = soup.body or soup
    text = body.get_text(" ", strip=True).lower()
    return [word for word in PAGE_KEYWORDS if word in text]


def extract_dom_signals(html: str, page_url: str) -> DomSignals:
    soup = BeautifulSoup(html or "", "html.parser")
    forms = analyze_forms(soup, page_url)
    signals = DomSignals(
        password_forms=forms["password_fields"],
        body_keywords=tuple(find_body_keywords(soup)),
        suspicious_form_actions=tuple(forms["external_actions"]),
        hidden_elements=count_hidden_elements(soup),
    )
    logger.debug("DOM signals for %s: %s", page_url, signals)
    return signals
