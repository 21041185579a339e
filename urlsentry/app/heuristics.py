"""
heuristics.py

Explainable, additive URL heuristic scorer.

Public function:
    analyze_url(url, dom_signals=None, cert_info=None) -> dict

Every rule that fires appends a ScoreReason (message, weight) in the order the
rules run, so the returned reasons read as an audit trail of the score.

Example:
    >>> analyze_url("http://192.168.1.10/login")["score"]
    56
"""

import re
from typing import List, Optional

from .constants import BRANDS, SHORTENERS, SUSPICIOUS_TLDS, SUSPICIOUS_WORDS
from .lexical import levenshtein, parse_url, shannon_entropy
from .models import CertificateInfo, DomSignals, ScoreReason, Status

# Configuration: thresholds and weights (tweakable)
BASE_SCORE = 30

WEIGHT_HTTPS = -10
WEIGHT_NO_HTTPS = 10
SHORT_CERT_DAYS = 95
WEIGHT_SHORT_CERT = 15
LONG_CERT_DAYS = 365
WEIGHT_LONG_CERT = -10

MAX_LENGTH_SUSPICIOUS = 75
WEIGHT_LONG_URL = 12
ENTROPY_THRESHOLD = 4.0
WEIGHT_HIGH_ENTROPY = 10
SUSPICIOUS_DOT_COUNT = 3
WEIGHT_MANY_SUBDOMAINS = 10
WEIGHT_HYPHEN = 6
WEIGHT_SHORTENER = 18
WEIGHT_SUSPICIOUS_TLD = 6
WEIGHT_AT_SIGN = 30
SYMBOL_DENSITY_THRESHOLD = 0.25
SYMBOL_DENSITY_MIN_LENGTH = 20
WEIGHT_SYMBOL_DENSITY = 10
WEIGHT_PUNYCODE = 18
MAX_BRAND_DISTANCE = 2
WEIGHT_BRAND = 25
WEIGHT_ONE_KEYWORD = 6
WEIGHT_MANY_KEYWORDS = 10
MAX_KEYWORDS_REPORTED = 3
WEIGHT_MALFORMED = 6

WEIGHT_PASSWORD_FORM = 8
WEIGHT_BODY_KEYWORDS = 8
WEIGHT_EXTERNAL_FORM = 30
MAX_HIDDEN_ELEMENTS = 20
WEIGHT_HIDDEN_ELEMENTS = 10

SYMBOL_RE = re.compile(r"[^\w/]")


def _clamp(score: int) -> int:
    return max(0, min(100, score))


def _transport_rules(scheme: str, cert_info: Optional[CertificateInfo]) -> List[ScoreReason]:
    reasons = []
    if scheme == "https":
        reasons.append(ScoreReason("Uses HTTPS", WEIGHT_HTTPS))
        days = cert_info.validity_duration_days if cert_info else None
        if days:
            if days <= SHORT_CERT_DAYS:
                reasons.append(ScoreReason(f"Short SSL certificate validity ({days} days)", WEIGHT_SHORT_CERT))
            elif days >= LONG_CERT_DAYS:
                reasons.append(ScoreReason(f"Long SSL certificate validity ({days} days)", WEIGHT_LONG_CERT))
    elif scheme == "http":
        reasons.append(ScoreReason("No HTTPS", WEIGHT_NO_HTTPS))
    return reasons


def find_impersonated_brands(host: str) -> List[str]:
    """Brands whose name sits in a host label that is a near-miss of the brand."""
    flagged = []
    for label in host.split("."):
        for brand in BRANDS:
            if brand in flagged or brand not in label:
                continue
            if host.endswith(f".{brand}.com"):
                continue
            if levenshtein(label, brand) <= MAX_BRAND_DISTANCE:
                flagged.append(brand)
    return flagged


def find_keywords(url: str) -> List[str]:
    lower = url.lower()
    return [word for word in SUSPICIOUS_WORDS if word in lower]


def _url_rules(url: str, cert_info: Optional[CertificateInfo]) -> List[ScoreReason]:
    parsed = parse_url(url)
    if parsed is None:
        return [ScoreReason("Malformed URL", WEIGHT_MALFORMED)]

    host = parsed.host
    path_and_query = parsed.path_and_query
    reasons = _transport_rules(parsed.scheme, cert_info)

    if len(url) > MAX_LENGTH_SUSPICIOUS:
        reasons.append(ScoreReason(f"Long URL (>{MAX_LENGTH_SUSPICIOUS})", WEIGHT_LONG_URL))

    if shannon_entropy(host + path_and_query) >= ENTROPY_THRESHOLD:
        reasons.append(ScoreReason("High URL entropy", WEIGHT_HIGH_ENTROPY))

    if host.count(".") >= SUSPICIOUS_DOT_COUNT:
        reasons.append(ScoreReason("Many subdomains", WEIGHT_MANY_SUBDOMAINS))

    if "-" in host:
        reasons.append(ScoreReason("Hyphen in domain", WEIGHT_HYPHEN))

    if host in SHORTENERS:
        reasons.append(ScoreReason("URL shortener", WEIGHT_SHORTENER))

    tld = host.rsplit(".", 1)[-1]
    if tld in SUSPICIOUS_TLDS:
        reasons.append(ScoreReason(f"Suspicious TLD .{tld}", WEIGHT_SUSPICIOUS_TLD))

    if "@" in url:
        reasons.append(ScoreReason("Contains '@'", WEIGHT_AT_SIGN))

    density = len(SYMBOL_RE.findall(path_and_query)) / max(1, len(path_and_query))
    if density > SYMBOL_DENSITY_THRESHOLD and len(path_and_query) > SYMBOL_DENSITY_MIN_LENGTH:
        reasons.append(ScoreReason("High symbol density in path/query", WEIGHT_SYMBOL_DENSITY))

    if "xn--" in host:
        reasons.append(ScoreReason("IDN/punycode domain", WEIGHT_PUNYCODE))

    for brand in find_impersonated_brands(host):
        reasons.append(ScoreReason(f"Brand impersonation detected: '{brand}'", WEIGHT_BRAND))

    hits = find_keywords(url)
    if len(hits) >= 2:
        shown = ", ".join(hits[:MAX_KEYWORDS_REPORTED])
        reasons.append(ScoreReason(f"Suspicious keywords in URL: {shown}", WEIGHT_MANY_KEYWORDS))
    elif len(hits) == 1:
        reasons.append(ScoreReason(f"Keyword '{hits[0]}' in URL", WEIGHT_ONE_KEYWORD))

    return reasons


def _dom_rules(signals: Optional[DomSignals]) -> List[ScoreReason]:
    if signals is None:
        return []
    reasons = []
    if signals.password_forms > 0:
        reasons.append(ScoreReason("Password form present", WEIGHT_PASSWORD_FORM))
    if signals.body_keywords:
        found = ", ".join(signals.body_keywords)
        reasons.append(ScoreReason(f"Phishing keywords in body: {found}", WEIGHT_BODY_KEYWORDS))
    if signals.suspicious_form_actions:
        target = signals.suspicious_form_actions[0]
        reasons.append(ScoreReason(f"Form submits data to external domain: {target}", WEIGHT_EXTERNAL_FORM))
    if signals.hidden_elements > MAX_HIDDEN_ELEMENTS:
        reasons.append(ScoreReason(
            f"High number of hidden elements ({signals.hidden_elements})", WEIGHT_HIDDEN_ELEMENTS
        ))
    return reasons


def analyze_url(url: str,
                dom_signals: Optional[DomSignals] = None,
                cert_info: Optional[CertificateInfo] = None) -> dict:
    """
    Score a URL (plus optional page signals and certificate info).

    Returns a dict:
    {
      "url": "<input>",
      "score": 42,                      # clamped to 0..100
      "status": Status.SUSPICIOUS,      # safe / suspicious / dangerous, or unknown for an empty URL
      "reasons": [ScoreReason("Uses HTTPS", -10), ...]
    }
    """
    if not url:
        return {
            "url": url,
            "score": BASE_SCORE,
            "status": Status.UNKNOWN,
            "reasons": [ScoreReason("No URL", 0)],
        }

    reasons = _url_rules(url, cert_info) + _dom_rules(dom_signals)
    score = _clamp(BASE_SCORE + sum(r.weight for r in reasons))

    return {
        "url": url,
        "score": score,
        "status": Status.from_score(score),
        "reasons": reasons,
    }
