"""
scanner.py

Decision pipeline: expand -> certificate -> lists -> reputation -> heuristics.

Each stage either returns a final verdict or hands over to the next one.
Collaborator failures never end a scan; analyze() always answers.
"""

import logging
import sys
from typing import Callable, Optional

from .heuristics import BASE_SCORE, analyze_url
from .lexical import parse_url
from .lists import ListMatch, ListStore, ListStoreError
from .models import AnalysisRequest, AnalysisResult, CertificateInfo, Status
from .redirects import expand_url
from .ssl_check import no_certificate_info
from .threat_intel import check_reputation

logger = logging.getLogger("scanner")

LIST_SCORES = {Status.WHITELISTED: 0, Status.BLACKLISTED: 100}
REASON_REPUTATION = "Listed by reputation service"
REASON_NO_URL = "No URL"
REASON_FAILED = "Analysis could not be completed"

CertificateProvider = Callable[[Optional[str]], Optional[CertificateInfo]]
ReputationCheck = Callable[[str], dict]


def extract_domain(url: str) -> str:
    parsed = parse_url(url)
    return parsed.host if parsed else url


class Analyzer:
    """Entry point used by the API and the extension bridge."""

    def __init__(self,
                 lists: ListStore,
                 expand: Callable[[str], str] = expand_url,
                 certificate_provider: CertificateProvider = no_certificate_info,
                 reputation: ReputationCheck = check_reputation):
        self.lists = lists
        self.expand = expand
        self.certificate_provider = certificate_provider
        self.reputation = reputation

    # -- stages ----------------------------------------------------------

    def _expand(self, url: str) -> str:
        try:
            return self.expand(url) or url
        except Exception:
            logger.exception("Redirect expansion failed for %s", url)
            return url

    def _certificate(self, request: AnalysisRequest, url: str) -> Optional[CertificateInfo]:
        if request.certificate_info is not None:
            return request.certificate_info
        context_id = request.context_id
        if context_id is None:
            parsed = parse_url(url)
            context_id = parsed.hostname if parsed else None
        try:
            return self.certificate_provider(context_id)
        except Exception:
            logger.warning("Certificate lookup failed for %s", context_id, exc_info=True)
            return None

    def _list_match(self, domain: str, url: str) -> Optional[ListMatch]:
        try:
            return self.lists.resolve(domain, url)
        except Exception:
            logger.exception("List lookup failed for %s; treating as no match", domain)
            return None

    def _reputation(self, url: str) -> dict:
        try:
            verdict = self.reputation(url)
        except Exception:
            logger.exception("Reputation check failed for %s", url)
            return {"malicious": False, "details": None}
        return verdict if isinstance(verdict, dict) else {"malicious": False, "details": None}

    # -- public ----------------------------------------------------------

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        url = (request.raw_url or "").strip()
        if not url:
            return AnalysisResult(url, "", Status.UNKNOWN, BASE_SCORE, (REASON_NO_URL,))
        try:
            return self._analyze(request, url)
        except Exception:
            logger.exception("Analysis failed for %s", url)
            return AnalysisResult(url, extract_domain(url), Status.UNKNOWN, BASE_SCORE, (REASON_FAILED,))

    def _analyze(self, request: AnalysisRequest, url: str) -> AnalysisResult:
        expanded = self._expand(url)
        cert_info = self._certificate(request, expanded)
        domain = extract_domain(expanded)

        match = self._list_match(domain, expanded)
        if match is not None:
            logger.info("%s matched %s list: %s", domain, match.source, match.status.value)
            return AnalysisResult(expanded, domain, match.status, LIST_SCORES[match.status], (match.reason,))

        verdict = self._reputation(expanded)
        if verdict.get("malicious"):
            logger.info("%s flagged by reputation service", expanded)
            return AnalysisResult(expanded, domain, Status.KNOWN_PHISH, 100, (REASON_REPUTATION,),
                                  details=verdict.get("details"))

        heur = analyze_url(expanded, request.dom_signals, cert_info)
        return AnalysisResult(
            expanded,
            domain,
            heur["status"],
            heur["score"],
            tuple(str(r) for r in heur["reasons"]),
        )

    def add_to_allow_list(self, value: str) -> dict:
        try:
            stored = self.lists.add_entry("allow", value)
        except ListStoreError as e:
            return {"ok": False, "error": str(e)}
        return {"ok": True, "value": stored}

    def mark_unsafe(self, value: str) -> dict:
        try:
            stored = self.lists.move_to_deny(value)
        except ListStoreError as e:
            return {"ok": False, "error": str(e)}
        return {"ok": True, "value": stored}


def scan_url(url: str, lists: Optional[ListStore] = None) -> AnalysisResult:
    """One-off scan with curated lists only."""
    if lists is None:
        lists = ListStore()
        lists.load_curated()
    return Analyzer(lists).analyze(AnalysisRequest(raw_url=url))


# CLI testing
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    test_urls = sys.argv[1:] or [
        "http://example.com",
        "https://www.google.com",
        "https://accounts-google-secure.tk/confirm",
    ]
    store = ListStore()
    store.load_curated()
    for u in test_urls:
        print("=" * 80)
        res = scan_url(u, store)
        print(res.to_dict())
