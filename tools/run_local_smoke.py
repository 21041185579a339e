"""
Quick local smoke test: run the full decision pipeline (curated lists, no user
lists, no network reputation unless SAFE_BROWSING_API_KEY is set) on a few
sample URLs and print one JSON line per URL.

Run: python3 tools/run_local_smoke.py [url ...]
"""
import json
import logging
import sys

from urlsentry.app.lists import ListStore
from urlsentry.app.models import AnalysisRequest
from urlsentry.app.scanner import Analyzer

SAMPLES = [
    "http://example.com",
    "https://github.com",
    "https://accounts-google-secure.tk/confirm",
    "http://paypa1-secure-login.com/signin",
    "http://192.168.0.1/login?verify=true",
    "https://xn--pypal-4ve.com/account/update",
]


def main():
    logging.basicConfig(level=logging.WARNING)
    store = ListStore()
    store.load_curated()
    analyzer = Analyzer(store)

    for u in sys.argv[1:] or SAMPLES:
        result = analyzer.analyze(AnalysisRequest(raw_url=u))
        print(json.dumps(result.to_dict()))


if __name__ == '__main__':
    main()
