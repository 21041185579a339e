# feed_updater.py
"""
Feed updater: downloads PhishTank and OpenPhish, normalizes their URLs and
writes an index that threat_intel.check_threat_feeds() looks URLs up in.

Run:
    python -m urlsentry.feed_updater
"""

import json
import logging
import os
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple
from urllib.parse import urlsplit

import requests

# Config
FEED_DIR = os.getenv("URLSENTRY_FEED_DIR", "feeds")
PHISHTANK_URL = "http://data.phishtank.com/data/online-valid.json"
OPENPHISH_URL = "https://openphish.com/feed.txt"
INDEX_FILE = os.path.join(FEED_DIR, "index.json")
DOWNLOAD_TIMEOUT = 30
PHISHTANK_FIELDS = ("url", "phish_id", "verified", "target")

logger = logging.getLogger("feed_updater")

_cache_lock = threading.Lock()
_cache = {"path": None, "mtime": None, "index": {}}


def ensure_feed_dir() -> None:
    os.makedirs(FEED_DIR, exist_ok=True)


def normalize_url(url: str) -> str:
    """Lowercase scheme and host, drop trailing slash and fragment, keep the query."""
    url = url.strip()
    try:
        parsed = urlsplit(url if "://" in url else "http://" + url)
    except ValueError:
        return url.lower()
    scheme = parsed.scheme.lower()
    netloc = parsed.netloc.lower()
    path = parsed.path.rstrip("/")
    query = f"?{parsed.query}" if parsed.query else ""
    return f"{scheme}://{netloc}{path}{query}"


class FeedSource(NamedTuple):
    name: str
    url: str
    parse: Callable[[requests.Response], List[Dict[str, Any]]]


def parse_phishtank(resp: requests.Response) -> List[Dict[str, Any]]:
    """PhishTank serves a JSON array, or an object wrapping one."""
    data = resp.json()
    if isinstance(data, dict):
        data = next((v for v in data.values() if isinstance(v, list)), [])
    entries = []
    for item in data:
        if not isinstance(item, dict):
            continue
        url = item.get("url") or item.get("phish_url")
        if url:
            entry = {k: item[k] for k in PHISHTANK_FIELDS if k in item}
            entry["url"] = url
            entries.append(entry)
    return entries


def parse_openphish(resp: requests.Response) -> List[Dict[str, Any]]:
    return [{"url": line.strip()} for line in resp.text.splitlines() if line.strip()]


# Highest priority first: a URL listed by several feeds keeps the first feed's entry.
FEEDS = (
    FeedSource("PhishTank", PHISHTANK_URL, parse_phishtank),
    FeedSource("OpenPhish", OPENPHISH_URL, parse_openphish),
)


def fetch_feed(source: FeedSource, session: Optional[requests.Session] = None) -> List[Dict[str, Any]]:
    logger.info("Downloading %s feed...", source.name)
    resp = (session or requests).get(source.url, timeout=DOWNLOAD_TIMEOUT)
    resp.raise_for_status()
    entries = source.parse(resp)
    logger.info("%s entries: %d", source.name, len(entries))
    return entries


def build_index(feeds: Iterable[Tuple[str, Iterable[Dict[str, Any]]]]) -> dict:
    """Map normalized URL -> {"feed", "entry"} from (feed name, entries) pairs, earliest feed first."""
    index = {}
    for name, entries in feeds:
        for entry in entries:
            index.setdefault(normalize_url(entry["url"]), {"feed": name, "entry": entry})
    return index


def save_index(index: dict, path: str = INDEX_FILE) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        json.dump({"updated_at": int(time.time()), "index": index}, fh)
    logger.info("Saved index to %s (entries=%d)", path, len(index))


def load_index(path: str = INDEX_FILE) -> dict:
    """Return the feed index, re-reading the file only when it changes."""
    try:
        mtime = os.path.getmtime(path)
    except OSError:
        return {}

    with _cache_lock:
        if _cache["path"] == path and _cache["mtime"] == mtime:
            return _cache["index"]
        try:
            with open(path, "r", encoding="utf-8") as fh:
                index = json.load(fh).get("index", {})
        except (OSError, ValueError, AttributeError) as e:
            logger.warning("Could not read feed index %s: %s", path, e)
            index = {}
        _cache.update(path=path, mtime=mtime, index=index)
        return index


def update_index(sources: Iterable[FeedSource] = FEEDS,
                 path: str = INDEX_FILE,
                 session: Optional[requests.Session] = None) -> dict:
    """Download every source and rewrite the index; a failing source contributes nothing."""
    feeds = []
    for source in sources:
        try:
            feeds.append((source.name, fetch_feed(source, session)))
        except (requests.RequestException, ValueError) as e:
            logger.exception("Failed to download %s: %s", source.name, e)
    index = build_index(feeds)
    save_index(index, path)
    return index


def main():
    logging.basicConfig(level=logging.INFO)
    ensure_feed_dir()
    index = update_index()
    logger.info("Feed update complete. total=%d", len(index))


if __name__ == "__main__":
    main()
