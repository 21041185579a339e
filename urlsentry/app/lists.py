"""
lists.py

Curated (bundled, read-only) and user (persisted, grow-only) allow/deny lists.

Reads never lock: every list is an immutable tuple and writers swap in a new
tuple under a single lock once the database write has succeeded, so a reader
always sees one consistent snapshot.

Lookup order: curated allow -> curated deny -> user allow -> user deny.
"""

import json
import logging
import os
import threading
from typing import Dict, Iterable, NamedTuple, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from .lexical import normalize_domain, strip_www
from .models import ListEntry, Status
from ..db import ALLOW, DENY, UserListDB

logger = logging.getLogger("lists")

CURATED_DIR = os.getenv(
    "URLSENTRY_CURATED_DIR",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data"),
)
WHITELIST_FILE = "whitelist.json"
BLACKLIST_FILE = "blacklist.json"

REASON_CURATED_ALLOW = "Domain in global whitelist"
REASON_CURATED_DENY = "In global blacklist"
REASON_USER_ALLOW = "Previously marked safe by user"
REASON_USER_DENY = "Previously marked unsafe by user"

LIST_ALIASES = {
    "allow": ALLOW,
    "whitelist": ALLOW,
    "deny": DENY,
    "blacklist": DENY,
}


class ListStoreError(Exception):
    """Raised when a user-list write cannot be completed."""


class ListMatch(NamedTuple):
    status: Status
    reason: str
    source: str  # "curated" or "user"


def entry_matches(entry: ListEntry, domain: str, url: str) -> bool:
    if entry.domain_root and strip_www(normalize_domain(entry.domain_root)) == domain:
        return True
    # full URLs are compared verbatim
    return bool(entry.full_url) and entry.full_url == url


def find_entry(entries: Iterable[ListEntry], domain: str, url: str) -> Optional[ListEntry]:
    for entry in entries:
        if entry_matches(entry, domain, url):
            return entry
    return None


def load_entries(path: str) -> Tuple[ListEntry, ...]:
    """Read a curated JSON list. Missing or broken files read as empty."""
    if not os.path.exists(path):
        logger.warning("Curated list not found at %s", path)
        return ()
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, ValueError) as e:
        logger.error("Failed to load curated list %s: %s", path, e)
        return ()

    entries = []
    for item in raw if isinstance(raw, list) else []:
        entry = ListEntry.from_dict(item) if isinstance(item, dict) else None
        if entry is None:
            logger.warning("Skipping curated entry without domain_root or url in %s: %r", path, item)
            continue
        entries.append(entry)
    return tuple(entries)


class ListStore:
    def __init__(self, user_db: Optional[UserListDB] = None, curated_dir: str = CURATED_DIR):
        self.user_db = user_db
        self.curated_dir = curated_dir
        self._write_lock = threading.Lock()
        self._loaded = threading.Event()
        # (allow, deny) pairs, each replaced as a whole
        self._curated: Tuple[Tuple[ListEntry, ...], Tuple[ListEntry, ...]] = ((), ())
        self._user: Tuple[Tuple[str, ...], Tuple[str, ...]] = ((), ())

    # -- loading ---------------------------------------------------------

    def load_curated(self) -> None:
        try:
            allow = load_entries(os.path.join(self.curated_dir, WHITELIST_FILE))
            deny = load_entries(os.path.join(self.curated_dir, BLACKLIST_FILE))
            self._curated = (allow, deny)
            logger.info("Curated lists loaded (allow=%d, deny=%d)", len(allow), len(deny))
        finally:
            self._loaded.set()

    def load_curated_async(self) -> threading.Thread:
        """Load curated lists in the background; until done they read as empty."""
        thread = threading.Thread(target=self.load_curated, name="curated-lists", daemon=True)
        thread.start()
        return thread

    def ready(self) -> bool:
        return self._loaded.is_set()

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        return self._loaded.wait(timeout)

    def load_user_lists(self) -> None:
        if self.user_db is None:
            return
        try:
            self.user_db.init_db()
            lists = self.user_db.load_lists()
        except SQLAlchemyError:
            logger.exception("Failed to load user lists; starting with empty lists")
            return
        with self._write_lock:
            self._user = (tuple(lists[ALLOW]), tuple(lists[DENY]))

    # -- reads -----------------------------------------------------------

    def curated_lists(self) -> Dict[str, Tuple[ListEntry, ...]]:
        allow, deny = self._curated
        return {ALLOW: allow, DENY: deny}

    def user_lists(self) -> Dict[str, Tuple[str, ...]]:
        allow, deny = self._user
        return {ALLOW: allow, DENY: deny}

    def resolve(self, domain: str, url: str) -> Optional[ListMatch]:
        """First list match for (domain, url), or None."""
        curated_allow, curated_deny = self._curated
        if find_entry(curated_allow, domain, url):
            return ListMatch(Status.WHITELISTED, REASON_CURATED_ALLOW, "curated")

        entry = find_entry(curated_deny, domain, url)
        if entry:
            return ListMatch(Status.BLACKLISTED, entry.reason or REASON_CURATED_DENY, "curated")

        user_allow, user_deny = self._user
        if domain in user_allow:
            return ListMatch(Status.WHITELISTED, REASON_USER_ALLOW, "user")
        if domain in user_deny:
            return ListMatch(Status.BLACKLISTED, REASON_USER_DENY, "user")
        return None

    # -- writes ----------------------------------------------------------

    @staticmethod
    def _normalize_value(value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ListStoreError("empty value")
        return normalize_domain(value.strip())

    def add_entry(self, list_name: str, value: str) -> str:
        """
        Append the normalized value to a user list if absent and return it.

        A domain lives on at most one user list, so adding it to one list takes
        it off the other in the same database transaction and snapshot swap.
        """
        name = LIST_ALIASES.get(list_name)
        if name is None:
            raise ListStoreError(f"unknown list '{list_name}'")
        domain = self._normalize_value(value)

        with self._write_lock:
            allow, deny = self._user
            target, other = (allow, deny) if name == ALLOW else (deny, allow)
            if domain in target and domain not in other:
                return domain
            if self.user_db is not None:
                try:
                    self.user_db.move_to(name, domain)
                except SQLAlchemyError as e:
                    logger.exception("Failed to add %s to %s list", domain, name)
                    raise ListStoreError(str(e)) from e
            if domain not in target:
                target = target + (domain,)
            other = tuple(d for d in other if d != domain)
            self._user = (target, other) if name == ALLOW else (other, target)
        logger.info("Added %s to user %s list", domain, name)
        return domain

    def move_to_deny(self, value: str) -> str:
        """Remove the value from the allow list and add it to the deny list."""
        return self.add_entry(DENY, value)
