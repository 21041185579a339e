import json
import os

import pytest

# must be set before urlsentry modules read their config
os.environ["URLSENTRY_DATABASE_URL"] = "sqlite://"
os.environ["URLSENTRY_FEED_DIR"] = os.path.join(os.path.dirname(__file__), "_no_feeds")
os.environ.pop("SAFE_BROWSING_API_KEY", None)
os.environ.pop("URLSENTRY_API_KEY", None)
os.environ.pop("REDIS_URL", None)

from urlsentry.app.lists import ListStore  # noqa: E402
from urlsentry.db import UserListDB  # noqa: E402


@pytest.fixture
def curated_dir(tmp_path):
    """Write curated lists to a temp dir; call with (whitelist, blacklist) entry lists."""
    def _write(whitelist=(), blacklist=()):
        (tmp_path / "whitelist.json").write_text(json.dumps(list(whitelist)), encoding="utf-8")
        (tmp_path / "blacklist.json").write_text(json.dumps(list(blacklist)), encoding="utf-8")
        return str(tmp_path)
    return _write


@pytest.fixture
def user_db():
    db = UserListDB("sqlite://")
    db.init_db()
    return db


@pytest.fixture
def make_store(curated_dir):
    def _make(whitelist=(), blacklist=(), user_db=None, load=True):
        store = ListStore(user_db=user_db, curated_dir=curated_dir(whitelist, blacklist))
        store.load_user_lists()
        if load:
            store.load_curated()
        return store
    return _make
