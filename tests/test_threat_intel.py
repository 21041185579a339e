import pytest
import requests

from urlsentry import feed_updater
from urlsentry.app import threat_intel


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload if payload is not None else {}
        self.text = str(self._payload)

    def json(self):
        return self._payload


@pytest.fixture
def post_calls(monkeypatch):
    calls = []
    outcome = {}

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        if "error" in outcome:
            raise outcome["error"]
        return outcome["response"]

    monkeypatch.setattr(threat_intel.requests, "post", fake_post)
    return calls, outcome


def test_safe_browsing_without_key_is_skipped(post_calls, monkeypatch):
    calls, _ = post_calls
    monkeypatch.setattr(threat_intel, "SAFE_BROWSING_API_KEY", None)
    assert threat_intel.check_safe_browsing("http://example.com/") == {"malicious": False, "details": None}
    assert calls == []


def test_safe_browsing_match(post_calls):
    calls, outcome = post_calls
    matches = [{"threatType": "SOCIAL_ENGINEERING", "threat": {"url": "http://bad.example/"}}]
    outcome["response"] = FakeResponse(200, {"matches": matches})

    verdict = threat_intel.check_safe_browsing("http://bad.example/", api_key="k")
    assert verdict["malicious"] is True
    assert verdict["details"]["matches"] == matches

    url, kwargs = calls[0]
    assert url == threat_intel.SAFE_BROWSING_URL
    assert kwargs["params"] == {"key": "k"}
    assert kwargs["json"]["threatInfo"]["threatEntries"] == [{"url": "http://bad.example/"}]
    assert kwargs["timeout"] == threat_intel.REPUTATION_TIMEOUT


def test_safe_browsing_no_match(post_calls):
    _, outcome = post_calls
    outcome["response"] = FakeResponse(200, {})
    assert threat_intel.check_safe_browsing("http://ok.example/", api_key="k")["malicious"] is False


@pytest.mark.parametrize("failure", [
    {"response": FakeResponse(403, {"error": "bad key"})},
    {"error": requests.Timeout("slow")},
    {"error": requests.ConnectionError("down")},
])
def test_safe_browsing_failures_are_not_malicious(post_calls, failure):
    _, outcome = post_calls
    outcome.update(failure)
    assert threat_intel.check_safe_browsing("http://x.example/", api_key="k") == {
        "malicious": False, "details": None}



class FakeFeedSession:
    """Serves canned feed bodies by URL; any other URL fails like a dead mirror."""

    def __init__(self, bodies):
        self.bodies = bodies
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append((url, timeout))
        if url not in self.bodies:
            raise requests.ConnectionError(url)
        return FeedResponse(self.bodies[url])


class FeedResponse(FakeResponse):
    def __init__(self, payload):
        super().__init__(200, payload)
        if isinstance(payload, str):
            self.text = payload

    def raise_for_status(self):
        pass


def test_update_index_downloads_feeds_and_lookup_uses_normalized_url(tmp_path):
    session = FakeFeedSession({
        feed_updater.PHISHTANK_URL: {"data": [
            {"url": "HTTP://Phish.Example/login/", "phish_id": "123", "verified": "yes", "details": ["x"]},
            {"phish_url": "http://legacy.example/"},
            "junk",
        ]},
        feed_updater.OPENPHISH_URL: "https://open.example/x\n\nhttp://phish.example/login\n",
    })
    path = str(tmp_path / "index.json")
    index = feed_updater.update_index(path=path, session=session)

    assert [url for url, _ in session.requested] == [feed_updater.PHISHTANK_URL, feed_updater.OPENPHISH_URL]
    assert all(timeout == feed_updater.DOWNLOAD_TIMEOUT for _, timeout in session.requested)
    assert len(index) == 3
    assert feed_updater.load_index(path) == index

    hit = threat_intel.check_threat_feeds("http://phish.example/login", index=index)
    assert hit["malicious"] is True
    assert hit["details"]["source"] == "PhishTank"
    assert hit["details"]["entry"] == {"url": "HTTP://Phish.Example/login/", "phish_id": "123", "verified": "yes"}

    assert threat_intel.check_threat_feeds("http://legacy.example", index=index)["malicious"] is True
    assert threat_intel.check_threat_feeds("https://open.example/x/", index=index)["details"]["source"] == "OpenPhish"
    assert threat_intel.check_threat_feeds("http://clean.example/", index=index)["malicious"] is False
    assert threat_intel.check_threat_feeds("http://clean.example/", index={})["malicious"] is False


def test_update_index_skips_failing_feed(tmp_path):
    session = FakeFeedSession({feed_updater.OPENPHISH_URL: "http://only-open.example/\n"})
    index = feed_updater.update_index(path=str(tmp_path / "index.json"), session=session)
    assert list(index) == ["http://only-open.example"]
    assert index["http://only-open.example"]["feed"] == "OpenPhish"


def test_earlier_feed_wins_duplicate_entries():
    index = feed_updater.build_index([
        ("PhishTank", [{"url": "http://dup.example/"}]),
        ("OpenPhish", [{"url": "http://dup.example"}]),
    ])
    assert index["http://dup.example"]["feed"] == "PhishTank"


def test_index_round_trip(tmp_path):
    path = str(tmp_path / "index.json")
    index = feed_updater.build_index([("OpenPhish", [{"url": "http://saved.example/a"}])])
    feed_updater.save_index(index, path)
    assert feed_updater.load_index(path) == index
    assert feed_updater.load_index(str(tmp_path / "missing.json")) == {}


def test_check_reputation_chains_sources(monkeypatch):
    monkeypatch.setattr(threat_intel, "check_safe_browsing", lambda url: {"malicious": False, "details": None})
    monkeypatch.setattr(threat_intel, "check_threat_feeds",
                        lambda url: {"malicious": True, "details": {"source": "OpenPhish"}})
    assert threat_intel.check_reputation("http://x.example/")["details"]["source"] == "OpenPhish"


def test_check_reputation_survives_broken_source(monkeypatch):
    def broken(url):
        raise KeyError("corrupt index")

    monkeypatch.setattr(threat_intel, "check_safe_browsing", lambda url: {"malicious": False, "details": None})
    monkeypatch.setattr(threat_intel, "check_threat_feeds", broken)
    assert threat_intel.check_reputation("http://x.example/") == {"malicious": False, "details": None}
