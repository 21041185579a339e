import pytest

from urlsentry.app.heuristics import analyze_url
from urlsentry.app.lexical import levenshtein, normalize_domain, parse_url, shannon_entropy


@pytest.mark.parametrize("a,b,expected", [
    ("paypal", "paypa1", 1),
    ("", "", 0),
    ("abc", "abc", 0),
    ("", "abc", 3),
    ("google", "", 6),
    ("PayPal", "paypal", 0),
    ("kitten", "sitting", 3),
])
def test_levenshtein(a, b, expected):
    assert levenshtein(a, b) == expected


def test_levenshtein_is_symmetric():
    assert levenshtein("microsoft", "rnicrosoft") == levenshtein("rnicrosoft", "microsoft")


def test_shannon_entropy():
    assert shannon_entropy("") == 0.0
    assert shannon_entropy("aaaa") == 0.0
    assert shannon_entropy("ab") == pytest.approx(1.0)
    assert shannon_entropy("abcd") == pytest.approx(2.0)


@pytest.mark.parametrize("value,expected", [
    ("https://www.Example.com/path?q=1", "example.com"),
    ("http://sub.example.org", "sub.example.org"),
    ("http://user:pw@www.example.net:8080/", "example.net"),
    ("example.com", "example.com"),
    ("www.example.com", "www.example.com"),
    ("not a url", "not a url"),
    ("http://[::1", "http://[::1"),
    ("", ""),
])
def test_normalize_domain(value, expected):
    assert normalize_domain(value) == expected


def test_parse_url_parts():
    parsed = parse_url("https://www.example.com/a/b?x=1#frag")
    assert parsed.scheme == "https"
    assert parsed.hostname == "www.example.com"
    assert parsed.host == "example.com"
    assert parsed.path_and_query == "/a/b?x=1"


def test_parse_url_defaults_path_and_encodes_idn():
    assert parse_url("http://example.com").path == "/"
    assert parse_url("http://bücher.example/").host.startswith("xn--")


def test_parse_url_rejects_relative_and_garbage():
    assert parse_url("example.com/login") is None
    assert parse_url("/just/a/path") is None
    assert parse_url(None) is None


@pytest.mark.parametrize("url", [
    "http://exa mple.com/",
    "http://example.com:99999/",
    "http://example.com:port/",
    "https://exa<mple.com/",
    "http://ex^ample.com/",
])
def test_parse_url_rejects_bad_hosts_and_ports(url):
    assert parse_url(url) is None


@pytest.mark.parametrize("url,host", [
    ("http:example.com", "example.com"),
    ("HTTPS:/www.example.com/a", "example.com"),
    ("http:\\\\example.com/login", "example.com"),
    ("http://example.com:8080/", "example.com"),
    ("http://[::1]/", "::1"),
])
def test_parse_url_accepts_browser_forms(url, host):
    assert parse_url(url).host == host


def test_unparseable_host_scores_as_malformed():
    assert [str(r) for r in analyze_url("http://exa mple.com/")["reasons"]] == ["Malformed URL (+6)"]
