"""Flask API for urlsentry.

Run: python -m urlsentry.api
"""

import os
import logging

from flask import Flask, request, jsonify, abort
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import redis as redis_lib

from .app.lists import ListStore
from .app.models import AnalysisRequest, CertificateInfo, DomSignals
from .app.scanner import Analyzer
from .app.ssl_check import fetch_certificate_info, no_certificate_info
from .db import UserListDB
from .html_scanner import extract_dom_signals

VERSION = "1.0"

# Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("api")

# Flask app
app = Flask(__name__)

# Rate limiter: prefer Redis storage in production when REDIS_URL is set
REDIS_URL = os.getenv("REDIS_URL")
if REDIS_URL:
    try:
        redis_lib.from_url(REDIS_URL).ping()
        limiter = Limiter(app=app, key_func=get_remote_address,
                          default_limits=["120 per minute"], storage_uri=REDIS_URL)
        logger.info("Using Redis at %s for rate limiting", REDIS_URL)
    except redis_lib.RedisError:
        logger.exception("Failed to connect to Redis, falling back to in-memory limiter")
        limiter = Limiter(app=app, key_func=get_remote_address, default_limits=["120 per minute"])
else:
    limiter = Limiter(app=app, key_func=get_remote_address, default_limits=["120 per minute"])

# API key
API_KEY = os.getenv("URLSENTRY_API_KEY", None)
if API_KEY:
    logger.info("API key enabled")

FETCH_CERTS = os.getenv("URLSENTRY_FETCH_CERTS", "0").lower() in ("1", "true", "yes")

# Lists: curated ones load in the background, analyze() sees them empty until ready
list_store = ListStore(user_db=UserListDB())
list_store.load_user_lists()
list_store.load_curated_async()

analyzer = Analyzer(
    list_store,
    certificate_provider=fetch_certificate_info if FETCH_CERTS else no_certificate_info,
)


def require_api_key() -> None:
    if not API_KEY:
        return
    key = request.headers.get("X-API-Key") or request.args.get("api_key")
    if not key or key != API_KEY:
        abort(401, description="Invalid or missing API key")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _list_value():
    data = _json_body()
    value = data.get("value")
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


@app.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "version": VERSION, "lists_ready": list_store.ready()})


@app.route("/analyze", methods=["POST"])
@limiter.limit("60 per minute")
def analyze():
    require_api_key()
    data = _json_body()
    if "url" not in data:
        return jsonify({"error": "missing 'url' in JSON body"}), 400

    url = data["url"]
    if not isinstance(url, str) or not url.strip():
        return jsonify({"error": "empty url"}), 400
    url = url.strip()

    dom_signals = DomSignals.from_dict(data.get("dom_signals"))
    if dom_signals is None and isinstance(data.get("html"), str):
        dom_signals = extract_dom_signals(data["html"], url)

    analysis_request = AnalysisRequest(
        raw_url=url,
        dom_signals=dom_signals,
        certificate_info=CertificateInfo.from_dict(data.get("certificate_info")),
        context_id=data.get("context_id"),
    )
    result = analyzer.analyze(analysis_request)
    return jsonify(result.to_dict()), 200


@app.route("/lists", methods=["GET"])
@limiter.limit("30 per minute")
def get_lists():
    require_api_key()
    lists = list_store.user_lists()
    return jsonify({
        "ready": list_store.ready(),
        "allow": list(lists["allow"]),
        "deny": list(lists["deny"]),
    })


@app.route("/lists/allow", methods=["POST"])
@limiter.limit("30 per minute")
def allow():
    require_api_key()
    value = _list_value()
    if value is None:
        return jsonify({"ok": False, "error": "missing 'value' in JSON body"}), 400
    outcome = analyzer.add_to_allow_list(value)
    return jsonify(outcome), 200 if outcome["ok"] else 500


@app.route("/lists/deny", methods=["POST"])
@limiter.limit("30 per minute")
def deny():
    require_api_key()
    value = _list_value()
    if value is None:
        return jsonify({"ok": False, "error": "missing 'value' in JSON body"}), 400
    outcome = analyzer.mark_unsafe(value)
    return jsonify(outcome), 200 if outcome["ok"] else 500


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 5050)), debug=False)
