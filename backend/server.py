import os
import sys
import time
import threading
import hashlib
import json
from collections import OrderedDict

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from normalizer import normalize_code, normalize_input
from levels import PLAN_TERM_COUNT, parse_level
from requisite_parser import parse_requisites, describe, build_requisite_check_string
from plan_validator import validate_addition, validate_plan
from data_loader import load_catalog, build_plan, coerce_course

load_dotenv()

app = Flask(__name__)

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data", "courses.csv")
_env_data_path = os.environ.get("DATA_PATH")
if not _env_data_path:
    DATA_PATH = _DEFAULT_DATA_PATH
elif not os.path.isabs(_env_data_path):
    DATA_PATH = os.path.join(PROJECT_ROOT, _env_data_path)
else:
    DATA_PATH = _env_data_path
_data_lock = threading.Lock()
_data_mtime = None
_EMPTY_CATALOG = {"courses_df": None, "courses": {}, "catalog_codes": set()}


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


_SLOW_REQUEST_LOG_MS = _env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)
_REQUEST_CACHE_SIZE = _env_int("REQUEST_CACHE_SIZE", 128, minimum=1)


class _LruResponseCache:
    """Thread-safe bounded in-memory cache for JSON-serializable responses."""

    def __init__(self, max_size: int):
        self.max_size = max(1, int(max_size))
        self._lock = threading.Lock()
        self._items: OrderedDict[str, dict] = OrderedDict()

    def get(self, key: str):
        with self._lock:
            if key not in self._items:
                return None
            value = self._items.pop(key)
            self._items[key] = value
            return value

    def set(self, key: str, value: dict) -> None:
        with self._lock:
            if key in self._items:
                self._items.pop(key)
            self._items[key] = value
            while len(self._items) > self.max_size:
                self._items.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


_validation_response_cache = _LruResponseCache(_REQUEST_CACHE_SIZE)


def _cache_enabled() -> bool:
    return not app.config.get("TESTING", False)


def _stable_payload_hash(payload) -> str:
    try:
        encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        encoded = repr(payload)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def _data_version_tag() -> str:
    return str(_data_mtime or "none")


def _request_cache_key(prefix: str, payload) -> str:
    return f"{prefix}:{_data_version_tag()}:{_stable_payload_hash(payload)}"


def _data_file_mtime(path: str):
    try:
        return os.path.getmtime(path)
    except OSError:
        return None


def _reload_data_if_changed(force: bool = False) -> bool:
    """Reload the catalog when the CSV mtime advances. Returns True on swap."""
    global _data, _data_mtime

    current_mtime = _data_file_mtime(DATA_PATH)
    if current_mtime is None:
        return False
    if not force and _data_mtime is not None and current_mtime <= _data_mtime:
        return False

    with _data_lock:
        if not force and _data_mtime is not None and current_mtime <= _data_mtime:
            return False
        new_data = load_catalog(DATA_PATH)
        _data = new_data
        _data_mtime = current_mtime
        _validation_response_cache.clear()
    print(f"[INFO] Catalog reloaded from {DATA_PATH}")
    return True


try:
    _data = load_catalog(DATA_PATH)
    _data_mtime = _data_file_mtime(DATA_PATH)
except Exception as exc:
    print(f"[WARN] Catalog not loaded from {DATA_PATH}: {exc}", file=sys.stderr)
    _data = dict(_EMPTY_CATALOG)


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except Exception as exc:
        print(f"[WARN] Catalog reload check failed: {exc}", file=sys.stderr)


# -- Request timing --------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


def _error_response(message: str, status: int = 400, error_code: str = "INVALID_INPUT"):
    return jsonify({
        "mode": "error",
        "error": {
            "error_code": error_code,
            "message": message,
        },
    }), status


# -- Health endpoint --------------------------------------------------------
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": "0.3.0",
        "catalog_loaded": bool(_data.get("courses")),
    })


# -- Input validation ------------------------------------------------------
def _coerce_course_list(raw_value) -> str:
    if raw_value is None:
        return ""
    if isinstance(raw_value, list):
        return ",".join(str(v) for v in raw_value if v is not None)
    return str(raw_value)


def _parse_term_index(raw_value):
    """Returns (term_index, error_message). Accepts 0-7 or a label like '2A'."""
    if raw_value is None or raw_value == "":
        return None, "term_index is required."
    if isinstance(raw_value, bool):
        return None, "term_index must be an integer between 0 and 7 or a term label."
    if isinstance(raw_value, int):
        idx = raw_value
    else:
        try:
            idx = int(str(raw_value).strip())
        except ValueError:
            idx = parse_level(raw_value)
    if idx is None or not 0 <= idx < PLAN_TERM_COUNT:
        return None, "term_index must be an integer between 0 and 7 or a term label."
    return idx, None


def _build_plan_from_body(body):
    """Returns (plan, error_message)."""
    terms = body.get("terms")
    if terms is None and isinstance(body.get("plan"), dict):
        terms = body["plan"].get("terms")
    try:
        return build_plan(terms, _data), None
    except ValueError as exc:
        return None, str(exc)


# ── 500 handler ────────────────────────────────────────────────────────────────
@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return e
    print(f"[WARN] Unhandled error on {request.path}: {e!r}", file=sys.stderr)
    return _error_response("An unexpected server error occurred.", 500, "SERVER_ERROR")


# ── Routes ─────────────────────────────────────────────────────────────────────
def get_courses():
    _refresh_data_if_needed()
    courses = sorted(_data.get("courses", {}).values(), key=lambda c: c["code"])
    return jsonify({
        "count": len(courses),
        "courses": [
            {
                "code": c["code"],
                "title": c["title"],
                "units": c["units"],
                "has_requirements": c["has_requirements"],
            }
            for c in courses
        ],
    })


@app.route("/parse-requisites", methods=["POST"])
def parse_requisites_endpoint():
    """Structured view of one course's requisite text ("View Prerequisites")."""
    _refresh_data_if_needed()
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return _error_response("Request body must be valid JSON.")

    course_code = None
    if "requirements" in body:
        raw = body.get("requirements")
        if raw is not None and not isinstance(raw, str):
            return _error_response("requirements must be a string.")
    else:
        course_raw = str(body.get("course") or "").strip()
        if not course_raw:
            return _error_response("Either requirements or course is required.")
        course_code = normalize_code(course_raw)
        course = _data.get("courses", {}).get(course_code) if course_code else None
        if course is None:
            return _error_response(f"{course_code or course_raw} is not in the course catalog.", 404, "NOT_FOUND")
        raw = course["requirements"]

    result = parse_requisites(raw)
    response_payload = {
        "mode": "parse_requisites",
        "course": course_code,
        "raw": result["raw"],
        "has_requirements": result["has_requirements"],
        "predicates": [
            {**p, "description": describe(p)} for p in result["predicates"]
        ],
    }

    if "completed_courses" in body:
        completed = normalize_input(
            _coerce_course_list(body.get("completed_courses")),
            _data.get("catalog_codes", set()),
        )
        completed_codes = set(completed["valid"]) | set(completed["not_in_catalog"])
        response_payload["check_string"] = build_requisite_check_string(
            result["predicates"],
            completed_codes,
            parse_level(body.get("current_level")) if body.get("current_level") is not None else None,
        )
    return jsonify(response_payload)


@app.route("/validate-addition", methods=["POST"])
def validate_addition_endpoint():
    """What-if check before committing a course to a term."""
    _refresh_data_if_needed()
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return _error_response("Request body must be valid JSON.")

    cache_key = _request_cache_key("validate_addition", body)
    if _cache_enabled():
        cached = _validation_response_cache.get(cache_key)
        if cached is not None:
            return jsonify(cached)

    term_index, term_error = _parse_term_index(body.get("term_index"))
    if term_error:
        return _error_response(term_error)

    raw_course = body.get("course")
    if raw_course in (None, ""):
        return _error_response("course is required.")
    try:
        course = coerce_course(raw_course, _data)
    except ValueError as exc:
        return _error_response(str(exc))

    plan, plan_error = _build_plan_from_body(body)
    if plan_error:
        return _error_response(plan_error)

    result = validate_addition(plan, term_index, course)
    response_payload = {
        "mode": "validate_addition",
        "course": course["code"],
        "term_index": term_index,
        "term_label": plan["terms"][term_index]["label"],
        **result,
    }
    if _cache_enabled():
        _validation_response_cache.set(cache_key, response_payload)
    return jsonify(response_payload)


@app.route("/validate-plan", methods=["POST"])
def validate_plan_endpoint():
    """Full-plan sweep."""
    _refresh_data_if_needed()
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return _error_response("Request body must be valid JSON.")

    cache_key = _request_cache_key("validate_plan", body)
    if _cache_enabled():
        cached = _validation_response_cache.get(cache_key)
        if cached is not None:
            return jsonify(cached)

    plan, plan_error = _build_plan_from_body(body)
    if plan_error:
        return _error_response(plan_error)

    result = validate_plan(plan)
    response_payload = {
        "mode": "validate_plan",
        "course_count": sum(len(t["courses"]) for t in plan["terms"]),
        **result,
    }
    if _cache_enabled():
        _validation_response_cache.set(cache_key, response_payload)
    return jsonify(response_payload)


# -- Canonical API routes ----------------------------------------------------
app.add_url_rule("/courses", endpoint="courses", view_func=get_courses, methods=["GET"])
app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])
app.add_url_rule("/api/courses", endpoint="api_courses", view_func=get_courses, methods=["GET"])
app.add_url_rule("/api/parse-requisites", endpoint="api_parse_requisites", view_func=parse_requisites_endpoint, methods=["POST"])
app.add_url_rule("/api/validate-addition", endpoint="api_validate_addition", view_func=validate_addition_endpoint, methods=["POST"])
app.add_url_rule("/api/validate-plan", endpoint="api_validate_plan", view_func=validate_plan_endpoint, methods=["POST"])


# -- API catch-all (404 for unknown /api/* routes) -------------------
@app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
def api_catch_all(rest):
    return jsonify({"error": f"/api/{rest} not found"}), 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
