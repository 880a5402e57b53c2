import json
import os
import random
from datetime import datetime

from flask import Flask, jsonify, request

from grade.assembler import GradeAssemblyEngine
from grade.catalog import CatalogIndex
from grade.fixed_content import DAYS
from grade.log import configure_logging
from grade.matcher import match
from grade.models import Slot
from grade.ranking import EngineState
from grade.rotation import ConfigurationError, rotation_from_config, validate_rotation
from grade.rules import DEFAULT_ROTATION, merge_config
from grade.stations import load_snapshots
from grade.store import CONFIG_KEY, SEQUENCE_KEY, JsonFileStore
from grade.validator import validate_day

app = Flask(__name__)

STORE_FILE = os.path.join(os.path.dirname(__file__), "data", "store.json")
GRADES_DIR = os.path.join(os.path.dirname(__file__), "data", "grades")

CATALOG_KEY  = "radiograde_catalog"
STATIONS_KEY = "radiograde_stations"


# ---------------------------------------------------------------------------
# Low-level helpers
# ---------------------------------------------------------------------------

def _store() -> JsonFileStore:
    return JsonFileStore(STORE_FILE)


def _grade_path(day: str) -> str:
    return os.path.join(GRADES_DIR, f"{day}.json")


def _load_grade(day: str):
    path = _grade_path(day)
    if not os.path.exists(path):
        return None
    with open(path) as f:
        return json.load(f)


def _save_grade(grade: dict) -> None:
    os.makedirs(GRADES_DIR, exist_ok=True)
    with open(_grade_path(grade["day"]), "w") as f:
        json.dump(grade, f, indent=2)


def _now() -> str:
    return datetime.utcnow().isoformat() + "Z"


# ---------------------------------------------------------------------------
# Settings helpers
# ---------------------------------------------------------------------------

def _load_config() -> dict:
    stored = _store().get(CONFIG_KEY) or {}
    return merge_config(stored if isinstance(stored, dict) else {})


def _load_rotation() -> list:
    stored = _store().get(SEQUENCE_KEY)
    return stored if isinstance(stored, list) and stored else list(DEFAULT_ROTATION)


def _build_engine(config: dict, seed=None) -> GradeAssemblyEngine:
    store = _store()
    state = EngineState.from_store(store, interval_minutes=config["artist_repetition_minutes"])
    rng   = random.Random(seed) if seed is not None else random.Random()
    return GradeAssemblyEngine(config=config, state=state, rotation=_load_rotation(), rng=rng)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.route("/api/status")
def status():
    store = _store()
    return jsonify({
        "service":       "radio-grade",
        "status":        "ok",
        "catalog_files": len(store.get(CATALOG_KEY) or []),
        "stations":      len(store.get(STATIONS_KEY) or []),
    })


# ---------------------------------------------------------------------------
# Grade settings
# ---------------------------------------------------------------------------

@app.route("/api/config", methods=["GET"])
def get_config():
    return jsonify(_load_config())


@app.route("/api/config", methods=["PUT"])
def update_config():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Expected a JSON object"}), 400
    store  = _store()
    stored = store.get(CONFIG_KEY) or {}
    store.set(CONFIG_KEY, {**stored, **data})
    return jsonify(_load_config())


# ---------------------------------------------------------------------------
# Rotation (station sequence)
# ---------------------------------------------------------------------------

def _rotation_report(items: list, block_length: int) -> dict:
    try:
        validate_rotation(rotation_from_config(items), block_length)
    except ConfigurationError as exc:
        return {"rotation": items, "valid": False, "error": str(exc)}
    return {"rotation": items, "valid": True, "error": None}


@app.route("/api/rotation", methods=["GET"])
def get_rotation():
    config = _load_config()
    return jsonify(_rotation_report(_load_rotation(), config["songs_per_block"]))


@app.route("/api/rotation", methods=["PUT"])
def update_rotation():
    """Store the sequence as given; an invalid one is reported and replaced by the default at run time."""
    data  = request.get_json(silent=True)
    items = data if isinstance(data, list) else (data or {}).get("rotation")
    if not isinstance(items, list):
        return jsonify({"error": "Expected a list of {positions, radioId}"}), 400
    _store().set(SEQUENCE_KEY, items)
    config = _load_config()
    return jsonify(_rotation_report(items, config["songs_per_block"]))


# ---------------------------------------------------------------------------
# Catalog and station snapshots
# ---------------------------------------------------------------------------

@app.route("/api/catalog", methods=["GET"])
def get_catalog():
    files = _store().get(CATALOG_KEY) or []
    index = CatalogIndex(files)
    return jsonify({
        "total":   len(index),
        "entries": [
            {"file": e.file, "key": e.normalized_key, "style": e.style_tag, "artist": e.artist_key}
            for e in index
        ],
    })


@app.route("/api/catalog", methods=["PUT"])
def update_catalog():
    body  = request.get_json(silent=True)
    files = body if isinstance(body, list) else (body or {}).get("files")
    if not isinstance(files, list):
        return jsonify({"error": "Expected a list of filenames"}), 400
    files = [f for f in files if isinstance(f, str) and f.strip()]
    _store().set(CATALOG_KEY, files)
    return jsonify({"total": len(files)})


@app.route("/api/stations", methods=["PUT"])
def update_stations():
    body = request.get_json(silent=True)
    raw  = body if isinstance(body, list) else (body or {}).get("stations")
    snapshots = load_snapshots(raw)
    stored = [
        {
            "station_id":        s.station_id,
            "currently_playing": s.currently_playing,
            "recently_played":   s.recently_played,
            "style_tags":        s.style_tags,
        }
        for s in snapshots
    ]
    _store().set(STATIONS_KEY, stored)
    return jsonify({"stations": len(stored)})


@app.route("/api/ranking", methods=["GET"])
def get_ranking():
    state = EngineState.from_store(_store())
    try:
        limit = max(0, int(request.args.get("limit", 0)))
    except (ValueError, TypeError):
        limit = 0
    ranked = state.ranking.ranked()
    if limit:
        ranked = ranked[:limit]
    return jsonify({"total": len(state.ranking), "ranking": [{"key": k, "count": c} for k, c in ranked]})


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

@app.route("/api/match", methods=["POST"])
def match_song():
    data = request.get_json(silent=True) or {}
    try:
        min_score = float(data.get("min_score", _load_config()["match_min_score"]))
    except (TypeError, ValueError):
        return jsonify({"error": "min_score must be a number"}), 400

    index  = CatalogIndex(_store().get(CATALOG_KEY) or [])
    result = match(data.get("artist") or "", data.get("title") or "", index, min_score)
    return jsonify({"match": result.to_dict() if result else None})


# ---------------------------------------------------------------------------
# Grade assembly
# ---------------------------------------------------------------------------

@app.route("/api/grade/generate", methods=["POST"])
def generate_grade():
    data = request.get_json(silent=True) or {}
    day  = data.get("day")
    if day not in DAYS:
        return jsonify({"error": f"day must be one of: {', '.join(DAYS)}"}), 400

    overrides = data.get("config") or {}
    if not isinstance(overrides, dict):
        return jsonify({"error": "config must be a JSON object"}), 400
    config = merge_config({**_load_config(), **overrides})
    engine = _build_engine(config, seed=data.get("seed"))
    store  = _store()
    slots  = engine.assemble_full_day(
        day,
        catalog_files=store.get(CATALOG_KEY) or [],
        stations=store.get(STATIONS_KEY) or [],
    )
    report = validate_day(slots, config)

    grade = {
        "day":        day,
        "created_at": _now(),
        "rotation":   engine.rotation.to_config(),
        "rotation_error": engine.rotation.error,
        "slots":      [s.to_dict() for s in slots],
        "stats":      report["stats"],
        "valid":      report["valid"],
    }
    _save_grade(grade)
    return jsonify(grade), 201


@app.route("/api/grade/<day>", methods=["GET"])
def get_grade(day):
    grade = _load_grade(day)
    if grade is None:
        return jsonify({"error": "Grade not found"}), 404
    return jsonify(grade)


@app.route("/api/grade/<day>/validate", methods=["POST"])
def validate_grade(day):
    """Validate a stored grade, e.g. after manual slot edits."""
    grade = _load_grade(day)
    if grade is None:
        return jsonify({"error": "Grade not found"}), 404
    data      = request.get_json(silent=True) or {}
    overrides = data.get("config") or {}
    if not isinstance(overrides, dict):
        return jsonify({"error": "config must be a JSON object"}), 400
    config = merge_config({**_load_config(), **overrides})
    try:
        slots = [Slot.from_dict(s) for s in grade.get("slots", [])]
    except (KeyError, ValueError) as exc:
        return jsonify({"error": f"Malformed grade: {exc}"}), 400
    return jsonify(validate_day(slots, config))


if __name__ == "__main__":
    configure_logging()
    app.run(debug=True)
