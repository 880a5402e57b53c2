import json
import os

import pytest

import app as app_module
from app import app
from grade.store import JsonFileStore, RANKING_KEY


@pytest.fixture(autouse=True)
def isolated_data(monkeypatch, tmp_path):
    grades_dir = str(tmp_path / "grades")
    store_file = str(tmp_path / "store.json")
    monkeypatch.setattr(app_module, "GRADES_DIR", grades_dir)
    monkeypatch.setattr(app_module, "STORE_FILE", store_file)
    yield {"grades": grades_dir, "store": store_file}


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def _put(client, url, payload):
    return client.put(url, data=json.dumps(payload), content_type="application/json")


def _post(client, url, payload):
    return client.post(url, data=json.dumps(payload), content_type="application/json")


CATALOG = [
    "Coldplay - Yellow.mp3",
    "Adele - Hello.mp3",
    "Gusttavo Lima - Bloqueado.mp3",
    "Imagine Dragons - Believer.mp3",
]


# ---------------------------------------------------------------------------
# Status and settings
# ---------------------------------------------------------------------------

def test_status(client):
    resp = client.get("/api/status")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["service"] == "radio-grade"
    assert data["status"] == "ok"
    assert data["catalog_files"] == 0


def test_config_defaults_and_update(client):
    assert client.get("/api/config").get_json()["songs_per_block"] == 10

    resp = _put(client, "/api/config", {"artist_repetition_minutes": 90})
    assert resp.status_code == 200
    assert resp.get_json()["artist_repetition_minutes"] == 90
    assert client.get("/api/config").get_json()["artist_repetition_minutes"] == 90


def test_config_rejects_non_object(client):
    resp = _put(client, "/api/config", [1, 2])
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Rotation
# ---------------------------------------------------------------------------

def test_rotation_default(client):
    body = client.get("/api/rotation").get_json()
    assert body["valid"] is True
    assert body["rotation"][0] == {"positions": "1-5", "radioId": "bh_fm"}


def test_rotation_update_valid(client):
    rotation = [{"positions": "1-4", "radioId": "clube_fm"}, {"positions": "5-10", "radioId": "metro"}]
    body = _put(client, "/api/rotation", rotation).get_json()
    assert body == {"rotation": rotation, "valid": True, "error": None}
    assert client.get("/api/rotation").get_json()["rotation"] == rotation


def test_rotation_update_with_gap_is_reported(client):
    rotation = [{"positions": "1-4", "radioId": "clube_fm"}, {"positions": "6-10", "radioId": "metro"}]
    body = _put(client, "/api/rotation", {"rotation": rotation}).get_json()
    assert body["valid"] is False
    assert "5" in body["error"]


def test_rotation_update_requires_list(client):
    assert _put(client, "/api/rotation", {"rotation": "1-10"}).status_code == 400


# ---------------------------------------------------------------------------
# Catalog, stations, matching
# ---------------------------------------------------------------------------

def test_catalog_roundtrip(client):
    resp = _put(client, "/api/catalog", {"files": CATALOG + ["", 42]})
    assert resp.get_json() == {"total": 4}

    body = client.get("/api/catalog").get_json()
    assert body["total"] == 4
    assert body["entries"][0] == {
        "file": "Coldplay - Yellow.mp3", "key": "coldplay yellow",
        "style": "POP/VARIADO", "artist": "coldplay",
    }
    assert body["entries"][2]["style"] == "SERTANEJO"


def test_catalog_requires_list(client):
    assert _put(client, "/api/catalog", {"files": "x.mp3"}).status_code == 400


def test_stations_skip_malformed(client):
    resp = _put(client, "/api/stations", [
        {"station_id": "bh_fm", "recently_played": ["Coldplay - Yellow"]},
        {"tocandoAgora": "no station id"},
        "junk",
    ])
    assert resp.get_json() == {"stations": 1}
    assert client.get("/api/status").get_json()["stations"] == 1


def test_match_endpoint(client):
    _put(client, "/api/catalog", CATALOG)
    body = _post(client, "/api/match", {"artist": "imagine dragon", "title": "beliver"}).get_json()
    assert body["match"]["file"] == "Imagine Dragons - Believer.mp3"

    body = _post(client, "/api/match", {"artist": "", "title": ""}).get_json()
    assert body["match"] is None


def test_match_rejects_bad_threshold(client):
    resp = _post(client, "/api/match", {"artist": "a", "title": "b", "min_score": "high"})
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Grade assembly
# ---------------------------------------------------------------------------

def test_generate_grade_creates_file(client, isolated_data):
    _put(client, "/api/catalog", CATALOG)
    _put(client, "/api/stations", [
        {"station_id": "bh_fm", "recently_played": ["Coldplay - Yellow", "Adele - Hello"]},
    ])

    resp = _post(client, "/api/grade/generate", {"day": "seg", "seed": 42})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["day"] == "seg"
    assert len(body["slots"]) == 48
    assert body["valid"] is True
    assert body["stats"]["music"] == 4

    saved_file = os.path.join(isolated_data["grades"], "seg.json")
    assert os.path.exists(saved_file), "Grade file was not saved"
    with open(saved_file) as f:
        saved = json.load(f)
    assert saved["slots"] == body["slots"]

    assert client.get("/api/grade/seg").get_json()["created_at"] == body["created_at"]


def test_generate_grade_slot_format(client):
    _put(client, "/api/catalog", CATALOG)
    body = _post(client, "/api/grade/generate", {"day": "seg"}).get_json()

    locked = next(s for s in body["slots"] if s["time"] == "19:00")
    assert locked == {"time": "19:00", "programId": "FIXO", "isFixed": True, "content": []}

    noon = next(s for s in body["slots"] if s["time"] == "12:00")
    assert noon["content"][0] == {"type": "fixed", "value": "NOTICIA_DA_HORA_12HORAS_SEGUNDA.mp3"}

    first_song = next(c for s in body["slots"] for c in s["content"] if c["type"] == "music")
    assert "radioSource" in first_song


def test_generate_history_picks_update_ranking(client, isolated_data):
    _put(client, "/api/catalog", CATALOG)
    _put(client, "/api/stations", [{"station_id": "bh_fm", "recently_played": ["Coldplay - Yellow"]}])
    _post(client, "/api/grade/generate", {"day": "sab", "seed": 1})

    assert JsonFileStore(isolated_data["store"]).get(RANKING_KEY) == {"coldplay yellow": 1}
    body = client.get("/api/ranking").get_json()
    assert body["ranking"] == [{"key": "coldplay yellow", "count": 1}]


def test_generate_with_invalid_rotation_uses_default(client):
    _put(client, "/api/catalog", CATALOG)
    _put(client, "/api/rotation", [{"positions": "1-3", "radioId": "metro"}])
    body = _post(client, "/api/grade/generate", {"day": "ter"}).get_json()
    assert body["rotation_error"] is not None
    assert body["rotation"][0] == {"positions": "1-5", "radioId": "bh_fm"}


def test_generate_rejects_unknown_day(client):
    resp = _post(client, "/api/grade/generate", {"day": "monday"})
    assert resp.status_code == 400


def test_get_grade_not_found(client):
    assert client.get("/api/grade/qua").status_code == 404


def test_generate_rejects_non_object_config(client):
    resp = _post(client, "/api/grade/generate", {"day": "seg", "config": [1]})
    assert resp.status_code == 400


def test_validate_rejects_non_object_config(client):
    _put(client, "/api/catalog", CATALOG)
    _post(client, "/api/grade/generate", {"day": "seg"})
    resp = _post(client, "/api/grade/seg/validate", {"config": "strict"})
    assert resp.status_code == 400


def test_rotation_with_huge_range_reports_short_error(client):
    body = _put(client, "/api/rotation", [{"positions": "1-30000000", "radioId": "bh_fm"}]).get_json()
    assert body["valid"] is False
    assert len(body["error"]) < 200

    _put(client, "/api/catalog", CATALOG)
    grade = _post(client, "/api/grade/generate", {"day": "sab"}).get_json()
    assert grade["rotation"][0] == {"positions": "1-5", "radioId": "bh_fm"}
    assert len(grade["rotation_error"]) < 200
