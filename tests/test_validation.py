"""
Tests for:
  - grade.validator.validate_day / summarize_day (unit)
  - POST /api/grade/<day>/validate                (integration)
"""
import json
import os

import pytest

import app as app_module
from app import app
from grade.models import Slot, SlotContent
from grade.rules import DEFAULT_CONFIG, merge_config
from grade.validator import summarize_day, validate_day


# ---------------------------------------------------------------------------
# Unit tests for grade.validator
# ---------------------------------------------------------------------------

def _slot(time, *files, fixed=(), program="PROGRAMA"):
    content = [SlotContent.fixed(f) for f in fixed]
    for i, f in enumerate(files):
        content.append(SlotContent.placeholder() if f is None else SlotContent.music(f, "bh_fm"))
        if i < len(files) - 1:
            content.append(SlotContent.jingle())
    return Slot(time=time, program_id=program, content=content)


def test_valid_day_no_violations():
    slots = [
        _slot("10:00", "A - One.mp3", "B - Two.mp3"),
        _slot("10:30", "C - Three.mp3", None),
    ]
    result = validate_day(slots, DEFAULT_CONFIG)
    assert result["valid"] is True
    assert result["violations"] == []
    assert result["stats"]["total_slots"] == 2
    assert result["stats"]["music"] == 3
    assert result["stats"]["placeholders"] == 1
    assert result["stats"]["jingles"] == 2


def test_detects_duplicate_track():
    slots = [
        _slot("10:00", "A - One.mp3"),
        _slot("15:00", "a - one.wav"),
    ]
    result = validate_day(slots)
    assert result["valid"] is False
    assert any(v["type"] == "duplicate_track" for v in result["violations"])


def test_detects_artist_repetition_as_warning():
    slots = [
        _slot("10:00", "Coldplay - Yellow.mp3"),
        _slot("10:30", "Coldplay - Clocks.mp3"),   # gap=30, rule=60 → warning
    ]
    result = validate_day(slots, DEFAULT_CONFIG)
    assert result["valid"] is True
    assert any(v["type"] == "artist_repetition" for v in result["violations"])
    assert result["stats"]["warnings"] == 1


def test_artist_repetition_respects_interval():
    slots = [
        _slot("10:00", "Coldplay - Yellow.mp3"),
        _slot("11:00", "Coldplay - Clocks.mp3"),
    ]
    assert validate_day(slots, DEFAULT_CONFIG)["violations"] == []
    rules = merge_config({"artist_repetition_minutes": 90})
    assert validate_day(slots, rules)["stats"]["warnings"] == 1


def test_detects_music_in_locked_hour():
    result = validate_day([_slot("19:00", "A - One.mp3")])
    assert result["valid"] is False
    assert result["violations"][0]["type"] == "music_in_locked_hour"


def test_detects_broken_jingle_separation():
    slot = Slot("10:00", "P", content=[
        SlotContent.music("A - One.mp3"),
        SlotContent.music("B - Two.mp3"),
        SlotContent.jingle(),
    ])
    result = validate_day([slot])
    assert result["valid"] is False
    assert any(v["type"] == "jingle_separation" for v in result["violations"])


def test_fixed_content_is_ignored_by_jingle_check():
    slot   = _slot("12:00", "A - One.mp3", "B - Two.mp3", fixed=("NEWS_SEGUNDA.mp3",))
    result = validate_day([slot])
    assert result["valid"] is True
    assert result["stats"]["fixed"] == 1


def test_summary_match_rate_and_sources():
    slots   = [_slot("10:00", "A - One.mp3", None, None, "B - Two.mp3")]
    summary = summarize_day(slots)
    assert summary["match_rate"] == 50
    assert summary["by_source"] == {"bh_fm": 2}
    assert summary["unique_artists"] == 2


def test_summary_empty_day():
    summary = summarize_day([])
    assert summary["match_rate"] == 0
    assert summary["total_slots"] == 0


# ---------------------------------------------------------------------------
# Integration tests for POST /api/grade/<day>/validate
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_data(monkeypatch, tmp_path):
    grades_dir = str(tmp_path / "grades")
    os.makedirs(grades_dir)
    monkeypatch.setattr(app_module, "GRADES_DIR", grades_dir)
    monkeypatch.setattr(app_module, "STORE_FILE", str(tmp_path / "store.json"))
    yield grades_dir


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def _put(client, url, payload):
    return client.put(url, data=json.dumps(payload), content_type="application/json")


def _post(client, url, payload):
    return client.post(url, data=json.dumps(payload), content_type="application/json")


def test_validate_endpoint_not_found(client):
    resp = _post(client, "/api/grade/seg/validate", {})
    assert resp.status_code == 404


def test_validate_generated_grade(client):
    _put(client, "/api/catalog", [f"Artist {i} - Song {i}.mp3" for i in range(40)])
    assert _post(client, "/api/grade/generate", {"day": "sab", "seed": 3}).status_code == 201

    resp = _post(client, "/api/grade/sab/validate", {})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["valid"] is True
    assert body["stats"]["music"] == 40


def test_validate_detects_manual_duplicate(client, isolated_data):
    _put(client, "/api/catalog", ["Coldplay - Yellow.mp3", "Adele - Hello.mp3"])
    _post(client, "/api/grade/generate", {"day": "dom", "seed": 1})

    path = os.path.join(isolated_data, "dom.json")
    with open(path) as f:
        grade = json.load(f)
    # copy the first song into the last slot's first position
    first = next(c for s in grade["slots"] for c in s["content"] if c["type"] == "music")
    grade["slots"][-1]["content"][0] = dict(first)
    with open(path, "w") as f:
        json.dump(grade, f)

    body = _post(client, "/api/grade/dom/validate", {}).get_json()
    assert body["valid"] is False
    assert any(v["type"] == "duplicate_track" for v in body["violations"])
