"""
grade/validator.py - Checks an assembled day against the grade invariants
and summarises how well it was filled.
"""
from collections import Counter

from grade.models import ContentKind
from grade.normalize import extract_artist, normalize, strip_extension
from grade.rules import DEFAULT_CONFIG


def _minutes(time: str) -> int:
    hour, _, minute = time.partition(":")
    return int(hour) * 60 + int(minute or 0)


def summarize_day(slots: list) -> dict:
    """Counts per content kind, match rate and where the music came from."""
    kinds   = Counter(c.kind for s in slots for c in s.content)
    sources = Counter(c.source or "unknown" for s in slots for c in s.content if c.is_music)
    artists = {
        normalize(extract_artist(c.value)) for s in slots for c in s.content if c.is_music
    }
    artists.discard("")

    music        = kinds[ContentKind.MUSIC]
    placeholders = kinds[ContentKind.PLACEHOLDER]
    positions    = music + placeholders
    return {
        "total_slots":    len(slots),
        "music":          music,
        "placeholders":   placeholders,
        "fixed":          kinds[ContentKind.FIXED],
        "jingles":        kinds[ContentKind.JINGLE],
        "match_rate":     round(music * 100 / positions) if positions else 0,
        "unique_artists": len(artists),
        "by_source":      dict(sources),
    }


def validate_day(slots: list, config: dict = None) -> dict:
    """
    Validate an assembled day.

    Args:
        slots:  list of Slot objects in broadcast order.
        config: grade settings; falls back to DEFAULT_CONFIG if None.

    Returns:
        {
          "valid":      bool,
          "violations": [...],
          "stats":      {...},
        }
    """
    if config is None:
        config = DEFAULT_CONFIG

    violations: list = []
    locked   = set(config.get("locked_hours", []))
    interval = config.get("artist_repetition_minutes", 60)

    seen_keys: dict    = {}   # normalized key -> time first aired
    last_artist: dict  = {}   # artist key -> time last aired

    for slot in slots:
        # --- Locked hours carry fixed content only ---
        if slot.hour in locked and slot.music():
            violations.append({
                "time":     slot.time,
                "type":     "music_in_locked_hour",
                "severity": "error",
                "message":  f"Slot {slot.time} is locked but has {len(slot.music())} songs",
            })

        # --- Jingles separate song positions, none after the last ---
        body = [c for c in slot.content if c.kind is not ContentKind.FIXED]
        if body:
            expected = []
            songs    = sum(1 for c in body if c.fills_position)
            for i in range(songs):
                expected.append(True)
                if i < songs - 1:
                    expected.append(False)
            actual = [c.fills_position for c in body]
            if actual != expected:
                violations.append({
                    "time":     slot.time,
                    "type":     "jingle_separation",
                    "severity": "error",
                    "message":  f"Slot {slot.time} does not alternate songs and jingles",
                })

        for item in slot.music():
            key = normalize(strip_extension(item.value))

            # --- Per-day uniqueness ---
            if key in seen_keys:
                violations.append({
                    "time":     slot.time,
                    "type":     "duplicate_track",
                    "severity": "error",
                    "message":  f"'{item.value}' at {slot.time} already aired at {seen_keys[key]}",
                })
            else:
                seen_keys[key] = slot.time

            # --- Artist repetition (broadcast time) ---
            artist = normalize(extract_artist(item.value))
            if not artist:
                continue
            previous = last_artist.get(artist)
            if previous is not None:
                gap = _minutes(slot.time) - _minutes(previous)
                if gap < interval:
                    violations.append({
                        "time":     slot.time,
                        "type":     "artist_repetition",
                        "severity": "warning",
                        "message":  (
                            f"'{extract_artist(item.value)}' at {slot.time} also at {previous} "
                            f"(gap: {gap} min, rule: ≥{interval})"
                        ),
                    })
            last_artist[artist] = slot.time

    errors   = sum(1 for v in violations if v["severity"] == "error")
    warnings = sum(1 for v in violations if v["severity"] == "warning")
    stats    = {**summarize_day(slots), "errors": errors, "warnings": warnings}

    return {
        "valid":      errors == 0,
        "violations": violations,
        "stats":      stats,
    }
