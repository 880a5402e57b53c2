"""
grade/rules.py - Grade assembly settings with broadcast defaults.
"""

DEFAULT_CONFIG = {
    # --- Artist repetition ---
    "artist_repetition_minutes": 60,   # same artist may not be accepted again inside this window

    # --- Block sizes ---
    "songs_per_block":       10,
    "highlight_block_songs": 3,        # reduced block for the TOP10 hour
    "highlight_block_hour":  18,

    # --- Ranked highlight ---
    # Slot whose songs come from the ranking table before anything else.
    "ranked_highlight_time": "17:30",

    # --- Locked hours: fixed content only, no music selection ---
    "locked_hours": [19, 20],

    # --- Matching thresholds ---
    "history_min_score": 0.6,          # fuzzy match needed for a station song
    "match_min_score":   0.5,          # default for ad-hoc matching

    # --- Curated tiers ---
    "curated_top_n":  50,              # ranked candidates considered
    "curated_pick_n": 10,              # random pick among the best of those

    # --- Output codes ---
    "placeholder_code": "mus",
    "jingle_code":      "vht",

    # --- Content filter ---
    "forbidden_words": ["1.FM", "Love Classics", "Solitaire", "Mahjong", "Dayspedia", "Games", "Online"],
    "funk_words":      ["funk", "mc ", "sequencia", "proibidão", "baile", "kondzilla", "gr6"],

    # --- Styles per source station ---
    "station_styles": {
        "bh":         ["SERTANEJO", "PAGODE", "AGRONEJO"],
        "bh_fm":      ["SERTANEJO", "PAGODE", "AGRONEJO"],
        "band":       ["SERTANEJO", "PAGODE", "AGRONEJO"],
        "band_fm":    ["SERTANEJO", "PAGODE", "AGRONEJO"],
        "clube":      ["SERTANEJO", "PAGODE", "POP/VARIADO"],
        "clube_fm":   ["SERTANEJO", "PAGODE", "POP/VARIADO"],
        "disney":     ["POP/VARIADO", "TEEN/HITS", "DANCE"],
        "metro":      ["POP/VARIADO", "DANCE", "HITS"],
        "random_pop": ["POP/VARIADO", "TEEN/HITS", "DANCE"],
    },

    # --- Pooled rotation targets ---
    # A pooled id resolves to one of its members with history; pool_defaults
    # is used when every member is empty.
    "station_pools": {
        "random_pop": ["disney", "metro"],
    },
    "pool_defaults": {
        "random_pop": "disney",
    },

    # Station used for positions no rotation rule covers.
    "default_station": "bh_fm",

    # --- Program ids by hour range (inclusive) ---
    "program_ids": {
        "1-5":   "Nossa Madrugada",
        "6-8":   "Happy Hour",
        "9-11":  "Manhã de Hits",
        "12-13": "Hora do Almoço",
        "14-16": "Tarde Animada",
        "17-17": "Happy Hour",
        "18-18": "TOP10",
        "19-19": "FIXO",
        "20-20": "FIXO",
        "21-23": "Noite NOSSA",
        "0-0":   "Noite NOSSA",
    },
    "default_program_id": "PROGRAMA",
}

# Built-in rotation used whenever the configured one is missing or invalid.
DEFAULT_ROTATION = [
    {"positions": "1-5", "radioId": "bh_fm"},
    {"positions": "6-9", "radioId": "band_fm"},
    {"positions": "10",  "radioId": "random_pop"},
]


def merge_config(overrides: dict) -> dict:
    """Return DEFAULT_CONFIG with caller-supplied overrides applied (shallow merge).

    Unknown keys are kept so callers can round-trip their own settings.
    """
    config = {**DEFAULT_CONFIG}
    config.update(overrides or {})
    return config
