"""
grade/matcher.py - Fuzzy matching of loosely formatted "artist - title" text
against archive filenames.

match() is pure: it never mutates the catalog, never raises and returns None
when no entry clears min_score. Scoring follows a fixed ladder; the first rung
that qualifies sets the score for an entry and later rungs only run when the
score is still too low.
"""
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from rapidfuzz.distance import Levenshtein

from grade.catalog import CatalogEntry, make_entry
from grade.normalize import normalize


@dataclass(frozen=True)
class MatchResult:
    """Best archive file for a query, with its score and confidence tier."""
    file: str
    score: float
    tier: str

    def to_dict(self):
        return {"file": self.file, "score": round(self.score, 4), "tier": self.tier}


# ---------------------------------------------------------------------------
# Similarity primitives
# ---------------------------------------------------------------------------

def similarity(a: str, b: str) -> float:
    """1 - edit distance / longer length. Equal strings score 1, an empty side 0."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return Levenshtein.normalized_similarity(a, b)


def contains_words(target: str, query: str, threshold: float = 0.8) -> bool:
    """
    True when at least 60% of the query's significant words appear in target.

    A query word (longer than 2 chars) matches a target word (longer than 1
    char) on equality, substring in either direction, or, when both have at
    least 4 chars, a similarity of at least ``threshold``. Word order is ignored.
    """
    target_words = [w for w in target.split(" ") if len(w) > 1]
    query_words  = [w for w in query.split(" ") if len(w) > 2]
    if not query_words:
        return False

    matched = 0
    for qw in query_words:
        for tw in target_words:
            if tw == qw or qw in tw or tw in qw:
                matched += 1
                break
            if len(qw) >= 4 and len(tw) >= 4 and similarity(tw, qw) >= threshold:
                matched += 1
                break

    return matched >= math.ceil(len(query_words) * 0.6)


def tier_for(score: float) -> str:
    if score >= 0.9:
        return "exact"
    if score >= 0.75:
        return "high"
    if score >= 0.6:
        return "medium"
    return "low"


# ---------------------------------------------------------------------------
# Per-entry scoring ladder
# ---------------------------------------------------------------------------

def _score_entry(entry: CatalogEntry, q_artist: str, q_title: str,
                 q_full: str, min_score: float) -> float:
    file_key = entry.normalized_key
    score    = 0.0

    # 1. exact normalized artist + title
    if file_key == q_full or file_key == f"{q_artist} {q_title}":
        score = 1.0

    # 2. artist and title both given
    elif q_artist and q_title:
        artist_sim = similarity(entry.artist_key, q_artist)
        title_sim  = similarity(entry.title_key, q_title)
        if artist_sim >= 0.8 and title_sim >= 0.8:
            score = (artist_sim + title_sim) / 2
        elif contains_words(file_key, q_full):
            score = 0.75

    # 3. title only
    elif q_title:
        title_sim = similarity(entry.title_key, q_title)
        if title_sim >= 0.85:
            score = title_sim * 0.9
        elif q_title in file_key:
            score = 0.7
        elif contains_words(file_key, q_title):
            score = 0.6

    # 4. whole-string similarity
    if score < 0.5:
        full_score = similarity(file_key, q_full) * 0.85
        if full_score > score:
            score = full_score

    # 5. relaxed word overlap
    if score < min_score and contains_words(file_key, q_full, 0.75):
        score = max(score, 0.55)

    return score


def _entries(catalog) -> Iterable[CatalogEntry]:
    for item in catalog:
        if isinstance(item, str):
            yield make_entry(item)
        else:
            yield item


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def match(artist: str, title: str, catalog, min_score: float = 0.5) -> Optional[MatchResult]:
    """
    Find the catalog file that best matches ``artist`` / ``title``.

    Args:
        artist:    artist text as captured (may be empty).
        title:     title text as captured (may be empty).
        catalog:   a CatalogIndex, a sequence of CatalogEntry, or plain filenames.
        min_score: lowest acceptable score (0-1).

    Returns:
        MatchResult for the highest scoring entry, the first one on ties,
        or None when nothing reaches ``min_score``.
    """
    if not artist and not title:
        return None

    q_artist = normalize(artist)
    q_title  = normalize(title)
    q_full   = normalize(f"{artist or ''} {title or ''}")
    if not q_full:
        return None

    best_file  = None
    best_score = 0.0
    for entry in _entries(catalog):
        score = _score_entry(entry, q_artist, q_title, q_full, min_score)
        if score >= min_score and (best_file is None or score > best_score):
            best_file, best_score = entry.file, score

    if best_file is None:
        return None
    return MatchResult(file=best_file, score=best_score, tier=tier_for(best_score))


def find_matches(songs: List[dict], catalog, min_score: float = 0.5) -> Dict[str, Optional[MatchResult]]:
    """Match many {artist, title} dicts; repeated queries are matched once."""
    entries = list(_entries(catalog))
    results: Dict[str, Optional[MatchResult]] = {}
    for song in songs:
        artist = song.get("artist") or ""
        title  = song.get("title") or ""
        key    = f"{artist}|{title}"
        if key not in results:
            results[key] = match(artist, title, entries, min_score)
    return results
