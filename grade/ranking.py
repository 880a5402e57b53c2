"""
Ranking and recency tracking for the grade engine.

RankingTable counts how often each track was picked from station history and
is persisted after every increment. RecentArtistWindow remembers which
artists were accepted recently; it is pruned on every read so its answer does
not depend on how often anyone polls it.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Set

import structlog

from grade.store import RANKING_KEY, KeyValueStore

logger = structlog.get_logger(logger_name=__name__)


class RankingTable:
    """
    normalized_key -> play count. Counts only ever go up.

    ``save`` is called with the full table after each increment.
    """

    def __init__(self, counts: Optional[Dict[str, int]] = None,
                 save: Optional[Callable[[Dict[str, int]], None]] = None):
        self.counts: Dict[str, int] = {}
        for key, value in (counts or {}).items():
            try:
                count = int(value)
            except (TypeError, ValueError):
                continue
            if key and count > 0:
                self.counts[key] = count
        self._save = save

    @classmethod
    def from_store(cls, store: KeyValueStore, key: str = RANKING_KEY) -> "RankingTable":
        stored = store.get(key) or {}
        if not isinstance(stored, dict):
            logger.warning("ranking_malformed", key=key, type=type(stored).__name__)
            stored = {}
        return cls(stored, save=lambda counts: store.set(key, counts))

    def record_play(self, key: str) -> int:
        """Increment ``key`` and persist. Returns the new count."""
        if not key:
            return 0
        self.counts[key] = self.counts.get(key, 0) + 1
        self.save()
        return self.counts[key]

    def save(self) -> None:
        if self._save is not None:
            self._save(dict(self.counts))

    def count(self, key: str) -> int:
        return self.counts.get(key, 0)

    def ranked(self) -> List[tuple]:
        """(key, count) pairs, highest count first; equal counts keep insertion order."""
        return sorted(self.counts.items(), key=lambda kv: kv[1], reverse=True)

    def to_dict(self) -> Dict[str, int]:
        return dict(self.counts)

    def __len__(self):
        return len(self.counts)


@dataclass
class ArtistPlay:
    artist_key: str
    played_at: datetime


class RecentArtistWindow:
    """Time-windowed memory of accepted artists (default 60 minutes)."""

    def __init__(self, interval_minutes: float = 60,
                 clock: Callable[[], datetime] = datetime.now):
        self.interval = timedelta(minutes=interval_minutes)
        self.clock    = clock
        self.entries: List[ArtistPlay] = []

    def prune(self) -> None:
        now = self.clock()
        self.entries = [e for e in self.entries if now - e.played_at < self.interval]

    def is_blocked(self, artist_key: str) -> bool:
        if not artist_key:
            return False
        self.prune()
        return any(e.artist_key == artist_key for e in self.entries)

    def mark_played(self, artist_key: str) -> None:
        if artist_key:
            self.entries.append(ArtistPlay(artist_key, self.clock()))

    def clear(self) -> None:
        self.entries = []

    def __len__(self):
        return len(self.entries)


@dataclass
class EngineState:
    """Everything a grade engine mutates while assembling."""
    ranking: RankingTable = field(default_factory=RankingTable)
    recent_artists: RecentArtistWindow = field(default_factory=RecentArtistWindow)
    used_tracks: Set[str] = field(default_factory=set)

    @classmethod
    def from_store(cls, store: KeyValueStore, interval_minutes: float = 60,
                   clock: Callable[[], datetime] = datetime.now) -> "EngineState":
        return cls(
            ranking=RankingTable.from_store(store),
            recent_artists=RecentArtistWindow(interval_minutes, clock),
        )

    def is_used(self, key: str) -> bool:
        return key in self.used_tracks

    def reset_day(self) -> None:
        self.used_tracks.clear()
        self.recent_artists.clear()
