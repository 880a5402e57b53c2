"""
grade/assembler.py - Grade assembly engine.

Fills every half-hour slot of a broadcast day with music copied from the
source stations' play history, falling back through ranked and curated picks
to a placeholder. Key behaviour:

- Rotation: each song position in a block copies from the station the
  rotation assigns to it (pooled ids pick one member with history).
- Ranked highlight: one designated slot takes songs from the ranking table
  first, most played first.
- History tier: station songs are shuffled and looked up in the catalog,
  exactly first and then fuzzily; a hit bumps the ranking table.
- Style-curated tier: catalog songs in the station's styles, best ranked 50,
  random pick among the top 10.
- General tier: any remaining catalog song.
- Placeholder: nothing fits; an operator or a later pass resolves it.
- Separation: a track plays at most once per day and an artist is not
  accepted twice inside the repetition window.
- Fixed content: weekday assets are prepended by hour and minute; locked
  hours carry fixed content only.

Everything the engine mutates lives in an EngineState; randomness comes from
the injected random.Random so runs can be reproduced in tests.
"""
import random
from typing import Dict, Iterable, List, Optional

import structlog

from grade.catalog import DEFAULT_STYLE, CatalogEntry, CatalogIndex, ContentFilter
from grade.fixed_content import DAYS, fixed_files, program_id_for
from grade.matcher import MatchResult, match
from grade.models import (
    SOURCE_CURATED,
    SOURCE_CURATED_GENERAL,
    SOURCE_RANKING,
    Slot,
    SlotContent,
)
from grade.normalize import normalize, split_artist_title
from grade.ranking import EngineState, RecentArtistWindow
from grade.rotation import RotationResolver
from grade.rules import merge_config
from grade.stations import load_snapshots

logger = structlog.get_logger(logger_name=__name__)


def day_times() -> List[str]:
    """00:00, 00:30, ... 23:30"""
    return [f"{h:02d}:{m:02d}" for h in range(24) for m in (0, 30)]


def _parse_time(time: str) -> tuple:
    hour, _, minute = str(time).partition(":")
    return int(hour), int(minute or 0)


class GradeAssemblyEngine:
    """
    Per-slot and per-day content selection.

    Args:
        config:   overrides merged onto DEFAULT_CONFIG.
        state:    ranking / recency / used-track state; a fresh one by default.
        rotation: a RotationResolver, or stored rotation dicts to build one from.
        rng:      random source for shuffles and picks.
        catalog:  an existing CatalogIndex to share.
    """

    def __init__(self, config: Optional[dict] = None, state: Optional[EngineState] = None,
                 rotation=None, rng: Optional[random.Random] = None,
                 catalog: Optional[CatalogIndex] = None):
        self.config  = merge_config(config or {})
        self.rng     = rng or random.Random()
        self.state   = state or EngineState(
            recent_artists=RecentArtistWindow(self.config["artist_repetition_minutes"])
        )
        self.catalog = catalog if catalog is not None else CatalogIndex()

        if isinstance(rotation, RotationResolver):
            self.rotation = rotation
        else:
            self.rotation = RotationResolver(
                rotation,
                block_length=self.config["songs_per_block"],
                pools=self.config["station_pools"],
                pool_defaults=self.config["pool_defaults"],
                default_station=self.config["default_station"],
                rng=self.rng,
            )

        self.content_filter = ContentFilter(self.config["forbidden_words"], self.config["funk_words"])
        self.station_history: Dict[str, List[str]] = {}
        self.station_styles: Dict[str, List[str]] = {}
        self._match_cache: Dict[str, Optional[MatchResult]] = {}

    # -----------------------------------------------------------------------
    # Inputs
    # -----------------------------------------------------------------------

    def build_inventory(self, files: Iterable[str]) -> None:
        if self.catalog.refresh(files):
            self._match_cache.clear()
            logger.info("inventory_built", entries=len(self.catalog))

    def update_station_history(self, stations) -> None:
        """Take over station snapshots; forbidden and funk songs are dropped here."""
        for snapshot in load_snapshots(stations):
            key   = snapshot.station_id.lower()
            songs = [s for s in snapshot.songs() if not self.content_filter.is_filtered(s)]
            self.station_history[key] = songs
            if snapshot.style_tags:
                self.station_styles[key] = list(snapshot.style_tags)
            logger.debug("station_history_updated", station=key, songs=len(songs))

    # -----------------------------------------------------------------------
    # Lookups
    # -----------------------------------------------------------------------

    def get_program_id(self, hour: int) -> str:
        return program_id_for(hour, self.config["program_ids"], self.config["default_program_id"])

    def get_fixed_content(self, hour: int, minute: int, day: str) -> List[str]:
        return fixed_files(hour, minute, day)

    def is_locked_hour(self, hour: int) -> bool:
        return hour in self.config["locked_hours"]

    def block_size(self, hour: int) -> int:
        if hour == self.config["highlight_block_hour"]:
            return self.config["highlight_block_songs"]
        return self.config["songs_per_block"]

    def styles_for(self, station: str) -> List[str]:
        return (
            self.station_styles.get(station)
            or self.config["station_styles"].get(station)
            or [DEFAULT_STYLE]
        )

    # -----------------------------------------------------------------------
    # Eligibility helpers
    # -----------------------------------------------------------------------

    def _is_blocked(self, *artist_keys: str) -> bool:
        return any(self.state.recent_artists.is_blocked(k) for k in artist_keys if k)

    def _available(self, entry: CatalogEntry, blocked: set) -> bool:
        return (
            entry.normalized_key not in self.state.used_tracks
            and entry.artist_key not in blocked
            and not self.content_filter.is_filtered(entry.file)
        )

    def _blocked_artists(self) -> set:
        window = self.state.recent_artists
        window.prune()
        return {e.artist_key for e in window.entries}

    def _accept(self, entry: CatalogEntry, source: str, *artist_keys: str) -> SlotContent:
        self.state.used_tracks.add(entry.normalized_key)
        for key in dict.fromkeys(k for k in (entry.artist_key,) + artist_keys if k):
            self.state.recent_artists.mark_played(key)
        return SlotContent.music(entry.file, source)

    def _fuzzy(self, song: str, artist: str, title: str) -> Optional[MatchResult]:
        if song not in self._match_cache:
            self._match_cache[song] = match(
                artist, title, self.catalog, self.config["history_min_score"]
            )
        return self._match_cache[song]

    # -----------------------------------------------------------------------
    # Selection tiers
    # -----------------------------------------------------------------------

    def _pick_ranked(self) -> Optional[SlotContent]:
        for key, _count in self.state.ranking.ranked():
            entry = self.catalog.get(key)
            if entry is None or key in self.state.used_tracks:
                continue
            if self._is_blocked(entry.artist_key):
                continue
            return self._accept(entry, SOURCE_RANKING)
        return None

    def _pick_from_history(self, station: str) -> Optional[SlotContent]:
        songs = list(self.station_history.get(station, []))
        self.rng.shuffle(songs)

        for song in songs:
            song_key      = normalize(song)
            artist, title = split_artist_title(song)
            artist_key    = normalize(artist)
            if not song_key or song_key in self.state.used_tracks or self._is_blocked(artist_key):
                continue

            entry = self.catalog.get(song_key)
            if entry is None:
                result = self._fuzzy(song, artist, title)
                if result is None:
                    continue
                entry = self.catalog.by_file(result.file)
                if entry is None:
                    continue
                if entry.normalized_key in self.state.used_tracks or self._is_blocked(entry.artist_key):
                    continue

            self.state.ranking.record_play(entry.normalized_key)
            return self._accept(entry, station, artist_key)
        return None

    def _pick_style_curated(self, station: str) -> Optional[SlotContent]:
        styles  = self.styles_for(station)
        blocked = self._blocked_artists()
        options = [e for e in self.catalog if e.style_tag in styles and self._available(e, blocked)]
        if not options:
            return None

        ranking = self.state.ranking
        options.sort(key=lambda e: ranking.count(e.normalized_key), reverse=True)
        top  = options[:self.config["curated_top_n"]]
        best = top[:self.config["curated_pick_n"]]
        return self._accept(self.rng.choice(best), SOURCE_CURATED)

    def _pick_general(self) -> Optional[SlotContent]:
        blocked   = self._blocked_artists()
        available = [e for e in self.catalog if self._available(e, blocked)]
        if not available:
            return None
        return self._accept(self.rng.choice(available), SOURCE_CURATED_GENERAL)

    # -----------------------------------------------------------------------
    # Assembly
    # -----------------------------------------------------------------------

    def pick_for_position(self, position: int, highlight: bool = False) -> SlotContent:
        """Run the fallback ladder for one song position."""
        station = self.rotation.resolve(position, self.station_history)

        item = self._pick_ranked() if highlight else None
        if item is None:
            item = self._pick_from_history(station)
        if item is None:
            item = self._pick_style_curated(station)
        if item is None:
            item = self._pick_general()
        if item is None:
            logger.debug("position_placeholder", position=position, station=station)
            item = SlotContent.placeholder(self.config["placeholder_code"])
        return item

    def assemble_block(self, time: str, day: str, catalog_files: Optional[Iterable[str]] = None,
                       stations=None) -> List[SlotContent]:
        """Build the content of one half-hour slot."""
        if catalog_files is not None:
            self.build_inventory(catalog_files)
        if stations is not None:
            self.update_station_history(stations)

        hour, minute = _parse_time(time)
        content = [SlotContent.fixed(f) for f in self.get_fixed_content(hour, minute, day)]
        if self.is_locked_hour(hour):
            return content

        highlight = f"{hour:02d}:{minute:02d}" == self.config["ranked_highlight_time"]
        num_songs = self.block_size(hour)
        for pos in range(1, num_songs + 1):
            content.append(self.pick_for_position(pos, highlight))
            if pos < num_songs:
                content.append(SlotContent.jingle(self.config["jingle_code"]))
        return content

    def assemble_full_day(self, day: str, catalog_files: Optional[Iterable[str]] = None,
                          stations=None) -> List[Slot]:
        """Assemble all 48 slots in order; later slots see earlier exclusions."""
        if day not in DAYS:
            logger.warning("unknown_day", day=day)
        if catalog_files is not None:
            self.build_inventory(catalog_files)
        if stations is not None:
            self.update_station_history(stations)

        self.state.reset_day()
        slots = []
        for time in day_times():
            hour, _ = _parse_time(time)
            slots.append(Slot(
                time=time,
                program_id=self.get_program_id(hour),
                is_fixed=self.is_locked_hour(hour),
                content=self.assemble_block(time, day),
            ))

        music        = sum(len(s.music()) for s in slots)
        placeholders = sum(1 for s in slots for c in s.content if c.fills_position and not c.is_music)
        logger.info("day_assembled", day=day, music=music, placeholders=placeholders,
                    catalog=len(self.catalog))
        return slots

    def reset_used_blocks(self) -> None:
        self.state.reset_day()


def resolve_placeholders(slots: List[Slot], files: List[str], source: Optional[str] = None) -> int:
    """
    Replace placeholders, in broadcast order, with the given files.

    Stops when ``files`` runs out. Returns how many placeholders were replaced.
    """
    pending  = list(files)
    replaced = 0
    for slot in slots:
        for i, item in enumerate(slot.content):
            if not pending:
                return replaced
            if item.fills_position and not item.is_music:
                slot.content[i] = SlotContent.music(pending.pop(0), source)
                replaced += 1
    return replaced
