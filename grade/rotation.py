"""
grade/rotation.py - Maps a song position inside a block to the source station
it should be copied from.

A rotation is an ordered list of position ranges. Ranges must be disjoint and
cover the whole block; a rotation that breaks that is not used and the
built-in default takes its place. Some station ids are pools (e.g.
random_pop) that resolve to one of several real stations at pick time.
"""
import random
from typing import Dict, List, Optional

import structlog

from grade.models import RotationRule
from grade.rules import DEFAULT_CONFIG, DEFAULT_ROTATION

logger = structlog.get_logger(logger_name=__name__)


class ConfigurationError(ValueError):
    """Rotation settings that cannot be used as given."""


# ---------------------------------------------------------------------------
# Parsing and validation
# ---------------------------------------------------------------------------

def parse_positions(text) -> tuple:
    """'1-5' -> (1, 5); '10' -> (10, 10)."""
    raw = str(text).strip()
    start, sep, end = raw.partition("-")
    try:
        first = int(start)
        last  = int(end) if sep else first
    except ValueError:
        raise ConfigurationError(f"Invalid position range: {text!r}")
    if first < 1 or last < first:
        raise ConfigurationError(f"Invalid position range: {text!r}")
    return first, last


def rotation_from_config(items) -> List[RotationRule]:
    """Convert stored {positions, radioId} dicts into RotationRule objects."""
    if not isinstance(items, (list, tuple)):
        raise ConfigurationError("Rotation must be a list")
    rules = []
    for item in items:
        if isinstance(item, RotationRule):
            rules.append(item)
            continue
        if not isinstance(item, dict):
            raise ConfigurationError(f"Invalid rotation entry: {item!r}")
        station = item.get("radioId") or item.get("station_id")
        if not station or not isinstance(station, str):
            raise ConfigurationError(f"Rotation entry without station: {item!r}")
        if "positions" in item:
            start, end = parse_positions(item["positions"])
        else:
            start, end = parse_positions(f"{item.get('start')}-{item.get('end')}")
        rules.append(RotationRule(start, end, station))
    return rules


def validate_rotation(rules: List[RotationRule], block_length: int) -> None:
    """Raise ConfigurationError unless rules cover 1..block_length exactly once."""
    if not rules:
        raise ConfigurationError("Rotation is empty")
    covered: Dict[int, str] = {}
    for rule in rules:
        if rule.start < 1 or rule.end < rule.start:
            raise ConfigurationError(f"Invalid range {rule.start}-{rule.end}")
        if rule.end > block_length:
            raise ConfigurationError(
                f"Range {rule.start}-{rule.end} ({rule.station_id}) is beyond block length {block_length}"
            )
        for pos in range(rule.start, rule.end + 1):
            if pos in covered:
                raise ConfigurationError(
                    f"Position {pos} assigned to both {covered[pos]} and {rule.station_id}"
                )
            covered[pos] = rule.station_id
    missing = [p for p in range(1, block_length + 1) if p not in covered]
    if missing:
        raise ConfigurationError(f"Positions not covered: {missing}")


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class RotationResolver:
    """
    Resolve block positions to stations.

    Args:
        rules:           configured rotation (RotationRule objects or stored dicts).
        block_length:    songs in a full block; the rotation must cover exactly these.
        pools:           pooled id -> member station ids.
        pool_defaults:   pooled id -> station used when no member has history.
        default_station: station for positions outside every rule.
        rng:             random source for pooled picks.
    """

    def __init__(self, rules=None, block_length: int = 10,
                 pools: Optional[Dict[str, List[str]]] = None,
                 pool_defaults: Optional[Dict[str, str]] = None,
                 default_station: Optional[str] = None,
                 rng: Optional[random.Random] = None):
        self.block_length    = block_length
        self.pools           = pools if pools is not None else DEFAULT_CONFIG["station_pools"]
        self.pool_defaults   = pool_defaults if pool_defaults is not None else DEFAULT_CONFIG["pool_defaults"]
        self.default_station = default_station or DEFAULT_CONFIG["default_station"]
        self.rng             = rng or random.Random()
        self.error: Optional[str] = None
        self.rules           = self._load(rules)

    def _load(self, rules) -> List[RotationRule]:
        if not rules:
            return rotation_from_config(DEFAULT_ROTATION)
        try:
            parsed = rotation_from_config(rules)
            validate_rotation(parsed, self.block_length)
        except ConfigurationError as exc:
            self.error = str(exc)
            logger.warning("rotation_invalid_using_default", error=self.error)
            return rotation_from_config(DEFAULT_ROTATION)
        return parsed

    @property
    def using_default(self) -> bool:
        return self.rules == rotation_from_config(DEFAULT_ROTATION)

    def station_for(self, position: int) -> str:
        """Configured station id for a position; may be a pooled id."""
        for rule in self.rules:
            if rule.covers(position):
                return rule.station_id
        return self.default_station

    def is_pool(self, station_id: str) -> bool:
        return station_id in self.pools

    def pick_from_pool(self, pool_id: str, histories: Dict[str, list]) -> str:
        """Uniform pick among pool members with history, else the pool default."""
        members = self.pools.get(pool_id, [])
        with_history = [m for m in members if histories.get(m)]
        if with_history:
            return self.rng.choice(with_history)
        if pool_id in self.pool_defaults:
            return self.pool_defaults[pool_id]
        return members[0] if members else self.default_station

    def resolve(self, position: int, histories: Optional[Dict[str, list]] = None) -> str:
        """Concrete station to copy from at ``position``."""
        station = self.station_for(position).lower()
        if self.is_pool(station):
            return self.pick_from_pool(station, histories or {})
        return station

    def to_config(self) -> list:
        return [r.to_dict() for r in self.rules]
