"""
grade/stations.py - Ingestion boundary for station snapshots.

Snapshots arrive from an external capture pipeline in either the English
field names or the pipeline's own (tocandoAgora / ultimasTocadas / historico).
Whatever is malformed is defaulted here so the assembly loop only ever sees
clean StationSnapshot objects.
"""
from typing import List

import structlog

from grade.models import StationSnapshot

logger = structlog.get_logger(logger_name=__name__)


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _text_list(value) -> list:
    if not isinstance(value, (list, tuple)):
        return []
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def snapshot_from_dict(data: dict) -> StationSnapshot:
    """Build a StationSnapshot from a loosely shaped dict. Never raises."""
    if not isinstance(data, dict):
        data = {}

    station_id = (
        _text(data.get("station_id"))
        or _text(data.get("id"))
        or _text(data.get("name"))
    )
    playing = _text(data.get("currently_playing")) or _text(data.get("tocandoAgora"))

    recent = _text_list(data.get("recently_played")) or _text_list(data.get("ultimasTocadas"))
    historico = data.get("historico")
    if isinstance(historico, list):
        recent += [
            _text(h.get("musica")) for h in historico
            if isinstance(h, dict) and _text(h.get("musica"))
        ]

    return StationSnapshot(
        station_id=station_id,
        currently_playing=playing or None,
        recently_played=recent,
        style_tags=_text_list(data.get("style_tags")),
    )


def load_snapshots(items) -> List[StationSnapshot]:
    """Convert a list of raw snapshot dicts, skipping anything that isn't one."""
    if not isinstance(items, (list, tuple)):
        return []
    snapshots = []
    for i, item in enumerate(items):
        if isinstance(item, StationSnapshot):
            snapshots.append(item)
            continue
        if not isinstance(item, dict):
            logger.warning("snapshot_skipped", index=i, type=type(item).__name__)
            continue
        snapshot = snapshot_from_dict(item)
        if not snapshot.station_id:
            logger.warning("snapshot_without_station", index=i)
            continue
        snapshots.append(snapshot)
    return snapshots
