"""
Data models for grade assembly.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ContentKind(str, Enum):
    MUSIC       = "music"
    JINGLE      = "vht"
    FIXED       = "fixed"
    PLACEHOLDER = "placeholder"


# Sources recorded on music items that did not come from a station's history.
SOURCE_RANKING         = "TOP10_RANKING"
SOURCE_CURATED         = "CURADORIA"
SOURCE_CURATED_GENERAL = "CURADORIA_GERAL"


@dataclass(frozen=True)
class SlotContent:
    """One item in a block: a song, a jingle, a fixed asset or a placeholder."""
    kind: ContentKind
    value: str
    source: Optional[str] = None

    @classmethod
    def music(cls, file: str, source: Optional[str] = None) -> "SlotContent":
        return cls(ContentKind.MUSIC, file, source)

    @classmethod
    def jingle(cls, code: str = "vht") -> "SlotContent":
        return cls(ContentKind.JINGLE, code)

    @classmethod
    def fixed(cls, file: str) -> "SlotContent":
        return cls(ContentKind.FIXED, file)

    @classmethod
    def placeholder(cls, code: str = "mus") -> "SlotContent":
        return cls(ContentKind.PLACEHOLDER, code)

    @property
    def is_music(self) -> bool:
        return self.kind is ContentKind.MUSIC

    @property
    def fills_position(self) -> bool:
        """Music or placeholder: the items that occupy a song position."""
        return self.kind in (ContentKind.MUSIC, ContentKind.PLACEHOLDER)

    def to_dict(self) -> dict:
        data = {"type": self.kind.value, "value": self.value}
        if self.source:
            data["radioSource"] = self.source
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SlotContent":
        return cls(ContentKind(data["type"]), data.get("value", ""), data.get("radioSource"))


@dataclass
class Slot:
    """A half-hour programming position and the block that fills it."""
    time: str
    program_id: str
    is_fixed: bool = False
    content: List[SlotContent] = field(default_factory=list)

    @property
    def hour(self) -> int:
        return int(self.time.split(":")[0])

    def music(self) -> List[SlotContent]:
        return [c for c in self.content if c.is_music]

    def to_dict(self) -> dict:
        return {
            "time":      self.time,
            "programId": self.program_id,
            "isFixed":   self.is_fixed,
            "content":   [c.to_dict() for c in self.content],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Slot":
        return cls(
            time=data["time"],
            program_id=data.get("programId", ""),
            is_fixed=bool(data.get("isFixed", False)),
            content=[SlotContent.from_dict(c) for c in data.get("content", [])],
        )


@dataclass
class StationSnapshot:
    """What a source station played, as handed over by the capture pipeline."""
    station_id: str
    currently_playing: Optional[str] = None
    recently_played: List[str] = field(default_factory=list)
    style_tags: List[str] = field(default_factory=list)

    def songs(self) -> List[str]:
        songs = [self.currently_playing] if self.currently_playing else []
        return songs + list(self.recently_played)


@dataclass(frozen=True)
class RotationRule:
    """Positions start..end (1-based, inclusive) copy from station_id."""
    start: int
    end: int
    station_id: str

    def covers(self, position: int) -> bool:
        return self.start <= position <= self.end

    def to_dict(self) -> dict:
        positions = str(self.start) if self.start == self.end else f"{self.start}-{self.end}"
        return {"positions": positions, "radioId": self.station_id}
