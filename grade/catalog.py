"""
grade/catalog.py - Catalog index over the local audio archive.

The index is built once per archive listing: every filename is normalized a
single time into a CatalogEntry carrying its lookup key, style tag and artist
key. Rebuilding from the same listing yields the same index.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

import structlog

from grade.normalize import normalize, split_artist_title, strip_extension

logger = structlog.get_logger(logger_name=__name__)


# ---------------------------------------------------------------------------
# Style identification
# ---------------------------------------------------------------------------

DEFAULT_STYLE = "POP/VARIADO"

# Checked in order; the first style with a keyword hit wins.
STYLE_KEYWORDS = (
    ("AGRONEJO",  ("ana castela", "luan pereira", "us agroboy", "agronejo", "agro", "fazenda")),
    ("SERTANEJO", ("sertanejo", "modao", "gusttavo lima", "jorge", "mateus", "luan santana",
                   "ze neto", "cristiano")),
    ("PAGODE",    ("pagode", "samba", "thiaguinho", "ferrugem", "pique novo", "sorriso maroto",
                   "menos e mais")),
    ("DANCE",     ("dance", "eletronico", "alok", "david guetta", "remix", "eletro")),
    ("TEEN/HITS", ("teen", "hits", "disney", "olivia rodrigo", "billie eilish", "dua lipa",
                   "taylor swift")),
)


def identify_style(name: str) -> str:
    """Classify a song or filename into one of the fixed style tags by keyword."""
    lower = (name or "").lower()
    for style, keywords in STYLE_KEYWORDS:
        if any(k in lower for k in keywords):
            return style
    return DEFAULT_STYLE


# ---------------------------------------------------------------------------
# Content filter
# ---------------------------------------------------------------------------

class ContentFilter:
    """Keyword exclusion for station noise (ads, games) and unwanted genres."""

    def __init__(self, forbidden_words: Iterable[str] = (), funk_words: Iterable[str] = ()):
        self.forbidden_words = [w.lower() for w in forbidden_words if w]
        self.funk_words      = [w.lower() for w in funk_words if w]

    def is_forbidden(self, name: str) -> bool:
        lower = (name or "").lower()
        return any(w in lower for w in self.forbidden_words)

    def is_funk(self, name: str) -> bool:
        lower = (name or "").lower()
        return any(w in lower for w in self.funk_words)

    def is_filtered(self, name: str) -> bool:
        return self.is_forbidden(name) or self.is_funk(name)


# ---------------------------------------------------------------------------
# Entries and index
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CatalogEntry:
    """One archive file with its precomputed matching keys."""
    file: str
    normalized_key: str
    style_tag: str
    artist_key: str
    title_key: str = ""


def make_entry(file: str) -> CatalogEntry:
    artist, title = split_artist_title(file)
    return CatalogEntry(
        file=file,
        normalized_key=normalize(strip_extension(file)),
        style_tag=identify_style(file),
        artist_key=normalize(artist),
        title_key=normalize(title),
    )


class CatalogIndex:
    """
    Normalized view of the archive listing, keyed by normalized filename.

    Iteration follows the listing order. When two files normalize to the same
    key the first one is kept.
    """

    def __init__(self, files: Optional[Iterable[str]] = None):
        self._entries: Dict[str, CatalogEntry] = {}
        self._by_file: Dict[str, CatalogEntry] = {}
        self._listing: tuple = ()
        if files is not None:
            self.build(files)

    def build(self, files: Iterable[str]) -> "CatalogIndex":
        entries: Dict[str, CatalogEntry] = {}
        by_file: Dict[str, CatalogEntry] = {}
        listing = tuple(f for f in files if isinstance(f, str) and f)
        for file in listing:
            entry = make_entry(file)
            if not entry.normalized_key or entry.normalized_key in entries:
                continue
            entries[entry.normalized_key] = entry
            by_file[file] = entry
        self._entries = entries
        self._by_file = by_file
        self._listing = listing
        logger.debug("catalog_indexed", files=len(listing), entries=len(entries))
        return self

    def refresh(self, files: Iterable[str]) -> bool:
        """Rebuild only when the listing differs from the indexed one."""
        listing = tuple(f for f in files if isinstance(f, str) and f)
        if listing == self._listing:
            return False
        self.build(listing)
        return True

    def get(self, key: str) -> Optional[CatalogEntry]:
        return self._entries.get(key)

    def by_file(self, file: str) -> Optional[CatalogEntry]:
        entry = self._by_file.get(file)
        if entry is None:
            entry = self._entries.get(normalize(strip_extension(file or "")))
        return entry

    def files(self) -> List[str]:
        return [e.file for e in self._entries.values()]

    def __contains__(self, key) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)
