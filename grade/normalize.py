"""
grade/normalize.py - Text canonicalization shared by the matcher, the catalog
index and the assembly engine.
"""
import re
import unicodedata

AUDIO_EXTENSIONS = ("mp3", "wav", "flac", "m4a", "ogg")

_EXT_RE   = re.compile(r"\.(?:%s)$" % "|".join(AUDIO_EXTENSIONS), re.IGNORECASE)
_NON_WORD = re.compile(r"[\W_]+")
_SPACES   = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lower-case, drop accents, turn punctuation into spaces, collapse whitespace."""
    if not text:
        return ""
    lowered    = text.lower()
    decomposed = unicodedata.normalize("NFD", lowered)
    stripped   = "".join(c for c in decomposed if not unicodedata.combining(c))
    spaced     = _NON_WORD.sub(" ", stripped)
    return _SPACES.sub(" ", spaced).strip()


def strip_extension(filename: str) -> str:
    return _EXT_RE.sub("", filename or "")


def split_artist_title(text: str) -> tuple:
    """
    Split "Artist - Title" (with or without an audio extension) into its halves.

    Only the first " - " separates; the rest stays part of the title.
    Without a separator the whole string is the title.
    """
    clean = strip_extension(text).strip()
    if " - " in clean:
        artist, rest = clean.split(" - ", 1)
        return artist.strip(), rest.strip()
    return "", clean


def extract_artist(text: str) -> str:
    return split_artist_title(text)[0]
