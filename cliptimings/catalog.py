"""Read-only catalog snapshots.

The song catalog lives in an external store; callers hand the matcher an
immutable snapshot per batch.  This module turns loose records (dicts
from JSON or a database driver) into a tuple of CatalogEntry and rejects
records that break the contract: a missing ``id`` or ``title`` means the
store or its client is broken, so it fails fast instead of being skipped.
"""

import json
import logging
from pathlib import Path

from cliptimings.models import CatalogEntry

logger = logging.getLogger(__name__)

# Accepted spellings per field: snake_case first, then the store's camelCase
_FIELD_KEYS = {
    "id": ("id", "song_id", "songId", "_id"),
    "title": ("title",),
    "artist": ("artist",),
    "title_alias": ("title_alias", "titleAlias"),
    "artist_alias": ("artist_alias", "artistAlias"),
    "search_tags": ("search_tags", "searchTags"),
}


class CatalogError(ValueError):
    """A catalog record violates the snapshot contract."""


def _pick(record, field):
    for key in _FIELD_KEYS[field]:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _optional_text(record, field, index):
    value = _pick(record, field)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise CatalogError(f"record {index}: {field} must be a string, got {value!r}")
    return value


def entry_from_record(record, index=0):
    """Build a CatalogEntry from one mapping, raising CatalogError on bad input."""
    if isinstance(record, CatalogEntry):
        if not record.id or not record.title:
            raise CatalogError(f"record {index}: missing id or title")
        return record
    if not isinstance(record, dict):
        raise CatalogError(f"record {index}: expected a mapping, got {type(record).__name__}")

    song_id = _pick(record, "id")
    if song_id is None or str(song_id).strip() == "":
        raise CatalogError(f"record {index}: missing id")
    title = _pick(record, "title")
    if not isinstance(title, str) or not title.strip():
        raise CatalogError(f"record {index} ({song_id}): missing title")
    artist = _pick(record, "artist")
    if artist is None:
        artist = ""
    if not isinstance(artist, str):
        raise CatalogError(f"record {index} ({song_id}): artist must be a string")

    tags = _pick(record, "search_tags") or ()
    if not isinstance(tags, (list, tuple)) or not all(isinstance(t, str) for t in tags):
        raise CatalogError(f"record {index} ({song_id}): search_tags must be a list of strings")

    return CatalogEntry(
        id=str(song_id),
        title=title,
        artist=artist,
        title_alias=_optional_text(record, "title_alias", index),
        artist_alias=_optional_text(record, "artist_alias", index),
        search_tags=tuple(t for t in tags if t.strip()),
    )


def build_catalog(records):
    """Freeze an iterable of records into an immutable snapshot (tuple)."""
    return tuple(entry_from_record(r, i) for i, r in enumerate(records))


def load_catalog(path):
    """Load a snapshot from a JSON file holding an array of song records.

    A top-level object with a ``songs`` array (the shape of the songbook
    API response) is accepted as well.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("songs")
    if not isinstance(data, list):
        raise CatalogError(f"{path}: expected a JSON array of song records")
    catalog = build_catalog(data)
    logger.info("Loaded %d catalog entries from %s", len(catalog), path)
    return catalog
