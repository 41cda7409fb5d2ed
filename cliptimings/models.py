"""Shared dataclasses passed between the parsers and the matcher.

Everything here is immutable: a mention or decision is built once per
invocation and never mutated afterwards.  Persistence (turning a mention
into a stored clip) belongs to the caller.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field, replace

from cliptimings.config import CANDIDATE_LIMIT


@dataclass(frozen=True)
class BroadcastDateInfo:
    date: datetime.date | None = None
    matched_substring: str | None = None


NO_DATE = BroadcastDateInfo()


@dataclass(frozen=True)
class ParsedMention:
    artist: str
    title: str
    start_seconds: int
    end_seconds: int | None = None
    is_relevant: bool = True
    source_url: str = ""
    source_text: str = ""
    broadcast: BroadcastDateInfo = NO_DATE

    def __post_init__(self):
        if self.start_seconds < 0:
            raise ValueError(f"start_seconds must be >= 0, got {self.start_seconds}")
        if self.end_seconds is not None and self.end_seconds <= self.start_seconds:
            raise ValueError(
                f"end_seconds ({self.end_seconds}) must be greater than "
                f"start_seconds ({self.start_seconds})"
            )

    @property
    def duration_seconds(self) -> int | None:
        if self.end_seconds is None:
            return None
        return self.end_seconds - self.start_seconds

    def with_end(self, end_seconds):
        return replace(self, end_seconds=end_seconds)

    def to_dict(self):
        return {
            "artist": self.artist,
            "title": self.title,
            "start_seconds": self.start_seconds,
            "end_seconds": self.end_seconds,
            "duration_seconds": self.duration_seconds,
            "is_relevant": self.is_relevant,
            "source_url": self.source_url,
            "source_text": self.source_text,
            "broadcast_date": (self.broadcast.date.isoformat()
                               if self.broadcast.date else None),
            "broadcast_date_text": self.broadcast.matched_substring,
        }


@dataclass(frozen=True)
class CatalogEntry:
    id: str
    title: str
    artist: str = ""
    title_alias: str | None = None
    artist_alias: str | None = None
    search_tags: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MatchCandidate:
    catalog_id: str
    title: str
    artist: str
    confidence: float
    title_similarity: float
    artist_similarity: float
    reason: str

    def to_dict(self):
        return {
            "catalog_id": self.catalog_id,
            "title": self.title,
            "artist": self.artist,
            "confidence": round(self.confidence, 4),
            "title_similarity": round(self.title_similarity, 4),
            "artist_similarity": round(self.artist_similarity, 4),
            "reason": self.reason,
        }


# ── Match decisions ────────────────────────────────────────────────────
# Exactly one of AutoMatched / Candidates / NoMatch per mention.

@dataclass(frozen=True)
class AutoMatched:
    candidate: MatchCandidate
    kind = "auto_matched"

    def to_dict(self):
        return {"kind": self.kind, "match": self.candidate.to_dict()}


@dataclass(frozen=True)
class Candidates:
    candidates: tuple[MatchCandidate, ...]
    kind = "candidates"

    def __post_init__(self):
        if not 1 <= len(self.candidates) <= CANDIDATE_LIMIT:
            raise ValueError(
                f"Candidates needs 1..{CANDIDATE_LIMIT} entries, "
                f"got {len(self.candidates)}"
            )

    def to_dict(self):
        return {"kind": self.kind,
                "candidates": [c.to_dict() for c in self.candidates]}


@dataclass(frozen=True)
class NoMatch:
    kind = "no_match"

    def to_dict(self):
        return {"kind": self.kind}


MatchDecision = AutoMatched | Candidates | NoMatch


def clip_id(comment_id, mention):
    """Stable identifier for the clip a mention becomes: ``{comment}_{start}``."""
    return f"{comment_id}_{mention.start_seconds}"
