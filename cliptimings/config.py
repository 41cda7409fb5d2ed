"""Constants, thresholds, pattern tables, and named match policies."""

import os
import re
from dataclasses import dataclass


@dataclass(frozen=True)
class MatchPolicy:
    name: str                # "manual" or "timeline"
    title_weight: float      # share of confidence from title similarity
    artist_weight: float     # share of confidence from artist similarity
    accept_threshold: float  # auto-match at or above this confidence

    def confidence(self, title_similarity, artist_similarity):
        return (title_similarity * self.title_weight
                + artist_similarity * self.artist_weight)


# ── Match policies ─────────────────────────────────────────────────────
# The two workflows drifted apart: operator-typed timestamps weight the
# title at 70% and only auto-match at 0.95, while viewer timeline comments
# weight it at 60% and auto-match at 0.8.  Both are kept as-is until the
# product owners decide whether to unify them.
MANUAL_POLICY = MatchPolicy(
    name="manual",
    title_weight=0.7,
    artist_weight=0.3,
    accept_threshold=0.95,
)
TIMELINE_POLICY = MatchPolicy(
    name="timeline",
    title_weight=0.6,
    artist_weight=0.4,
    accept_threshold=0.8,
)
POLICIES = {
    MANUAL_POLICY.name: MANUAL_POLICY,
    TIMELINE_POLICY.name: TIMELINE_POLICY,
}


def get_policy(name):
    """Look up a named policy; unknown names are a caller error."""
    try:
        return POLICIES[name]
    except KeyError:
        raise ValueError(
            f"unknown match policy {name!r} (expected one of {sorted(POLICIES)})"
        ) from None


# ── Candidate ranking ──────────────────────────────────────────────────
CANDIDATE_LIMIT = 5
MIN_TITLE_SIMILARITY = 0.6       # hard floor on effective title similarity
MIN_CONFIDENCE = 0.7             # ...and one of: confidence >= this,
STRONG_TITLE_SIMILARITY = 0.8    # title >= this,
STRONG_ARTIST_SIMILARITY = 0.9   # or artist >= this with
WEAK_TITLE_SIMILARITY = 0.3      # title >= this
TAG_PARTIAL_FLOOR = 0.8          # substring hit against a search tag

# Reason cascade thresholds (labels only; they do not affect filtering)
REASON_TITLE_EXACT = 0.9
REASON_TITLE_SIMILAR = 0.7
REASON_ARTIST_MATCH = 0.8

# ── Batch matching ─────────────────────────────────────────────────────
DEFAULT_MATCH_WORKERS = int(os.getenv("CLIPTIMINGS_MATCH_WORKERS", "4"))

# ── Song text splitting ────────────────────────────────────────────────
# Tried in order; the first one that yields two non-empty halves wins.
SONG_SEPARATORS = [" - ", " – ", " — ", " | ", " / "]
UNKNOWN_ARTIST = "unknown"

# ── HTML comments ──────────────────────────────────────────────────────
# Only these entities are decoded; anything else is left verbatim.
HTML_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#x27;": "'",
    "&#x2F;": "/",
    "&#x60;": "`",
    "&#x3D;": "=",
}

# Substrings that mark a link as a video-platform watch URL
VIDEO_URL_MARKERS = ("youtube.com/watch", "youtu.be/")

# Query/fragment keys that carry a start offset
TIME_OFFSET_KEYS = ("t", "start")

# ── Manual timestamps ──────────────────────────────────────────────────
# M:SS, MM:SS, H:MM:SS (first time-looking token on the line)
TIME_TOKEN_RE = re.compile(r"(?<!\d)(\d{1,2}:\d{2}(?::\d{2})?)(?!\d)")
LEADING_TIME_RE = re.compile(r"^(\d{1,2}:\d{2}(?::\d{2})?)(?!\d)")

# Artist/title split for manual lines, tried in order
MANUAL_SEPARATOR_PATTERNS = [
    re.compile(r"^(.+?)\s+[-–]\s+(.+)$"),  # spaced dash wins over hyphenated names
    re.compile(r"^(.+?)\s*[-–]\s*(.+)$"),
]

# ── Timeline comment detection ─────────────────────────────────────────
TIMELINE_PATTERNS = [
    re.compile(r"(?<![\d:])\d{1,2}:\d{2}:\d{2}(?![\d:])"),  # 1:02:03
    re.compile(r"(?<![\d:])\d{1,2}:\d{2}(?![\d:])"),          # 3:45, @3:45
    re.compile(r"(?<!\d)\d{1,2}분\s*\d{1,2}초"),               # 3분45초
]

# ── Broadcast dates ────────────────────────────────────────────────────
SHORT_YEAR_PIVOT = 50   # YY < 50 → 20YY, otherwise 19YY
