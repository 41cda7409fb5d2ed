"""Operator-typed timestamp lists: ``TIME ARTIST - TITLE`` per line.

Also hosts the timeline adjuster, which shifts every leading time token
in such a list by a fixed offset.
"""

import logging

from cliptimings.config import (
    LEADING_TIME_RE,
    MANUAL_SEPARATOR_PATTERNS,
    TIME_TOKEN_RE,
)
from cliptimings.models import ParsedMention
from cliptimings.timeline import strip_time_offset

logger = logging.getLogger(__name__)


def time_to_seconds(time_str):
    """``M:SS`` / ``MM:SS`` → m*60+s, ``H:MM:SS`` → h*3600+m*60+s, else 0."""
    try:
        parts = [int(p) for p in time_str.strip().split(":")]
    except (AttributeError, ValueError):
        return 0
    if len(parts) == 2:
        return parts[0] * 60 + parts[1]
    if len(parts) == 3:
        return parts[0] * 3600 + parts[1] * 60 + parts[2]
    return 0


def format_seconds(seconds):
    """Inverse of time_to_seconds: ``M:SS`` or ``H:MM:SS``; negatives clamp to 0."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _split_artist_title(text):
    for pattern in MANUAL_SEPARATOR_PATTERNS:
        match = pattern.match(text)
        if match:
            artist, title = match.group(1).strip(), match.group(2).strip()
            if artist and title:
                return artist, title
    return None


def parse_line(line):
    """Parse one line into ``(start_seconds, artist, title)`` or None."""
    match = TIME_TOKEN_RE.search(line)
    if not match:
        return None
    after = line[match.end():].strip()
    split = _split_artist_title(after)
    if split is None:
        return None
    return time_to_seconds(match.group(1)), split[0], split[1]


def parse_manual_timestamps(text, video_url=""):
    """Parse a block of timestamp lines into mentions, in the order typed.

    Lines with no time token or no artist/title separator are dropped.
    A mention ends where the next one starts, but only if the next start
    is actually later; out-of-order lines leave ``end_seconds`` unset.
    """
    source_url = strip_time_offset(video_url) if video_url else ""
    rows = []
    for line in (text or "").splitlines():
        line = line.strip()
        if not line:
            continue
        parsed = parse_line(line)
        if parsed is None:
            logger.debug("Skipping unparseable line: %r", line)
            continue
        rows.append((parsed, line))

    mentions = []
    for i, ((start, artist, title), line) in enumerate(rows):
        end = rows[i + 1][0][0] if i + 1 < len(rows) else None
        if end is not None and end <= start:
            logger.debug("Line %r is not followed by a later start; no end time", line)
            end = None
        mentions.append(ParsedMention(
            artist=artist,
            title=title,
            start_seconds=start,
            end_seconds=end,
            is_relevant=True,
            source_url=source_url,
            source_text=line,
        ))
    logger.info("Parsed %d manual timestamps", len(mentions))
    return mentions


# ── Timeline adjuster ──────────────────────────────────────────────────

def first_timestamp(text):
    """First leading time token in a block of lines, or None."""
    for line in (text or "").splitlines():
        match = LEADING_TIME_RE.match(line.strip())
        if match:
            return match.group(1)
    return None


def reference_offset(text, target_time):
    """Offset that moves the first timestamp in *text* onto *target_time*."""
    first = first_timestamp(text)
    if not first or not target_time or not target_time.strip():
        return 0
    return time_to_seconds(target_time) - time_to_seconds(first)


def shift_timeline(text, offset_seconds):
    """Shift every line's leading time token by *offset_seconds*.

    Shifted times clamp at 0:00.  Lines are trimmed; lines without a
    leading time are passed through unchanged.
    """
    out = []
    for line in (text or "").splitlines():
        stripped = line.strip()
        match = LEADING_TIME_RE.match(stripped)
        if not match:
            out.append(stripped)
            continue
        shifted = format_seconds(time_to_seconds(match.group(1)) + offset_seconds)
        out.append(shifted + stripped[match.end():])
    return "\n".join(out)
