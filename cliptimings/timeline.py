"""Timeline comment parsing: HTML comment bodies with per-song links.

A timeline comment looks like::

    <a href="https://www.youtube.com/watch?v=abc&amp;t=125">2:05</a> 새소년 - 난춘<br>
    <a href="https://www.youtube.com/watch?v=abc&amp;t=410">6:50</a> 아이유 - 좋은날<br>

Parsing pipeline:
1. Decode the fixed entity table
2. Pair every anchor with the free text that follows it on the same line
3. Keep video-platform links that carry a time offset
4. Split the text into artist/title via the separator cascade
5. Sort by offset, drop repeated offsets
6. End of each entry = start of the next
7. Stamp every mention with the canonical video URL and broadcast date
"""

import logging
import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from cliptimings.config import (
    HTML_ENTITIES,
    SONG_SEPARATORS,
    TIME_OFFSET_KEYS,
    TIMELINE_PATTERNS,
    UNKNOWN_ARTIST,
    VIDEO_URL_MARKERS,
)
from cliptimings.dates import extract_broadcast_date
from cliptimings.models import ParsedMention

logger = logging.getLogger(__name__)

_ENTITY_RE = re.compile(r"&[#\w]+;")

# <a ... href="URL" ...>label</a> trailing text <br> (or newline / end)
_ANCHOR_RE = re.compile(
    r'<a[^>]*href="([^"]*)"[^>]*>[^<]*</a>[ \t]*([^<\n]*?)[ \t]*(?:<br\s*/?>|\n|$)',
    re.IGNORECASE,
)

_VIDEO_ID_RE = re.compile(r"(?:youtube\.com/watch\?(?:.*&)?v=|youtu\.be/)([^&\n?#]+)")
_OFFSET_VALUE_RE = re.compile(r"^(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s?)?$")


def decode_html_entities(text):
    """Replace the known entities; unknown ones are left untouched."""
    return _ENTITY_RE.sub(lambda m: HTML_ENTITIES.get(m.group(), m.group()), text)


# ── URL helpers ────────────────────────────────────────────────────────

def is_video_url(url):
    return any(marker in url for marker in VIDEO_URL_MARKERS)


def extract_video_id(url):
    """Video id from a watch or short link; empty string if there is none."""
    match = _VIDEO_ID_RE.search(url or "")
    return match.group(1) if match else ""


def _offset_to_seconds(value):
    """'125' / '125s' / '2m5s' / '1h2m5s' → seconds, None if unparseable."""
    match = _OFFSET_VALUE_RE.match(value.strip().lower())
    if not match or not any(match.groups()):
        return None
    hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def parse_time_offset(url):
    """Start offset in seconds carried by a video URL, or None.

    Looks at ``t=`` / ``start=`` in the query string first, then in the
    fragment (``#t=1m30s``).
    """
    parts = urlsplit(url)
    for component in (parts.query, parts.fragment):
        for key, value in parse_qsl(component, keep_blank_values=True):
            if key in TIME_OFFSET_KEYS:
                seconds = _offset_to_seconds(value)
                if seconds is not None:
                    return seconds
    return None


def strip_time_offset(url):
    """Drop offset parameters, keeping the rest of the URL intact."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True)
             if k not in TIME_OFFSET_KEYS]
    fragment = parts.fragment
    if any(k in TIME_OFFSET_KEYS for k, _ in parse_qsl(fragment)):
        fragment = ""
    return urlunsplit((parts.scheme, parts.netloc, parts.path,
                       urlencode(query), fragment))


# ── Song text ──────────────────────────────────────────────────────────

def parse_song_info(song_text):
    """Split ``"Artist - Title"`` into ``(artist, title, is_relevant)``.

    The first separator producing two non-empty halves wins; later
    occurrences of the same separator stay in the title.  Without a
    usable separator the whole text is the title and the artist is the
    ``unknown`` sentinel.
    """
    text = song_text.strip()
    for separator in SONG_SEPARATORS:
        if separator not in text:
            continue
        head, _, tail = text.partition(separator)
        artist, title = head.strip(), tail.strip()
        if artist and title:
            return artist, title, True
    return UNKNOWN_ARTIST, text, False


# ── Comment detection ──────────────────────────────────────────────────

def extract_timestamps(text):
    """All time tokens in a comment, in order of appearance, de-duplicated."""
    found = []
    for pattern in TIMELINE_PATTERNS:
        found.extend((m.start(), m.group()) for m in pattern.finditer(text or ""))
    seen = set()
    result = []
    for _, token in sorted(found):
        if token not in seen:
            seen.add(token)
            result.append(token)
    return result


def is_timeline_comment(text):
    return bool(extract_timestamps(text))


# ── Parser ─────────────────────────────────────────────────────────────

def _scan_links(html_text):
    """Yield ``(url, offset_seconds, song_text)`` for usable anchors."""
    for match in _ANCHOR_RE.finditer(html_text):
        url, song_text = match.group(1), match.group(2).strip()
        if not is_video_url(url):
            logger.debug("Skipping non-video link: %s", url)
            continue
        offset = parse_time_offset(url)
        if offset is None:
            logger.debug("Skipping link without time offset: %s", url)
            continue
        if not song_text:
            logger.debug("Skipping link with no song text: %s", url)
            continue
        yield url, offset, song_text


def parse_timeline_comment(html_text, video_title=""):
    """Parse an HTML timeline comment into time-ordered mentions.

    Never raises on malformed HTML; anything that does not look like a
    timed video link followed by song text is skipped.
    """
    decoded = decode_html_entities(html_text or "")
    entries = sorted(_scan_links(decoded), key=lambda e: e[1])

    unique = []
    seen_offsets = set()
    for entry in entries:
        if entry[1] in seen_offsets:
            logger.debug("Dropping repeated offset %ds: %s", entry[1], entry[2])
            continue
        seen_offsets.add(entry[1])
        unique.append(entry)

    if not unique:
        logger.info("No timed song links found in comment")
        return []

    base_url = strip_time_offset(unique[0][0])
    broadcast = extract_broadcast_date(video_title or "")

    mentions = []
    for i, (_, offset, song_text) in enumerate(unique):
        artist, title, is_relevant = parse_song_info(song_text)
        end = unique[i + 1][1] if i + 1 < len(unique) else None
        mentions.append(ParsedMention(
            artist=artist,
            title=title,
            start_seconds=offset,
            end_seconds=end,
            is_relevant=is_relevant,
            source_url=base_url,
            source_text=song_text,
            broadcast=broadcast,
        ))

    relevant = sum(1 for m in mentions if m.is_relevant)
    logger.info("Parsed %d timeline entries (%d relevant) from comment",
                len(mentions), relevant)
    return mentions
