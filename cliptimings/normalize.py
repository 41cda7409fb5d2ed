"""Comparison-only text normalization and edit-distance similarity.

Normalization pipeline (output is never stored or displayed):
1. Lowercase
2. Strip all whitespace
3. Drop hyphens, underscores, periods, middle dots, commas and brackets
4. Drop anything that is not a Latin or Hangul letter/digit
5. Fold full-width Latin letters and digits to half-width

Similarity is ``1 - levenshtein / max(len)`` over the normalized strings.
"""

import re

# ── Character tables ───────────────────────────────────────────────────
_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_RE = re.compile(r"[-_.·,()\[\]{}<>（）［］｛｝「」『』【】〈〉《》]")

# Latin (ASCII, Latin-1 letters, Latin Extended-A/B), Hangul (syllables,
# jamo, compatibility jamo) and full-width ASCII letters/digits survive.
_DISALLOWED_RE = re.compile(
    "[^0-9a-z"
    "À-ÖØ-öø-ɏ"
    "ᄀ-ᇿㄱ-ㆎ가-힣"
    "０-９Ａ-Ｚａ-ｚ]"
)
_FULLWIDTH_RE = re.compile("[０-９Ａ-Ｚａ-ｚ]")
_FULLWIDTH_OFFSET = 0xFEE0


def normalize_text(text):
    """Canonicalize a string for comparison.  Always returns a string."""
    if not text:
        return ""
    s = text.lower()
    s = _WHITESPACE_RE.sub("", s)
    s = _PUNCTUATION_RE.sub("", s)
    s = _DISALLOWED_RE.sub("", s)
    s = _FULLWIDTH_RE.sub(lambda m: chr(ord(m.group()) - _FULLWIDTH_OFFSET), s)
    return s.lower()


def levenshtein_distance(s1, s2):
    """Classic insert/delete/substitute edit distance (unit costs).

    Rolling single row, so memory is O(min(len(s1), len(s2))).
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def similarity(a, b):
    """Normalized edit-distance similarity in [0, 1].

    Empty input (before normalization) scores 0; identical input scores 1.
    Strings that normalize to nothing have no comparable content and
    score 0 unless they were identical to begin with.
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    na = normalize_text(a)
    nb = normalize_text(b)
    if not na or not nb:
        return 0.0
    if na == nb:
        return 1.0
    distance = levenshtein_distance(na, nb)
    return 1.0 - distance / max(len(na), len(nb))
