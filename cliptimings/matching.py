"""Candidate ranking and the match decision policy.

For each catalog entry the mention's title and artist are scored against
the entry's main value, its alias and every search tag; the best score
per field wins.  Tags get two extra rules: an exact (normalized) hit
pins the field at 1.0, and a substring hit in either direction floors it
at 0.8.

Ranking keeps an entry only when its title similarity is at least 0.6
and one of these holds:
  - weighted confidence >= 0.7
  - title similarity >= 0.8
  - artist similarity >= 0.9 and title similarity >= 0.3
Survivors are ordered by title similarity, then confidence, and cut to 5.

The decision is NoMatch for an empty list, AutoMatched when the top
confidence reaches the policy's threshold, Candidates otherwise.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from cliptimings.catalog import build_catalog
from cliptimings.config import (
    CANDIDATE_LIMIT,
    DEFAULT_MATCH_WORKERS,
    MIN_CONFIDENCE,
    MIN_TITLE_SIMILARITY,
    REASON_ARTIST_MATCH,
    REASON_TITLE_EXACT,
    REASON_TITLE_SIMILAR,
    STRONG_ARTIST_SIMILARITY,
    STRONG_TITLE_SIMILARITY,
    TAG_PARTIAL_FLOOR,
    WEAK_TITLE_SIMILARITY,
)
from cliptimings.models import AutoMatched, Candidates, MatchCandidate, NoMatch
from cliptimings.normalize import normalize_text, similarity

logger = logging.getLogger(__name__)

# ── Reason labels ──────────────────────────────────────────────────────
REASON_TAG_EXACT = "tag_exact"                    # tag hit on title and artist
REASON_TAG_TITLE = "tag_title_exact"
REASON_TAG_ARTIST = "tag_artist_exact"
REASON_TITLE_AND_ARTIST = "title_artist_exact"
REASON_TITLE = "title_exact"
REASON_SIMILAR_TITLE_ARTIST = "title_similar_artist_match"
REASON_SIMILAR_TITLE = "title_similar"
REASON_ARTIST = "artist_exact"
REASON_TAG_PARTIAL = "tag_partial"
REASON_PARTIAL = "partial"


def _tag_hits(query, tags):
    """(exact, partial) flags for a query against normalized search tags."""
    nq = normalize_text(query)
    exact = partial = False
    if not nq:
        return exact, partial
    for tag in tags:
        nt = normalize_text(tag)
        if not nt:
            continue
        if nt == nq:
            exact = True
        elif nt in nq or nq in nt:
            partial = True
    return exact, partial


def field_similarity(query, value, alias, tags):
    """Effective similarity of one field: ``(score, tag_exact, tag_partial)``."""
    exact, partial = _tag_hits(query, tags)
    if exact:
        return 1.0, True, partial
    scores = [similarity(query, v) for v in (value, alias, *tags) if v]
    score = max(scores, default=0.0)
    if partial:
        score = max(score, TAG_PARTIAL_FLOOR)
    return score, False, partial


def _reason(title_sim, artist_sim, title_tag, artist_tag):
    title_exact, title_partial = title_tag
    artist_exact, artist_partial = artist_tag
    if title_exact and artist_exact:
        return REASON_TAG_EXACT
    if title_exact:
        return REASON_TAG_TITLE
    if artist_exact:
        return REASON_TAG_ARTIST
    if title_sim >= REASON_TITLE_EXACT and artist_sim >= REASON_ARTIST_MATCH:
        return REASON_TITLE_AND_ARTIST
    if title_sim >= REASON_TITLE_EXACT:
        return REASON_TITLE
    if title_sim >= REASON_TITLE_SIMILAR and artist_sim >= REASON_ARTIST_MATCH:
        return REASON_SIMILAR_TITLE_ARTIST
    if title_sim >= REASON_TITLE_SIMILAR:
        return REASON_SIMILAR_TITLE
    if artist_sim >= STRONG_ARTIST_SIMILARITY and title_sim >= WEAK_TITLE_SIMILARITY:
        return REASON_ARTIST
    if title_partial or artist_partial:
        return REASON_TAG_PARTIAL
    return REASON_PARTIAL


def score_entry(title, artist, entry, policy):
    """Score one catalog entry against a title/artist pair."""
    title_sim, *title_tag = field_similarity(
        title, entry.title, entry.title_alias, entry.search_tags)
    artist_sim, *artist_tag = field_similarity(
        artist, entry.artist, entry.artist_alias, entry.search_tags)
    return MatchCandidate(
        catalog_id=entry.id,
        title=entry.title,
        artist=entry.artist,
        confidence=policy.confidence(title_sim, artist_sim),
        title_similarity=title_sim,
        artist_similarity=artist_sim,
        reason=_reason(title_sim, artist_sim, title_tag, artist_tag),
    )


def passes_filter(candidate):
    """Title-first acceptance rule for showing a candidate to reviewers."""
    if candidate.title_similarity < MIN_TITLE_SIMILARITY:
        return False
    return (
        candidate.confidence >= MIN_CONFIDENCE
        or candidate.title_similarity >= STRONG_TITLE_SIMILARITY
        or (candidate.artist_similarity >= STRONG_ARTIST_SIMILARITY
            and candidate.title_similarity >= WEAK_TITLE_SIMILARITY)
    )


def _rank(title, artist, catalog, policy):
    scored = [score_entry(title, artist, entry, policy) for entry in catalog]
    kept = [c for c in scored if passes_filter(c)]
    kept.sort(key=lambda c: (-c.title_similarity, -c.confidence))
    return kept[:CANDIDATE_LIMIT]


def rank_candidates(mention, catalog, policy):
    """Up to 5 candidates for a mention, best first."""
    return _rank(mention.title, mention.artist, build_catalog(catalog), policy)


def decide(candidates, policy):
    """Turn a ranked candidate list into a MatchDecision."""
    if not candidates:
        return NoMatch()
    top = candidates[0]
    if top.confidence >= policy.accept_threshold:
        return AutoMatched(top)
    return Candidates(tuple(candidates))


def match_mention(mention, catalog, policy):
    decision = decide(rank_candidates(mention, catalog, policy), policy)
    logger.debug("%s - %s → %s", mention.artist, mention.title, decision.kind)
    return decision


def search_catalog(query, catalog, policy):
    """Free-text lookup used when a reviewer searches by hand.

    The query is scored as a title with no artist, and the result is
    always offered for review, never auto-matched.
    """
    candidates = _rank(query or "", "", build_catalog(catalog), policy)
    if not candidates:
        return NoMatch()
    return Candidates(tuple(candidates))


def match_mentions(mentions, catalog, policy, workers=None):
    """Match a batch of mentions in parallel.

    The catalog is validated and frozen once up front.  Mentions are
    independent, so the only ordering guarantee is that results line up
    with the input: a list of ``(mention, decision)``.
    """
    snapshot = build_catalog(catalog)
    mentions = list(mentions)
    if not mentions:
        return []
    workers = workers or DEFAULT_MATCH_WORKERS

    with ThreadPoolExecutor(max_workers=workers) as pool:
        decisions = list(pool.map(
            lambda m: decide(_rank(m.title, m.artist, snapshot, policy), policy),
            mentions,
        ))

    auto = sum(1 for d in decisions if isinstance(d, AutoMatched))
    review = sum(1 for d in decisions if isinstance(d, Candidates))
    logger.info("Matched %d mentions with %s policy: %d auto, %d review, %d none",
                len(mentions), policy.name, auto, review,
                len(mentions) - auto - review)
    return list(zip(mentions, decisions))
