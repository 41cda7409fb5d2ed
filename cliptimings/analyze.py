"""Batch statistics over matched mentions."""

from cliptimings.models import AutoMatched, Candidates


def summarize(results):
    """Count outcomes for a list of ``(mention, decision)`` pairs.

    Returns a dict with parsed / relevant / auto_matched / needs_review /
    unmatched totals and the number of distinct (artist, title) songs.
    """
    stats = {
        "parsed": 0,
        "relevant": 0,
        "auto_matched": 0,
        "needs_review": 0,
        "unmatched": 0,
        "unique_songs": 0,
    }
    songs = set()
    for mention, decision in results:
        stats["parsed"] += 1
        if mention.is_relevant:
            stats["relevant"] += 1
        if isinstance(decision, AutoMatched):
            stats["auto_matched"] += 1
        elif isinstance(decision, Candidates):
            stats["needs_review"] += 1
        else:
            stats["unmatched"] += 1
        songs.add((mention.artist, mention.title))
    stats["unique_songs"] = len(songs)
    return stats


def format_summary(stats):
    """Render summarize() output as aligned text lines."""
    labels = [
        ("parsed", "Parsed mentions"),
        ("relevant", "Relevant"),
        ("auto_matched", "Auto-matched"),
        ("needs_review", "Needs review"),
        ("unmatched", "Excluded (no match)"),
        ("unique_songs", "Unique songs"),
    ]
    return "\n".join(f"  {label + ':':<21}{stats[key]}" for key, label in labels)
