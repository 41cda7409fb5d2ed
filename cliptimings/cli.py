"""CLI with subcommands for parsing timelines and matching them to a catalog."""

import argparse
import csv
import json
import logging
import sys
from pathlib import Path

from cliptimings.analyze import format_summary, summarize
from cliptimings.catalog import CatalogError, load_catalog
from cliptimings.config import POLICIES, get_policy
from cliptimings.dates import extract_broadcast_date
from cliptimings.manual import (
    format_seconds,
    parse_manual_timestamps,
    reference_offset,
    shift_timeline,
)
from cliptimings.matching import match_mentions, search_catalog
from cliptimings.models import AutoMatched, Candidates
from cliptimings.timeline import parse_timeline_comment


def _read_input(path):
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _print_mentions(mentions):
    if not mentions:
        print("  No mentions found.")
        return
    for m in mentions:
        end = format_seconds(m.end_seconds) if m.end_seconds is not None else "end"
        flag = "" if m.is_relevant else "  [not relevant]"
        print(f"  {format_seconds(m.start_seconds):>8} ~ {end:<8} "
              f"{m.artist} - {m.title}{flag}")


def _print_json(payload):
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _parse(args, text):
    if args.format == "html":
        return parse_timeline_comment(text, args.title or "")
    return parse_manual_timestamps(text, args.url or "")


def cmd_timeline(args):
    """Parse an HTML timeline comment."""
    mentions = parse_timeline_comment(_read_input(args.file), args.title or "")
    if args.json:
        _print_json([m.to_dict() for m in mentions])
        return
    if mentions and mentions[0].broadcast.date:
        print(f"  Broadcast date: {mentions[0].broadcast.date.isoformat()}")
    _print_mentions(mentions)


def cmd_manual(args):
    """Parse operator-typed timestamp lines."""
    mentions = parse_manual_timestamps(_read_input(args.file), args.url or "")
    if args.json:
        _print_json([m.to_dict() for m in mentions])
        return
    _print_mentions(mentions)


def _describe(decision):
    if isinstance(decision, AutoMatched):
        c = decision.candidate
        return f"auto  {c.artist} - {c.title} ({c.confidence:.0%})"
    if isinstance(decision, Candidates):
        top = decision.candidates[0]
        return (f"review {len(decision.candidates)} candidate(s), "
                f"best {top.artist} - {top.title} ({top.confidence:.0%}, {top.reason})")
    return "none  excluded from automatic matching"


def _write_csv(results, out):
    fieldnames = ["start", "end", "artist", "title", "decision",
                  "catalog_id", "confidence"]
    with open(out, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for mention, decision in results:
            best = None
            if isinstance(decision, AutoMatched):
                best = decision.candidate
            elif isinstance(decision, Candidates):
                best = decision.candidates[0]
            writer.writerow({
                "start": mention.start_seconds,
                "end": mention.end_seconds,
                "artist": mention.artist,
                "title": mention.title,
                "decision": decision.kind,
                "catalog_id": best.catalog_id if best else "",
                "confidence": f"{best.confidence:.4f}" if best else "",
            })


def cmd_match(args):
    """Parse a timeline and match every mention against a catalog."""
    catalog = load_catalog(args.catalog)
    workflow = args.workflow or ("timeline" if args.format == "html" else "manual")
    policy = get_policy(workflow)
    mentions = _parse(args, _read_input(args.file))
    results = match_mentions(mentions, catalog, policy, workers=args.workers)

    if args.json:
        _print_json([{"mention": m.to_dict(), "decision": d.to_dict()}
                     for m, d in results])
    else:
        for mention, decision in results:
            print(f"  {format_seconds(mention.start_seconds):>8} "
                  f"{mention.artist} - {mention.title}")
            print(f"           → {_describe(decision)}")
        print()
        print(format_summary(summarize(results)))

    if args.output:
        _write_csv(results, args.output)
        print(f"Exported {len(results)} mentions to {args.output}", file=sys.stderr)


def cmd_search(args):
    """Search the catalog by hand with a free-text query."""
    catalog = load_catalog(args.catalog)
    decision = search_catalog(args.query, catalog, get_policy(args.workflow))
    if args.json:
        _print_json(decision.to_dict())
        return
    if not isinstance(decision, Candidates):
        print("  No candidates.")
        return
    for c in decision.candidates:
        print(f"  {c.catalog_id:<12} {c.artist} - {c.title} "
              f"(title {c.title_similarity:.0%}, overall {c.confidence:.0%}, {c.reason})")


def cmd_date(args):
    """Extract a broadcast date from a video title."""
    info = extract_broadcast_date(args.title)
    if info.date is None:
        print("  No date found.")
        return
    print(f"  {info.date.isoformat()}  (from {info.matched_substring!r})")


def cmd_shift(args):
    """Shift every timestamp in a list by a fixed offset."""
    text = _read_input(args.file)
    if args.to is not None:
        offset = reference_offset(text, args.to)
    else:
        offset = args.offset
    print(shift_timeline(text, offset))


def main():
    parser = argparse.ArgumentParser(
        prog="cliptimings",
        description="Song timeline parsing and catalog matching",
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log skipped input and match details")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # timeline
    p_tl = subparsers.add_parser("timeline", help="Parse an HTML timeline comment")
    p_tl.add_argument("file", help="File holding the comment HTML ('-' for stdin)")
    p_tl.add_argument("--title", default="", help="Video title (for the broadcast date)")
    p_tl.add_argument("--json", action="store_true", help="Print JSON")
    p_tl.set_defaults(func=cmd_timeline)

    # manual
    p_man = subparsers.add_parser("manual", help="Parse 'M:SS Artist - Title' lines")
    p_man.add_argument("file", help="File holding the lines ('-' for stdin)")
    p_man.add_argument("--url", default="", help="Video URL the timestamps refer to")
    p_man.add_argument("--json", action="store_true", help="Print JSON")
    p_man.set_defaults(func=cmd_manual)

    # match
    p_match = subparsers.add_parser("match", help="Parse and match against a catalog")
    p_match.add_argument("file", help="Timeline input ('-' for stdin)")
    p_match.add_argument("--catalog", required=True, help="Catalog JSON snapshot")
    p_match.add_argument("--format", choices=["html", "manual"], default="manual",
                         help="Input format (default: manual)")
    p_match.add_argument("--workflow", choices=sorted(POLICIES), default=None,
                         help="Match policy (default: timeline for html, manual otherwise)")
    p_match.add_argument("--title", default="", help="Video title (html format)")
    p_match.add_argument("--url", default="", help="Video URL (manual format)")
    p_match.add_argument("--workers", type=int, default=None,
                         help="Parallel match workers")
    p_match.add_argument("-o", "--output", default=None, help="Also export CSV here")
    p_match.add_argument("--json", action="store_true", help="Print JSON")
    p_match.set_defaults(func=cmd_match)

    # search
    p_search = subparsers.add_parser("search", help="Free-text catalog search")
    p_search.add_argument("query")
    p_search.add_argument("--catalog", required=True, help="Catalog JSON snapshot")
    p_search.add_argument("--workflow", choices=sorted(POLICIES), default="manual")
    p_search.add_argument("--json", action="store_true", help="Print JSON")
    p_search.set_defaults(func=cmd_search)

    # date
    p_date = subparsers.add_parser("date", help="Extract a broadcast date from a title")
    p_date.add_argument("title")
    p_date.set_defaults(func=cmd_date)

    # shift
    p_shift = subparsers.add_parser("shift", help="Shift timestamps by an offset")
    p_shift.add_argument("file", help="Timestamp lines ('-' for stdin)")
    group = p_shift.add_mutually_exclusive_group(required=True)
    group.add_argument("--offset", type=int, help="Seconds to add (negative to subtract)")
    group.add_argument("--to", help="Move the first timestamp to this time (M:SS)")
    p_shift.set_defaults(func=cmd_shift)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except (CatalogError, OSError, json.JSONDecodeError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
