#!/usr/bin/env python3
"""
media-tagger command line: embed representative images and query them.

Commands:
    embed                      append vectors for assets with reps
    query --anchors "a|b"      rank assets against anchor images
    query-text --text "..."    rank assets against a text prompt
    status                     counts from assets, progress and the store
    verify [--json]            readiness checklist (exit 2 on failure)
"""

import argparse
import json
import math
import sys
from pathlib import Path

# Add repo root to path when run as a plain script
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.assets import load_assets_if_present
from src.core.config import DEFAULT_QUERY_OUT, VERSION, ensure_data_directory, get_config
from src.core.embed_service import compute_embeddings
from src.core.maintenance import check_store_integrity, format_verify, verify
from src.core.profiles import list_profiles, load_profile, render_tag
from src.core.progress import load_progress
from src.core.query_service import query_similar_multi, query_similar_text
from src.vector.store import load_index, load_meta, open_or_create
from util.logging import logger


def positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("--k must be a positive integer")
    if n <= 0:
        raise argparse.ArgumentTypeError("--k must be a positive integer")
    return n


def finite_float(value: str) -> float:
    try:
        n = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError("--min-score must be a number")
    if not math.isfinite(n):
        raise argparse.ArgumentTypeError("--min-score must be a number")
    return n


def parse_anchors(anchors_raw, anchor_raw):
    if anchors_raw and anchors_raw.strip():
        return [s.strip() for s in anchors_raw.split("|") if s.strip()]
    if anchor_raw and anchor_raw.strip():
        return [anchor_raw.strip()]
    return []


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="media-tagger", description="Embedding store and similarity search for a media library")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--data-dir", help="Override DATA_DIR")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("embed", help="Embed representative images into the vector store")

    query = sub.add_parser("query", help="Find assets similar to one or more anchor images")
    query.add_argument("--anchors", help='Pipe-separated anchor image paths, e.g. "a.jpg|b.jpg"')
    query.add_argument("--anchor", help="Single anchor image path")
    query.add_argument("--profile", help="Profile name or .json path supplying query defaults")
    query.add_argument("--label", help="Label rendered into the profile's tag template")
    query.add_argument("--k", type=positive_int, help="Maximum number of results")
    query.add_argument("--min-score", type=finite_float, help="Discard matches scoring below this")
    query.add_argument("--out", default=DEFAULT_QUERY_OUT, help=f"Output file in the data dir (default: {DEFAULT_QUERY_OUT})")

    query_text = sub.add_parser("query-text", help="Find assets matching a text prompt")
    query_text.add_argument("--text", required=True, help="Text prompt")
    query_text.add_argument("--k", type=positive_int, help="Maximum number of results")
    query_text.add_argument("--min-score", type=finite_float, help="Discard matches scoring below this")
    query_text.add_argument("--out", default=DEFAULT_QUERY_OUT, help=f"Output file in the data dir (default: {DEFAULT_QUERY_OUT})")

    sub.add_parser("status", help="Show asset, progress and store counts")
    verify_cmd = sub.add_parser("verify", help="Check pipeline outputs and store integrity")
    verify_cmd.add_argument("--json", action="store_true", help="Print the store integrity report as JSON")
    return parser


def cmd_embed(cfg) -> int:
    summary = compute_embeddings(cfg)
    store = open_or_create(cfg.data_dir)
    meta = load_meta(store)
    idx = load_index(store)

    print("Embeddings stored.")
    print(f"Embedded: {summary.embedded}, skipped: {summary.skipped}, with reps: {summary.total}")
    print(f"Meta: dim={meta.dim if meta else 0}, count={meta.count if meta else 0}")
    print(f"Index entries: {len(idx.id_to_offset)}")
    return 0


def cmd_query(cfg, args) -> int:
    anchors = parse_anchors(args.anchors, args.anchor)
    profile = load_profile(cfg, args.profile.strip()) if args.profile and args.profile.strip() else None

    if not anchors:
        available = list_profiles(cfg)
        print("❌ ERROR: query requires --anchors or --anchor", file=sys.stderr)
        print('   media-tagger query --anchors "/path/a.jpg|/path/b.jpg" --profile subjects --label "Teddy"', file=sys.stderr)
        print(f"   Profiles available: {', '.join(available) or '(none yet)'}", file=sys.stderr)
        return 1

    k = args.k if args.k is not None else (profile.query_defaults.k if profile else cfg.default_k)
    min_score = args.min_score if args.min_score is not None else (
        profile.query_defaults.min_score if profile else cfg.default_min_score
    )

    if profile and args.label and args.label.strip():
        print(f"Profile tag preview: {render_tag(profile.tag_template, args.label)}")
        print(f"Defaults: k={profile.query_defaults.k}, minScore={profile.query_defaults.min_score}")

    rows = query_similar_multi(cfg, anchors, k, min_score, args.out)
    print(f"✅ Wrote data/{args.out} with {len(rows)} rows.")
    print("   Also updated data/last_query.json")
    return 0


def cmd_query_text(cfg, args) -> int:
    if not args.text.strip():
        print("❌ ERROR: query-text requires --text", file=sys.stderr)
        return 1

    k = args.k if args.k is not None else cfg.default_k
    min_score = args.min_score if args.min_score is not None else cfg.default_min_score

    rows = query_similar_text(cfg, args.text, k, min_score, args.out)
    print(f"✅ Wrote data/{args.out} with {len(rows)} rows.")
    print("   Also updated data/last_query.json")
    return 0


def cmd_status(cfg) -> int:
    prog = load_progress(cfg)
    assets = load_assets_if_present(cfg)
    store = open_or_create(cfg.data_dir)
    meta = load_meta(store)
    idx = load_index(store)

    print(f"Library root: {cfg.photo_lib_root}")
    print(f"Assets: {len(assets)}")
    print(f"Reps present: {sum(1 for a in assets if a.rep_path)}")
    print(f"Reps done (progress): {len(prog.reps_done)}")
    print(f"Embeddings meta count: {meta.count if meta else 0}")
    print(f"Embeddings indexed ids: {len(idx.id_to_offset)}")
    print(f"Embeddings done (progress): {len(prog.embeds_done)}")
    return 0


def cmd_verify(cfg, args) -> int:
    if args.json:
        report = check_store_integrity(open_or_create(cfg.data_dir))
        print(json.dumps(report.to_dict(), indent=2))
        return 0 if report.ok else 2

    lines = verify(cfg)
    print(format_verify(lines))
    return 0 if all(line.ok for line in lines) else 2


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    cfg = get_config(args.data_dir)
    ensure_data_directory(cfg)

    try:
        if args.command == "embed":
            return cmd_embed(cfg)
        elif args.command == "query":
            return cmd_query(cfg, args)
        elif args.command == "query-text":
            return cmd_query_text(cfg, args)
        elif args.command == "status":
            return cmd_status(cfg)
        elif args.command == "verify":
            return cmd_verify(cfg, args)
    except Exception as e:
        print(f"❌ ERROR: {e}", file=sys.stderr)
        logger.error(f"CLI {args.command} failed: {e}")
        return 1

    return 1


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
