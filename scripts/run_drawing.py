"""Command-line entry points for the admin actions of the hunt.

Examples::

    python scripts/run_drawing.py draw --count 3 --seed 42
    python scripts/run_drawing.py history --limit 10
    python scripts/run_drawing.py stats --save
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys

from qrhunt.db.engine import get_sessionmaker, make_engine
from qrhunt.errors import QRHuntError
from qrhunt.workflows import (
    clear_winner_history,
    compute_dashboard,
    list_winner_history,
    recalculate_and_save_statistics,
    run_winner_drawing,
    summarize_drawing_pool,
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="QR hunt admin actions.")
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    draw = sub.add_parser("draw", help="Draw winners and record them.")
    draw.add_argument("--count", type=int, default=1, help="Winners to draw.")
    draw.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for a reproducible draw (default: unseeded).",
    )

    history = sub.add_parser("history", help="List recent winners.")
    history.add_argument("--limit", type=int, default=None)

    sub.add_parser("clear-history", help="Delete every winner record.")
    sub.add_parser("pool", help="Show the current entry pool.")

    stats = sub.add_parser("stats", help="Print dashboard statistics.")
    stats.add_argument(
        "--save", action="store_true", help="Also store statistics snapshots."
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    engine = make_engine()
    Session = get_sessionmaker(engine)
    try:
        with Session.begin() as session:
            if args.command == "draw":
                rng = random.Random(args.seed) if args.seed is not None else None
                output = run_winner_drawing(session, args.count, rng=rng).to_json()
            elif args.command == "history":
                output = [r.to_json() for r in list_winner_history(session, args.limit)]
            elif args.command == "clear-history":
                output = {"removed": clear_winner_history(session)}
            elif args.command == "pool":
                pool = summarize_drawing_pool(session)
                output = {
                    "total_entries": pool.total_entries,
                    "unique_participants": pool.unique_participants,
                    "avg_entries_per_user": pool.avg_entries_per_user,
                }
            elif args.save:
                output = recalculate_and_save_statistics(session).to_json()
            else:
                output = compute_dashboard(session).to_json()
    except (QRHuntError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
