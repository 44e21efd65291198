"""CLI helper that prints the computed leaderboard for one competition as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from leaderboard_core import CompetitionNotFoundError, DataStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Print a competition leaderboard as JSON")
    parser.add_argument("competition", help="Competition id (comp_...) or slug")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    store = DataStore()
    try:
        result = store.fetch_leaderboard(args.competition)
    except CompetitionNotFoundError as exc:
        print(f"ERROR: {exc}: {args.competition}", file=sys.stderr)
        return 1
    except RuntimeError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), indent=args.indent))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
