"""
Command line interface.

Usage:
    ranked-pairs-tally snapshot.json
    ranked-pairs-tally ranks.csv --output ./results/ --excel
    ranked-pairs-tally snapshot.json --invalid-ballots error --verbose
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from ranked_pairs_tally.engine import tabulate_snapshot
from ranked_pairs_tally.models import INVALID_BALLOT_STRATEGIES, TabulationOptions
from ranked_pairs_tally.report import (
    NO_VOTES_MESSAGE,
    NoVotesResult,
    TidemanResults,
    create_results_excel,
    write_results_json,
)
from ranked_pairs_tally.snapshot import load_snapshot

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ranked-pairs-tally",
        description="Tabulate ranked ballots using the Tideman Ranked Pairs method",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    ranked-pairs-tally snapshot.json
    ranked-pairs-tally ranks.csv --output ./results/ --excel
    ranked-pairs-tally snapshot.json --invalid-ballots error --verbose
        """
    )

    parser.add_argument(
        "input",
        type=Path,
        help="Ballot snapshot: JSON export or CSV of rank numbers"
    )

    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Output directory (default: same as input file)"
    )

    parser.add_argument(
        "--excel",
        action="store_true",
        help="Also write an Excel workbook with tallies and pairs"
    )

    parser.add_argument(
        "--invalid-ballots",
        choices=INVALID_BALLOT_STRATEGIES,
        default="skip",
        help="How to handle invalid ballots: skip (log and ignore), error (fail)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print progress information"
    )

    return parser


def print_results(results: TidemanResults) -> None:
    print("\n" + "=" * 60)
    print("TIDEMAN RESULTS")
    print("=" * 60)

    if results.has_ties:
        print("\nSome positions were decided by the candidate id tie-break:")
        names = ", ".join(results.candidate(c).name for c in results.ambiguous_candidates)
        print(f"   {names}")

    if results.condorcet_winner is None:
        print("\nNo Condorcet winner - winner is the top of the resolved order.")

    print("\nRanking (by Ranked Pairs, with net pairwise wins):\n")
    for i, candidate_id in enumerate(results.ranking):
        marker = "~" if candidate_id in results.ambiguous_candidates else ""
        rank_str = f"{marker}{i + 1}."
        name = results.candidate(candidate_id).name
        score = results.scores.get(candidate_id, 0)
        print(f"  {rank_str:4} {name:40} (net wins: {score:+d})")

    if results.rejected_ballots:
        print(f"\nWarning: {len(results.rejected_ballots)} ballots were rejected")

    print("\n" + "=" * 60)


def run(
    input_path: Path,
    output_dir: Optional[Path] = None,
    excel: bool = False,
    invalid_ballots: str = "skip"
):
    """
    Load a snapshot, tabulate it and write the report files.

    Returns:
        Tuple of (results, written_paths)
    """
    if output_dir is None:
        output_dir = input_path.parent
    output_dir.mkdir(parents=True, exist_ok=True)

    options = TabulationOptions(invalid_ballots=invalid_ballots)
    snapshot = load_snapshot(input_path)
    results = tabulate_snapshot(snapshot, options)

    date_str = time.strftime("%Y-%m-%d")
    written = [write_results_json(results, output_dir / f"tideman-results {date_str}.json")]
    logger.info("Saved results to %s", written[0])

    if excel and isinstance(results, TidemanResults):
        written.append(create_results_excel(results, output_dir / f"tideman-results {date_str}.xlsx"))
        logger.info("Saved workbook to %s", written[-1])

    return results, written


def main(argv=None) -> int:
    """Main entry point for command-line usage."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        results, _ = run(
            input_path=args.input,
            output_dir=args.output,
            excel=args.excel,
            invalid_ballots=args.invalid_ballots,
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if isinstance(results, NoVotesResult):
        print(NO_VOTES_MESSAGE)
        return 0

    print_results(results)
    return 0


if __name__ == "__main__":
    sys.exit(main())
