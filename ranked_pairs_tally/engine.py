"""
Tideman ranked pairs tabulation.

Runs the full pipeline over one ballot snapshot:

1. Normalize ballots into rank groups
2. Build pairwise tallies
3. Rank decisive pairs by margin
4. Lock pairs without creating cycles
5. Topologically sort the locked graph

Every run rebuilds everything from the ballots it is given, so concurrent
calls on different snapshots share nothing.
"""

import logging
import time
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Optional, Union

from ranked_pairs_tally.ballots import ballot_statistics, normalize_ballot, parse_ballot
from ranked_pairs_tally.locking import lock_pairs
from ranked_pairs_tally.models import (
    Ballot,
    BallotSnapshot,
    Candidate,
    ConfigurationError,
    InvalidBallot,
    TabulationOptions,
)
from ranked_pairs_tally.report import NoVotesResult, TidemanResults
from ranked_pairs_tally.resolve import (
    condorcet_winner,
    find_ambiguous_candidates,
    net_pairwise_wins,
    resolve_ranking,
)
from ranked_pairs_tally.tally import build_pairwise_tallies, margin_totals, rank_pairs

logger = logging.getLogger(__name__)


def validate_candidates(candidates: Iterable[Candidate]) -> tuple[Candidate, ...]:
    """
    Check the candidate list and return the active candidates sorted by id.

    Raises:
        ConfigurationError: On duplicate ids or ids below 1
    """
    candidates = tuple(candidates)
    seen = set()
    for candidate in candidates:
        if candidate.id < 1:
            raise ConfigurationError(f"Candidate ids must be >= 1, got {candidate.id}")
        if candidate.id in seen:
            raise ConfigurationError(f"Duplicate candidate id {candidate.id}")
        seen.add(candidate.id)

    return tuple(sorted((c for c in candidates if c.active), key=lambda c: c.id))


def _describe_rejection(error: InvalidBallot, index: int) -> str:
    who = f"voter {error.voter_id}" if error.voter_id is not None else f"ballot #{index + 1}"
    return f"{who}: {error}"


def calculate_tideman_results(
    candidates: Iterable[Candidate],
    ballots: Iterable[Any],
    options: Optional[TabulationOptions] = None
) -> Union[TidemanResults, NoVotesResult]:
    """
    Tabulate ballots with the Tideman Ranked Pairs method.

    Args:
        candidates: All candidates; inactive ones are ignored
        ballots: Ballot objects or raw ballot records
        options: Run configuration (default: skip invalid ballots)

    Returns:
        TidemanResults, or NoVotesResult if there are no ballots at all

    Raises:
        ConfigurationError: If the candidate list is unusable
        InvalidBallot: If a ballot is invalid and options.strict is set
    """
    options = options or TabulationOptions()
    start = time.perf_counter()

    active = validate_candidates(candidates)
    active_ids = [c.id for c in active]

    # Work on a private copy so the caller's list can keep changing
    snapshot = tuple(ballots)

    if not snapshot:
        logger.info("No ballots to tabulate")
        return NoVotesResult(candidate_count=len(active))

    logger.info(
        "Tabulating %d ballots for %d active candidates",
        len(snapshot), len(active),
    )

    counted: list[Ballot] = []
    group_sequences = []
    rejected = []
    active_set = frozenset(active_ids)

    for index, raw in enumerate(snapshot):
        try:
            ballot = parse_ballot(raw)
            groups = normalize_ballot(ballot, active_set, drop_unknown=not options.strict)
        except InvalidBallot as e:
            if options.strict:
                raise
            rejected.append(_describe_rejection(e, index))
            logger.warning("Skipping invalid ballot: %s", rejected[-1])
            continue
        counted.append(ballot)
        group_sequences.append(groups)

    tally = build_pairwise_tallies(group_sequences, active_ids)
    ranked_pairs = rank_pairs(tally)
    lock_result = lock_pairs(ranked_pairs, active_ids)
    ranking = resolve_ranking(lock_result.graph)

    results = TidemanResults(
        candidates=active,
        ranking=ranking,
        scores=net_pairwise_wins(ranked_pairs, active_ids),
        margin_totals=margin_totals(tally),
        tally=tally,
        ranked_pairs=ranked_pairs,
        lock_result=lock_result,
        ambiguous_candidates=find_ambiguous_candidates(lock_result.graph, ranking),
        condorcet_winner=condorcet_winner(ranked_pairs, active_ids),
        ballot_statistics=ballot_statistics(group_sequences, len(active)),
        total_voters=len(snapshot),
        counted_ballots=len(counted),
        rejected_ballots=rejected,
        timestamp=datetime.now(timezone.utc).isoformat(),
        description=options.description,
        calculation_time_ms=round((time.perf_counter() - start) * 1000),
    )

    if results.winner is not None:
        logger.info("Winner: %s", results.winner.name)
    return results


def tabulate_snapshot(
    snapshot: BallotSnapshot,
    options: Optional[TabulationOptions] = None
) -> Union[TidemanResults, NoVotesResult]:
    return calculate_tideman_results(snapshot.candidates, snapshot.ballots, options)
