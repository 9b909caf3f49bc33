"""
Ranked Pairs Tally

Tabulates ranked ballots (with ties and partial rankings) using the Tideman
Ranked Pairs method, which is Condorcet-consistent.

Tie-break rules:
- equal margins are locked in ascending (winner id, loser id) order
- candidates eligible at the same time in the final sort go by ascending id
"""

from ranked_pairs_tally.engine import calculate_tideman_results, tabulate_snapshot, validate_candidates
from ranked_pairs_tally.models import (
    Ballot,
    BallotSnapshot,
    Candidate,
    ConfigurationError,
    InvalidBallot,
    RankedPair,
    RankingEntry,
    TabulationError,
    TabulationOptions,
    UnknownCandidate,
)
from ranked_pairs_tally.report import NoVotesResult, TidemanResults

__version__ = "1.0.0"

__all__ = [
    "Ballot",
    "BallotSnapshot",
    "Candidate",
    "ConfigurationError",
    "InvalidBallot",
    "NoVotesResult",
    "RankedPair",
    "RankingEntry",
    "TabulationError",
    "TabulationOptions",
    "TidemanResults",
    "UnknownCandidate",
    "calculate_tideman_results",
    "tabulate_snapshot",
    "validate_candidates",
]
