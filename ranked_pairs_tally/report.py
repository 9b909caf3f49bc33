"""
Result containers and report output.

``TidemanResults.to_dict()`` is the response body handed to reporting
clients. The same results can be written as JSON or as an Excel workbook.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from ranked_pairs_tally.locking import LockResult, locked_pair_keys
from ranked_pairs_tally.models import ALGORITHM_NAME, Candidate, RankedPair
from ranked_pairs_tally.tally import tally_dict

NO_VOTES_MESSAGE = "No votes have been cast yet"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class TidemanResults:
    """Container for all tabulation results."""
    candidates: tuple[Candidate, ...]
    ranking: list[int]
    scores: dict[int, int]
    margin_totals: dict[int, int]
    tally: pd.DataFrame
    ranked_pairs: list[RankedPair]
    lock_result: LockResult
    ambiguous_candidates: list[int]
    condorcet_winner: Optional[int]
    ballot_statistics: dict[str, Any]
    total_voters: int
    counted_ballots: int
    rejected_ballots: list[str] = field(default_factory=list)
    timestamp: str = ""
    description: str = ""
    calculation_time_ms: int = 0

    @property
    def has_ties(self) -> bool:
        return bool(self.ambiguous_candidates)

    @property
    def winner(self) -> Optional[Candidate]:
        """Top of the resolved order; not necessarily a Condorcet winner."""
        if not self.ranking:
            return None
        return self.candidate(self.ranking[0])

    def candidate(self, candidate_id: int) -> Candidate:
        for c in self.candidates:
            if c.id == candidate_id:
                return c
        raise KeyError(candidate_id)

    def final_ranking(self) -> list[dict[str, Any]]:
        return [
            {
                "rank": i + 1,
                "candidate": self.candidate(candidate_id).to_dict(),
                "score": self.scores.get(candidate_id, 0),
            }
            for i, candidate_id in enumerate(self.ranking)
        ]

    def to_dict(self) -> dict[str, Any]:
        winner = self.winner
        return {
            "algorithm": ALGORITHM_NAME,
            "winner": winner.to_dict() if winner else None,
            "finalRanking": self.final_ranking(),
            "pairwiseTallies": tally_dict(self.tally),
            "rankedPairs": [pair.to_dict() for pair in self.ranked_pairs],
            "lockedPairs": locked_pair_keys(self.lock_result),
            "skippedPairs": [pair.key for pair in self.lock_result.skipped],
            "ambiguousCandidates": list(self.ambiguous_candidates),
            "condorcetWinner": self.condorcet_winner,
            "ballotStatistics": dict(self.ballot_statistics),
            "metadata": {
                "totalVoters": self.total_voters,
                "countedBallots": self.counted_ballots,
                "rejectedBallots": len(self.rejected_ballots),
                "candidateCount": len(self.candidates),
                "timestamp": self.timestamp,
                "description": self.description,
                "calculationTimeMs": self.calculation_time_ms,
            },
        }


@dataclass
class NoVotesResult:
    """Returned instead of a ranking when the ballot set is empty."""
    candidate_count: int
    total_voters: int = 0

    has_ties = False
    winner = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": NO_VOTES_MESSAGE,
            "totalVoters": self.total_voters,
            "candidateCount": self.candidate_count,
        }


# =============================================================================
# Output Generation
# =============================================================================

def write_results_json(results, output_path: Path) -> Path:
    """Write ``results.to_dict()`` as indented JSON and return the path."""
    output_path = Path(output_path)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(results.to_dict(), f, indent=2)
        f.write("\n")
    return output_path


def create_results_excel(results: TidemanResults, output_path: Path) -> Path:
    """
    Create Excel file with tabulation results.

    Sheets:
    - Results: Final ranking with net wins and margin totals
    - Tallies: Pairwise tally matrix (row candidate preferred over column)
    - Ranked Pairs: Decisive pairs in lock order, with lock outcome
    - Skipped Pairs: Pairs not locked because of cycles
    - Notes: Ties broken by id and rejected ballots

    Args:
        results: TidemanResults object
        output_path: Where to save the Excel file
    """
    output_path = Path(output_path)
    names = {c.id: c.name for c in results.candidates}
    skipped_keys = {pair.key for pair in results.lock_result.skipped}

    with pd.ExcelWriter(output_path) as writer:
        results_data = []
        for i, candidate_id in enumerate(results.ranking):
            results_data.append({
                'Rank': i + 1 if candidate_id not in results.ambiguous_candidates else f"~{i + 1}",
                'Candidate': names[candidate_id],
                'Id': candidate_id,
                'Net Wins': results.scores.get(candidate_id, 0),
                'Margin Total': results.margin_totals.get(candidate_id, 0),
            })
        pd.DataFrame(
            results_data,
            columns=['Rank', 'Candidate', 'Id', 'Net Wins', 'Margin Total'],
        ).to_excel(writer, sheet_name='Results', index=False)

        tallies = results.tally.rename(index=names, columns=names)
        tallies.to_excel(writer, sheet_name='Tallies')

        pairs_data = [
            {
                'Winner': names[pair.winner],
                'Loser': names[pair.loser],
                'Margin': pair.margin,
                'Winner Votes': pair.winner_votes,
                'Loser Votes': pair.loser_votes,
                'Locked': pair.key not in skipped_keys,
            }
            for pair in results.ranked_pairs
        ]
        pd.DataFrame(
            pairs_data,
            columns=['Winner', 'Loser', 'Margin', 'Winner Votes', 'Loser Votes', 'Locked'],
        ).to_excel(writer, sheet_name='Ranked Pairs', index=False)

        if results.lock_result.skipped:
            skipped_df = pd.DataFrame(
                [
                    (names[p.winner], names[p.loser], p.margin)
                    for p in results.lock_result.skipped
                ],
                columns=['Winner', 'Loser', 'Margin']
            )
            skipped_df.to_excel(writer, sheet_name='Skipped Pairs', index=False)

        notes = []
        if results.has_ties:
            ambiguous = ", ".join(names[c] for c in results.ambiguous_candidates)
            notes.append({
                'Type': 'WARNING',
                'Message': f'Order decided by candidate id tie-break: {ambiguous}'
            })
        if results.condorcet_winner is None and results.ranking:
            notes.append({
                'Type': 'INFO',
                'Message': 'No Condorcet winner; winner is the top of the resolved order'
            })
        for rejection in results.rejected_ballots:
            notes.append({'Type': 'WARNING', 'Message': f'Rejected ballot: {rejection}'})

        if notes:
            pd.DataFrame(notes).to_excel(writer, sheet_name='Notes', index=False)

    return output_path
