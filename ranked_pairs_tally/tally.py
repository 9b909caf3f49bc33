"""
Pairwise tallies and margin ranking.

The tally matrix is a DataFrame indexed and columned by candidate id:
``tally.loc[a, b]`` is the number of ballots that rank ``a`` in a strictly
higher group than ``b``.
"""

import logging
from collections.abc import Iterable, Sequence

import pandas as pd

from ranked_pairs_tally.models import RankedPair

logger = logging.getLogger(__name__)


# =============================================================================
# Pairwise Tally Building
# =============================================================================

def build_pairwise_tallies(
    group_sequences: Iterable[Sequence[Sequence[int]]],
    candidate_ids: Sequence[int]
) -> pd.DataFrame:
    """
    Count pairwise preferences across all ballots.

    For each ballot, every candidate in a higher rank group beats every
    candidate in each lower group. Candidates in the same group, or absent
    from the ballot, are not compared.

    Args:
        group_sequences: One rank group sequence per ballot
        candidate_ids: Active candidate ids

    Returns:
        Square DataFrame of counts, zero on the diagonal
    """
    ids = sorted(candidate_ids)
    wins = {a: {b: 0 for b in ids} for a in ids}

    ballots = 0
    for groups in group_sequences:
        ballots += 1
        for i in range(len(groups) - 1):
            for lower in groups[i + 1:]:
                for a in groups[i]:
                    row = wins[a]
                    for b in lower:
                        row[b] += 1

    logger.info(
        "Built pairwise tallies for %d candidates from %d ballots",
        len(ids), ballots,
    )

    return pd.DataFrame(
        [[wins[a][b] for b in ids] for a in ids],
        index=ids,
        columns=ids,
        dtype="int64",
    )


def tally_dict(tally: pd.DataFrame) -> dict[str, int]:
    """Flatten the matrix to ``{"A-B": count}`` for every ordered pair."""
    return {
        f"{a}-{b}": int(tally.loc[a, b])
        for a in tally.index
        for b in tally.columns
        if a != b
    }


def margin_totals(tally: pd.DataFrame) -> dict[int, int]:
    """
    Sum each candidate's pairwise margins against all others.

    This is the modified Borda score: positive totals mean the candidate
    wins more head-to-head preferences than it loses.
    """
    margins = tally - tally.T
    return {int(c): int(margins.loc[c].sum()) for c in margins.index}


# =============================================================================
# Margin Ranking
# =============================================================================

def pair_sort_key(pair: RankedPair) -> tuple[int, int, int]:
    """Largest margin first; equal margins by ascending (winner, loser)."""
    return (-pair.margin, pair.winner, pair.loser)


def rank_pairs(tally: pd.DataFrame) -> list[RankedPair]:
    """
    Turn the tally matrix into decisive pairs sorted by margin.

    Pairs whose two tallies are equal are not emitted: neither direction
    has a majority, so nothing can be locked for them.

    Args:
        tally: Pairwise tally matrix

    Returns:
        Ranked pairs, strongest first
    """
    ids = list(tally.index)
    pairs = []

    for i, a in enumerate(ids):
        for b in ids[i + 1:]:
            a_over_b = int(tally.loc[a, b])
            b_over_a = int(tally.loc[b, a])
            if a_over_b == b_over_a:
                continue

            if a_over_b > b_over_a:
                winner, loser = a, b
            else:
                winner, loser = b, a
            pairs.append(RankedPair(
                winner=int(winner),
                loser=int(loser),
                margin=abs(a_over_b - b_over_a),
                winner_votes=max(a_over_b, b_over_a),
                loser_votes=min(a_over_b, b_over_a),
            ))

    pairs.sort(key=pair_sort_key)
    logger.info("Found %d decisive pairs", len(pairs))
    return pairs
