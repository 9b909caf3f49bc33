"""
Final ranking extraction from the locked graph.
"""

from collections.abc import Iterable, Sequence
from typing import Optional

import networkx as nx

from ranked_pairs_tally.models import RankedPair, TabulationError


def resolve_ranking(graph: nx.DiGraph) -> list[int]:
    """
    Topologically sort the locked graph, winner first.

    Kahn's algorithm: repeatedly emit a candidate with no remaining incoming
    edges. When several are eligible at once, the smallest id goes first.

    Args:
        graph: The locked graph

    Returns:
        Candidate ids in final order

    Raises:
        TabulationError: If the graph contains a cycle
    """
    try:
        return list(nx.lexicographical_topological_sort(graph))
    except nx.NetworkXUnfeasible:
        raise TabulationError("Locked graph contains a cycle - cannot rank candidates")


def net_pairwise_wins(
    ranked_pairs: Iterable[RankedPair],
    candidate_ids: Sequence[int]
) -> dict[int, int]:
    """Pairwise contests won minus pairwise contests lost, per candidate."""
    scores = {c: 0 for c in candidate_ids}
    for pair in ranked_pairs:
        scores[pair.winner] += 1
        scores[pair.loser] -= 1
    return scores


def condorcet_winner(
    ranked_pairs: Iterable[RankedPair],
    candidate_ids: Sequence[int]
) -> Optional[int]:
    """Return the candidate who wins every pairwise contest, if there is one."""
    if not candidate_ids:
        return None

    wins = {c: 0 for c in candidate_ids}
    for pair in ranked_pairs:
        wins[pair.winner] += 1

    for candidate, count in wins.items():
        if count == len(candidate_ids) - 1:
            return candidate
    return None


def find_ambiguous_candidates(graph: nx.DiGraph, ranking: list[int]) -> list[int]:
    """
    Find candidates whose position was settled only by the id tie-break.

    Two neighbours in a topological order with no edge between them could
    be swapped and the order would still be valid.

    Args:
        graph: The locked graph
        ranking: Topological ordering of its nodes

    Returns:
        Candidate ids with ambiguous positions, in ranking order
    """
    ambiguous = []

    for i in range(len(ranking) - 1):
        if not graph.has_edge(ranking[i], ranking[i + 1]):
            ambiguous.extend([ranking[i], ranking[i + 1]])

    # Remove duplicates while preserving order
    seen = set()
    result = []
    for c in ambiguous:
        if c not in seen:
            seen.add(c)
            result.append(c)

    return result
