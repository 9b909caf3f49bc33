"""
Cycle-safe locking of ranked pairs.

Pairs are considered strongest first. Each one is locked into a directed
graph unless the loser already reaches the winner through locked edges,
since adding it would then close a cycle. A skipped pair is never retried.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import networkx as nx

from ranked_pairs_tally.models import RankedPair

logger = logging.getLogger(__name__)


@dataclass
class LockResult:
    """Locked graph plus the pairs in the order they were decided."""
    graph: nx.DiGraph
    locked: list[RankedPair] = field(default_factory=list)
    skipped: list[RankedPair] = field(default_factory=list)


def would_create_cycle(graph: nx.DiGraph, winner: int, loser: int) -> bool:
    """
    Check if locking winner -> loser would create a cycle.

    A cycle would be created if there's already a path from loser to winner.

    Args:
        graph: Current locked graph
        winner: Source node
        loser: Target node

    Returns:
        True if adding the edge would create a cycle
    """
    if winner == loser:
        return True
    return nx.has_path(graph, loser, winner)


def lock_pairs(
    ranked_pairs: Iterable[RankedPair],
    candidate_ids: Sequence[int]
) -> LockResult:
    """
    Run the locking stage of the Tideman Ranked Pairs algorithm.

    Args:
        ranked_pairs: Decisive pairs, already sorted strongest first
        candidate_ids: All active candidate ids (become graph nodes)

    Returns:
        LockResult with the acyclic locked graph
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(sorted(candidate_ids))
    result = LockResult(graph=graph)

    for pair in ranked_pairs:
        if would_create_cycle(graph, pair.winner, pair.loser):
            result.skipped.append(pair)
            logger.debug(
                "Skipped: %d beats %d (would create cycle)",
                pair.winner, pair.loser,
            )
        else:
            graph.add_edge(pair.winner, pair.loser, margin=pair.margin)
            result.locked.append(pair)
            logger.debug(
                "Locked: %d beats %d (margin: %d)",
                pair.winner, pair.loser, pair.margin,
            )

    logger.info(
        "Locked %d pairs, skipped %d",
        len(result.locked), len(result.skipped),
    )
    return result


def locked_pair_keys(result: LockResult) -> list[str]:
    return [pair.key for pair in result.locked]
