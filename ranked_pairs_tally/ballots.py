"""
Ballot parsing and normalization.

A ballot arrives as an ordered list of ``(candidateId, tiedWithPrevious)``
entries. Normalizing it yields its rank group sequence: a list of groups,
best first, where candidates sharing a group are tied on that ballot.
"""

import logging
from collections.abc import Collection, Iterable, Mapping, Sequence
from typing import Any, Optional

import pandas as pd

from ranked_pairs_tally.models import Ballot, InvalidBallot, RankingEntry, UnknownCandidate

logger = logging.getLogger(__name__)


# =============================================================================
# Parsing Raw Records
# =============================================================================

def _parse_candidate_id(value: Any, voter_id: Optional[int]) -> int:
    if isinstance(value, bool):
        raise InvalidBallot(f"Candidate id must be an integer, got {value!r}", voter_id)
    try:
        candidate_id = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidBallot(f"Candidate id must be an integer, got {value!r}", voter_id)
    if candidate_id != value and not isinstance(value, str):
        # Reject 2.5 but accept 2.0
        raise InvalidBallot(f"Candidate id must be an integer, got {value!r}", voter_id)
    return candidate_id


def _parse_entry(raw: Any, voter_id: Optional[int]) -> RankingEntry:
    if isinstance(raw, RankingEntry):
        return raw

    if isinstance(raw, Mapping):
        if "candidateId" not in raw:
            raise InvalidBallot(f"Ranking entry without candidateId: {raw!r}", voter_id)
        candidate_id = raw["candidateId"]
        tied = raw.get("tiedWithPrevious", False)
    elif isinstance(raw, Sequence) and not isinstance(raw, str) and len(raw) == 2:
        candidate_id, tied = raw
    else:
        raise InvalidBallot(f"Malformed ranking entry: {raw!r}", voter_id)

    if not isinstance(tied, bool):
        raise InvalidBallot(f"tiedWithPrevious must be a boolean, got {tied!r}", voter_id)

    return RankingEntry(_parse_candidate_id(candidate_id, voter_id), tied)


def parse_ballot(raw: Any) -> Ballot:
    """
    Build a Ballot from a raw record.

    Accepted shapes:
        - an existing Ballot (returned unchanged)
        - a mapping ``{"voterId": 7, "ranking": [...]}``
        - a bare sequence of entries

    Entries are mappings ``{"candidateId": 1, "tiedWithPrevious": false}``
    or ``(candidate_id, tied)`` pairs.

    Raises:
        InvalidBallot: If the record or any of its entries is malformed
    """
    if isinstance(raw, Ballot):
        return raw

    voter_id = None
    if isinstance(raw, Mapping):
        voter_id = raw.get("voterId")
        if voter_id is not None:
            try:
                voter_id = int(voter_id)
            except (TypeError, ValueError, OverflowError):
                raise InvalidBallot(f"voterId must be an integer, got {voter_id!r}")
        entries = raw.get("ranking", raw.get("entries"))
        if entries is None:
            raise InvalidBallot("Ballot record has no ranking", voter_id)
    else:
        entries = raw

    if isinstance(entries, (str, bytes)) or not isinstance(entries, Iterable):
        raise InvalidBallot(f"Ballot ranking must be a list, got {entries!r}", voter_id)

    parsed = tuple(_parse_entry(entry, voter_id) for entry in entries)
    return Ballot(entries=parsed, voter_id=voter_id)


def ranks_to_entries(ranks: Mapping[int, Any]) -> tuple[RankingEntry, ...]:
    """
    Convert a rank-number ballot into ordered ranking entries.

    Args:
        ranks: candidate id -> rank number (1 is best). Equal numbers are
            ties; None/NaN means the candidate was not ranked.

    Returns:
        Entries best first; tied candidates are listed by ascending id

    Raises:
        InvalidBallot: If a rank is not a finite number
    """
    ranked = []
    for candidate_id, rank in ranks.items():
        if rank is None or pd.isna(rank):
            continue
        try:
            ranked.append((int(rank), candidate_id))
        except (TypeError, ValueError, OverflowError):
            raise InvalidBallot(f"Rank for candidate {candidate_id} must be a number, got {rank!r}")
    ranked.sort()

    entries = []
    previous_rank = None
    for rank, candidate_id in ranked:
        entries.append(RankingEntry(candidate_id, tied_with_previous=rank == previous_rank))
        previous_rank = rank
    return tuple(entries)


# =============================================================================
# Normalization
# =============================================================================

def group_by_rank(entries: Sequence[RankingEntry]) -> list[list[int]]:
    """Split entries into rank groups; a tied entry joins the preceding group."""
    groups: list[list[int]] = []
    for entry in entries:
        if entry.tied_with_previous and groups:
            groups[-1].append(entry.candidate_id)
        else:
            groups.append([entry.candidate_id])
    return groups


def normalize_ballot(
    ballot: Ballot,
    active_ids: Collection[int],
    drop_unknown: bool = False
) -> list[list[int]]:
    """
    Validate a ballot and return its rank group sequence.

    Args:
        ballot: The ballot to normalize
        active_ids: Ids of candidates taking part in the tabulation
        drop_unknown: Remove entries naming unknown candidates instead of
            failing. The remaining entries keep their groups.

    Returns:
        Rank groups, best first. An empty ballot gives an empty list.

    Raises:
        InvalidBallot: If the first entry is tied or a candidate repeats
        UnknownCandidate: If an id is not active and drop_unknown is False
    """
    entries = ballot.entries
    if not entries:
        return []

    if entries[0].tied_with_previous:
        raise InvalidBallot(
            "First ranking entry cannot be tied with a previous entry",
            ballot.voter_id,
        )

    seen = set()
    for entry in entries:
        if entry.candidate_id in seen:
            raise InvalidBallot(
                f"Candidate {entry.candidate_id} is ranked more than once",
                ballot.voter_id,
            )
        seen.add(entry.candidate_id)

    unknown = [e.candidate_id for e in entries if e.candidate_id not in active_ids]
    if unknown and not drop_unknown:
        raise UnknownCandidate(unknown[0], ballot.voter_id)

    groups = group_by_rank(entries)

    if unknown:
        logger.warning(
            "Dropping unknown candidates %s from ballot of voter %s",
            unknown, ballot.voter_id,
        )
        groups = [
            [c for c in group if c in active_ids]
            for group in groups
        ]
        groups = [group for group in groups if group]

    return groups


# =============================================================================
# Statistics
# =============================================================================

def ballot_statistics(
    group_sequences: Sequence[Sequence[Sequence[int]]],
    candidate_count: int
) -> dict[str, Any]:
    """
    Summarize ranking lengths and tie usage across normalized ballots.

    Counts only the candidates left after normalization, so entries dropped
    as unknown or inactive do not make a ballot look complete.
    """
    lengths = [sum(len(group) for group in groups) for groups in group_sequences]
    return {
        "totalBallots": len(group_sequences),
        "averageRankingLength": sum(lengths) / len(lengths) if lengths else 0.0,
        "completeRankings": sum(1 for n in lengths if n >= candidate_count),
        "partialRankings": sum(1 for n in lengths if n < candidate_count),
        "ballotsWithTies": sum(
            1 for groups in group_sequences if any(len(group) > 1 for group in groups)
        ),
    }
