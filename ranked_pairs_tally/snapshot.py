"""
Loading ballot snapshots from files.

Two formats are supported:

JSON, as served by the ballot store::

    {
      "candidates": [{"id": 1, "name": "Alice", "description": "", "active": true}],
      "votes": [{"voterId": 1001, "ranking": [{"candidateId": 1, "tiedWithPrevious": false}]}]
    }

CSV of rank numbers, one row per voter::

    voter,1 - Alice,2 - Bob,3 - Carol
    1001,1,2,2
    1002,2,1,

A rank of 1 is best, equal numbers are ties and blank cells are unranked.
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional

import pandas as pd

from ranked_pairs_tally.ballots import ranks_to_entries
from ranked_pairs_tally.models import Ballot, BallotSnapshot, Candidate, ConfigurationError

logger = logging.getLogger(__name__)

CANDIDATE_COLUMN = re.compile(r'^\s*(\d+)\s*(?:-\s*(.+?))?\s*$')
VOTER_COLUMNS = ('voter', 'voterid', 'voter_id')


class SnapshotError(ValueError):
    """A snapshot file exists but cannot be read as ballots."""


def _check_file(filepath: Path) -> Path:
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Ballot file not found: {filepath}")
    return filepath


# =============================================================================
# JSON Snapshots
# =============================================================================

def load_snapshot_json(filepath: Path) -> BallotSnapshot:
    """
    Load candidates and ballots from a JSON export.

    Ballot records are kept raw; they are validated during tabulation so a
    single bad record does not prevent loading the rest.

    Raises:
        FileNotFoundError: If the file doesn't exist
        SnapshotError: If the file is empty or not a snapshot document
    """
    filepath = _check_file(filepath)

    text = filepath.read_text(encoding="utf-8")
    if not text.strip():
        raise SnapshotError(f"Ballot file is empty: {filepath}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Ballot file is not valid JSON: {filepath}: {e}")

    if not isinstance(data, dict) or not isinstance(data.get("candidates"), list):
        raise SnapshotError(f"Ballot file has no candidate list: {filepath}")

    ballots = data.get("votes", data.get("ballots", []))
    if not isinstance(ballots, list):
        raise SnapshotError(f"Ballot list must be an array: {filepath}")

    try:
        candidates = tuple(Candidate.from_dict(c) for c in data["candidates"])
    except (ConfigurationError, AttributeError) as e:
        raise SnapshotError(str(e))

    return BallotSnapshot(candidates=candidates, ballots=tuple(ballots))


# =============================================================================
# CSV Rank Sheets
# =============================================================================

def find_candidate_columns(df: pd.DataFrame) -> dict[str, Candidate]:
    """
    Map rank columns to candidates.

    Column headers look like ``"3"`` or ``"3 - Carol Davis"``. Without a
    name part the candidate is named after its id.
    """
    columns = {}
    for col in df.columns:
        match = CANDIDATE_COLUMN.match(str(col))
        if not match:
            continue
        candidate_id = int(match.group(1))
        name = match.group(2) or str(candidate_id)
        columns[col] = Candidate(id=candidate_id, name=name.strip())

    if not columns:
        raise SnapshotError("Could not identify candidate columns in the CSV")

    return columns


def _find_voter_column(df: pd.DataFrame) -> Optional[str]:
    for col in df.columns:
        if str(col).strip().lower() in VOTER_COLUMNS:
            return col
    return None


def _parse_voter_id(value) -> Optional[int]:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def load_ranks_csv(filepath: Path) -> BallotSnapshot:
    """
    Load a CSV of rank numbers.

    Cells that are blank, infinite, not a whole number or below 1 count as
    unranked.

    Raises:
        FileNotFoundError: If the file doesn't exist
        SnapshotError: If the file is empty or has no candidate columns
    """
    filepath = _check_file(filepath)

    try:
        df = pd.read_csv(filepath, sep=",", dtype=str)
    except pd.errors.EmptyDataError:
        raise SnapshotError(f"Ballot file is empty: {filepath}")

    candidate_columns = find_candidate_columns(df)
    voter_column = _find_voter_column(df)
    candidates = tuple(candidate_columns.values())

    if df.empty:
        return BallotSnapshot(candidates=candidates)

    ranks = df[list(candidate_columns)].apply(pd.to_numeric, errors="coerce")
    valid = (
        ranks.notna()
        & (ranks >= 1)
        & (ranks < float("inf"))
        & (ranks == ranks.round())
    )
    problematic = int((ranks.notna() & ~valid).any(axis=1).sum())
    ranks = ranks.where(valid)

    ballots = []
    for idx, row in ranks.iterrows():
        by_candidate = {
            candidate_columns[col].id: row[col]
            for col in candidate_columns
        }
        voter_id = _parse_voter_id(df.at[idx, voter_column]) if voter_column else None
        ballots.append(Ballot(entries=ranks_to_entries(by_candidate), voter_id=voter_id))

    if problematic:
        logger.warning("%d ballots had invalid rank values (treated as unranked)", problematic)

    return BallotSnapshot(candidates=candidates, ballots=tuple(ballots))


def load_snapshot(filepath: Path) -> BallotSnapshot:
    """Load a snapshot, choosing the format from the file extension."""
    filepath = Path(filepath)
    if filepath.suffix.lower() == ".csv":
        return load_ranks_csv(filepath)
    return load_snapshot_json(filepath)
