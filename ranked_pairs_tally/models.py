"""
Data model for the ranked pairs tally.

Candidates and ballots are immutable so a snapshot captured before a run
cannot change underneath it.
"""

from dataclasses import dataclass
from typing import Any, Optional

ALGORITHM_NAME = "Tideman Method (Ranked Pairs)"
DEFAULT_DESCRIPTION = (
    "Established Tideman method (graph-based) - proven Condorcet criterion "
    "and democratic properties"
)
INVALID_BALLOT_STRATEGIES = ("skip", "error")


# =============================================================================
# Errors
# =============================================================================

class TabulationError(ValueError):
    """Base class for everything the tabulation engine rejects."""


class InvalidBallot(TabulationError):
    """A single ballot is malformed (tied first entry, duplicates, bad fields)."""

    def __init__(self, message: str, voter_id: Optional[int] = None):
        super().__init__(message)
        self.voter_id = voter_id


class UnknownCandidate(InvalidBallot):
    """A ballot references a candidate that is not active in this election."""

    def __init__(self, candidate_id: int, voter_id: Optional[int] = None):
        super().__init__(
            f"Ballot references unknown or inactive candidate {candidate_id}",
            voter_id=voter_id,
        )
        self.candidate_id = candidate_id


class ConfigurationError(TabulationError):
    """The candidate list or the tabulation options are unusable."""


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class Candidate:
    id: int
    name: str
    description: str = ""
    active: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Candidate":
        try:
            active = data.get("active", True)
            if not isinstance(active, bool):
                raise TypeError(f"active must be a boolean, got {active!r}")
            return cls(
                id=int(data["id"]),
                name=str(data["name"]),
                description=str(data.get("description", "")),
                active=active,
            )
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise ConfigurationError(f"Malformed candidate record {data!r}: {e}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "active": self.active,
        }


@dataclass(frozen=True)
class RankingEntry:
    candidate_id: int
    tied_with_previous: bool = False


@dataclass(frozen=True)
class Ballot:
    """One voter's submission, best choice first."""
    entries: tuple[RankingEntry, ...] = ()
    voter_id: Optional[int] = None

    @classmethod
    def from_ids(cls, *groups, voter_id: Optional[int] = None) -> "Ballot":
        """
        Build a ballot from candidate ids in preference order.

        Each positional argument is either a single id or a tuple/list of ids
        tied at that position, so ``Ballot.from_ids(1, (2, 3), 4)`` reads
        "1, then 2 and 3 tied, then 4".
        """
        entries = []
        for group in groups:
            ids = group if isinstance(group, (tuple, list)) else (group,)
            for position, candidate_id in enumerate(ids):
                entries.append(RankingEntry(candidate_id, tied_with_previous=position > 0))
        return cls(entries=tuple(entries), voter_id=voter_id)


@dataclass(frozen=True)
class RankedPair:
    """A decisive pairwise contest: winner beats loser by margin."""
    winner: int
    loser: int
    margin: int
    winner_votes: int
    loser_votes: int

    @property
    def key(self) -> str:
        return f"{self.winner}-{self.loser}"

    def to_dict(self) -> dict[str, int]:
        return {
            "winner": self.winner,
            "loser": self.loser,
            "margin": self.margin,
            "winnerVotes": self.winner_votes,
            "loserVotes": self.loser_votes,
        }


@dataclass(frozen=True)
class TabulationOptions:
    """
    Run configuration.

    invalid_ballots:
        - "skip": log and skip bad ballots, drop entries naming unknown
          candidates from otherwise valid ballots
        - "error": raise on the first bad ballot or unknown candidate
    """
    invalid_ballots: str = "skip"
    description: str = DEFAULT_DESCRIPTION

    def __post_init__(self):
        if self.invalid_ballots not in INVALID_BALLOT_STRATEGIES:
            raise ConfigurationError(
                f"invalid_ballots must be one of {INVALID_BALLOT_STRATEGIES}, "
                f"got {self.invalid_ballots!r}"
            )

    @property
    def strict(self) -> bool:
        return self.invalid_ballots == "error"


@dataclass(frozen=True)
class BallotSnapshot:
    """
    Candidates and ballots captured at one point in time.

    Ballots may still be raw records (mappings or entry lists); the engine
    parses them so malformed ones fall under the invalid ballot policy.
    """
    candidates: tuple[Candidate, ...] = ()
    ballots: tuple[Any, ...] = ()
