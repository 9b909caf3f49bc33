"""Shared fixtures for tabulation tests."""

import random

import pytest

from ranked_pairs_tally import Ballot, Candidate

ALICE, BOB, CAROL, DAVE = 1, 2, 3, 4


def make_ballots(*rankings):
    """Build ballots from id rankings; tuples inside a ranking are ties."""
    return [
        Ballot.from_ids(*ranking, voter_id=1001 + i)
        for i, ranking in enumerate(rankings)
    ]


def random_ballots(seed, candidate_ids, count):
    """Partial rankings with occasional ties, reproducible per seed."""
    rng = random.Random(seed)
    ballots = []
    for voter in range(count):
        ranked = rng.sample(list(candidate_ids), rng.randint(0, len(candidate_ids)))
        groups = []
        for c in ranked:
            if groups and rng.random() < 0.25:
                groups[-1] = groups[-1] + (c,)
            else:
                groups.append((c,))
        ballots.append(Ballot.from_ids(*groups, voter_id=voter))
    return ballots


@pytest.fixture
def candidates():
    return [
        Candidate(ALICE, "Alice Johnson", "Progressive candidate"),
        Candidate(BOB, "Bob Smith", "Conservative candidate"),
        Candidate(CAROL, "Carol Davis", "Independent candidate"),
        Candidate(DAVE, "Dave Wilson", "Green party candidate"),
    ]


@pytest.fixture
def three_candidates(candidates):
    return candidates[:3]


@pytest.fixture
def simple_majority():
    """
    A > B > C  x2
    B > C > A  x1

    A beats B 2-1, A beats C 2-1, B beats C 3-0. Ranking: A, B, C.
    """
    return make_ballots(
        (ALICE, BOB, CAROL),
        (ALICE, BOB, CAROL),
        (BOB, CAROL, ALICE),
    )


@pytest.fixture
def classic_cycle():
    """
    A > B > C
    B > C > A
    C > A > B

    Every contest is won 2-1: A > B, B > C, C > A.
    """
    return make_ballots(
        (ALICE, BOB, CAROL),
        (BOB, CAROL, ALICE),
        (CAROL, ALICE, BOB),
    )


@pytest.fixture
def perfect_tie():
    """
    A > B > C
    C > B > A

    Every pairwise tally is 1-1, so no pair is decisive.
    """
    return make_ballots(
        (ALICE, BOB, CAROL),
        (CAROL, BOB, ALICE),
    )


@pytest.fixture
def reference_ballots():
    """
    Alice/Bob/Carol/Dave test election.

        V1  Alice > Bob > Carol > Dave
        V2  Bob > Carol > Dave > Alice
        V3  Carol > Dave > Alice > Bob
        V4  Dave > Alice > Bob > Carol
        V5  Alice = Bob > Carol

    Tallies: A>B 3-1, A>C 3-2, D>A 3-1, B>C 4-1, B=D 2-2, C>D 3-1.
    Lock order: B-C (3), A-B (2), C-D (2), D-A (2, skipped), A-C (1).
    Ranking: Alice, Bob, Carol, Dave.
    """
    return make_ballots(
        (ALICE, BOB, CAROL, DAVE),
        (BOB, CAROL, DAVE, ALICE),
        (CAROL, DAVE, ALICE, BOB),
        (DAVE, ALICE, BOB, CAROL),
        ((ALICE, BOB), CAROL),
    )
