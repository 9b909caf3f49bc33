"""Tests for pairwise tallies and margin ranking."""

import pytest
from conftest import ALICE, BOB, CAROL, DAVE, random_ballots

from ranked_pairs_tally import RankedPair
from ranked_pairs_tally.ballots import normalize_ballot
from ranked_pairs_tally.tally import (
    build_pairwise_tallies,
    margin_totals,
    pair_sort_key,
    rank_pairs,
    tally_dict,
)


def tallies_for(ballots, candidate_ids):
    groups = [normalize_ballot(b, set(candidate_ids)) for b in ballots]
    return build_pairwise_tallies(groups, candidate_ids)


class TestBuildPairwiseTallies:
    def test_zero_initialized(self):
        tally = build_pairwise_tallies([], [3, 1, 2])
        assert list(tally.index) == [1, 2, 3]
        assert list(tally.columns) == [1, 2, 3]
        assert (tally.values == 0).all()

    def test_simple_majority(self, simple_majority):
        tally = tallies_for(simple_majority, [ALICE, BOB, CAROL])
        assert tally.loc[ALICE, BOB] == 2
        assert tally.loc[BOB, ALICE] == 1
        assert tally.loc[BOB, CAROL] == 3
        assert tally.loc[CAROL, BOB] == 0

    def test_tied_candidates_are_not_compared(self):
        """A = B > C gives A>C and B>C, nothing between A and B."""
        tally = build_pairwise_tallies([[[ALICE, BOB], [CAROL]]], [ALICE, BOB, CAROL])
        assert tally.loc[ALICE, CAROL] == 1
        assert tally.loc[BOB, CAROL] == 1
        assert tally.loc[ALICE, BOB] == 0
        assert tally.loc[BOB, ALICE] == 0

    def test_absent_candidates_are_not_compared(self):
        tally = build_pairwise_tallies([[[ALICE], [BOB]]], [ALICE, BOB, CAROL])
        assert tally.loc[ALICE, BOB] == 1
        assert tally.loc[ALICE, CAROL] == 0
        assert tally.loc[CAROL, ALICE] == 0
        assert tally.loc[BOB, CAROL] == 0

    def test_reference_election(self, reference_ballots):
        tally = tallies_for(reference_ballots, [ALICE, BOB, CAROL, DAVE])
        assert (tally.loc[ALICE, BOB], tally.loc[BOB, ALICE]) == (3, 1)
        assert (tally.loc[ALICE, CAROL], tally.loc[CAROL, ALICE]) == (3, 2)
        assert (tally.loc[DAVE, ALICE], tally.loc[ALICE, DAVE]) == (3, 1)
        assert (tally.loc[BOB, CAROL], tally.loc[CAROL, BOB]) == (4, 1)
        assert (tally.loc[BOB, DAVE], tally.loc[DAVE, BOB]) == (2, 2)
        assert (tally.loc[CAROL, DAVE], tally.loc[DAVE, CAROL]) == (3, 1)

    @pytest.mark.parametrize("seed", range(5))
    def test_symmetry_bound(self, seed):
        ids = [1, 2, 3, 4, 5]
        ballots = random_ballots(seed, ids, 40)
        tally = tallies_for(ballots, ids)

        for a in ids:
            for b in ids:
                if a == b:
                    continue
                ranking_both = sum(
                    1 for ballot in ballots
                    if {a, b} <= {e.candidate_id for e in ballot.entries}
                )
                assert tally.loc[a, b] + tally.loc[b, a] <= ranking_both

    def test_tally_dict_has_every_ordered_pair(self, reference_ballots):
        tally = tallies_for(reference_ballots, [ALICE, BOB, CAROL, DAVE])
        flat = tally_dict(tally)
        assert len(flat) == 4 * 3
        assert flat["2-3"] == 4
        assert flat["3-2"] == 1
        assert all(isinstance(v, int) for v in flat.values())

    def test_margin_totals(self, reference_ballots):
        tally = tallies_for(reference_ballots, [ALICE, BOB, CAROL, DAVE])
        totals = margin_totals(tally)
        assert totals == {ALICE: 1, BOB: 1, CAROL: -2, DAVE: 0}
        assert sum(totals.values()) == 0


class TestRankPairs:
    def test_simple_majority(self, simple_majority):
        pairs = rank_pairs(tallies_for(simple_majority, [ALICE, BOB, CAROL]))
        assert pairs == [
            RankedPair(BOB, CAROL, margin=3, winner_votes=3, loser_votes=0),
            RankedPair(ALICE, BOB, margin=1, winner_votes=2, loser_votes=1),
            RankedPair(ALICE, CAROL, margin=1, winner_votes=2, loser_votes=1),
        ]

    def test_equal_tallies_emit_no_pair(self, perfect_tie):
        assert rank_pairs(tallies_for(perfect_tie, [ALICE, BOB, CAROL])) == []

    def test_equal_margins_ordered_by_winner_then_loser(self, reference_ballots):
        pairs = rank_pairs(tallies_for(reference_ballots, [ALICE, BOB, CAROL, DAVE]))
        assert [(p.winner, p.loser, p.margin) for p in pairs] == [
            (BOB, CAROL, 3),
            (ALICE, BOB, 2),
            (CAROL, DAVE, 2),
            (DAVE, ALICE, 2),
            (ALICE, CAROL, 1),
        ]

    def test_sort_key(self):
        pairs = [
            RankedPair(3, 1, 2, 3, 1),
            RankedPair(1, 4, 2, 3, 1),
            RankedPair(1, 2, 2, 3, 1),
            RankedPair(2, 3, 5, 5, 0),
        ]
        ordered = sorted(pairs, key=pair_sort_key)
        assert [p.key for p in ordered] == ["2-3", "1-2", "1-4", "3-1"]

    def test_no_candidates(self):
        assert rank_pairs(build_pairwise_tallies([], [])) == []
