"""Tests for the decision variance helpers."""
import random

import pytest

from damnata.ai.variance import DecisionVariance

from tests.conftest import FixedRandom


class TestChance:
    """Probability rolls."""

    def test_zero_never_fires(self):
        """A zero probability never consumes a roll or fires."""
        assert not DecisionVariance(FixedRandom(0.0)).chance(0.0)

    def test_one_always_fires(self):
        """Certain events fire whatever the roll."""
        assert DecisionVariance(FixedRandom(0.999)).chance(1.0)

    def test_roll_compared_to_probability(self):
        """In between the roll decides."""
        assert DecisionVariance(FixedRandom(0.2)).chance(0.3)
        assert not DecisionVariance(FixedRandom(0.4)).chance(0.3)


class TestPartialShuffle:
    """Adjacent-swap shuffle of attack orders."""

    def test_every_pair_swaps(self):
        """When every roll fires, each adjacent pair swaps once."""
        variance = DecisionVariance(FixedRandom(0.0))
        assert variance.partial_shuffle([1, 2, 3, 4], 0.4) == [2, 1, 4, 3]

    def test_nothing_swaps(self):
        """When no roll fires the order is unchanged."""
        variance = DecisionVariance(FixedRandom(0.999))
        assert variance.partial_shuffle([1, 2, 3, 4], 0.4) == [1, 2, 3, 4]

    def test_returns_new_list(self):
        """The input list is left alone."""
        items = [1, 2, 3]
        DecisionVariance(FixedRandom(0.0)).partial_shuffle(items)
        assert items == [1, 2, 3]

    def test_is_a_permutation(self):
        """Seeded shuffles keep every element exactly once."""
        for seed in range(20):
            shuffled = DecisionVariance(random.Random(seed)).partial_shuffle(list(range(6)))
            assert sorted(shuffled) == list(range(6))


class TestCardScore:
    """Card score perturbation."""

    def test_suboptimal_branch(self):
        """The suboptimal roll cuts the score to between 50% and 80%."""
        variance = DecisionVariance(FixedRandom(0.0))
        assert variance.perturb_card_score(100.0, 0.5, 0.0) == pytest.approx(50.0)

    def test_suboptimal_then_spread(self):
        """The spread applies on top of the suboptimal cut."""
        variance = DecisionVariance(FixedRandom(0.0))
        assert variance.perturb_card_score(100.0, 0.5, 0.2) == pytest.approx(100.0 * 0.5 * 0.8)

    def test_spread_only(self):
        """Without the suboptimal roll only the spread applies."""
        variance = DecisionVariance(FixedRandom(0.999))
        assert variance.perturb_card_score(100.0, 0.5, 0.2) == pytest.approx(100.0 * (0.8 + 0.4 * 0.999))

    def test_deterministic(self):
        """Zero chances leave the score alone."""
        assert DecisionVariance(FixedRandom(0.3)).perturb_card_score(42.0, 0.0, 0.0) == 42.0


class TestNoiseAndPicks:
    """Score noise and suboptimal picks."""

    def test_bounded_noise_capped(self):
        """Noise never exceeds the cap."""
        variance = DecisionVariance(FixedRandom(0.0))
        assert variance.bounded_noise(1000.0, 0.5, 20.0) == pytest.approx(980.0)

    def test_no_noise_at_zero_score(self):
        """A zero score has no margin."""
        assert DecisionVariance(FixedRandom(0.0)).bounded_noise(0.0, 0.5, 20.0) == 0.0

    def test_suboptimal_index(self):
        """The roll picks the second or third best entry."""
        variance = DecisionVariance(FixedRandom(0.0))
        assert variance.suboptimal_index(['a', 'b', 'c'], 0.5) == 1
        assert DecisionVariance(FixedRandom(0.999)).suboptimal_index(['a', 'b', 'c'], 0.5) == 0
        assert variance.suboptimal_index(['a'], 1.0) == 0
