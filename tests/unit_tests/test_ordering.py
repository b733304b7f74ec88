"""Tests for candidate ordering.

Tests:
- BY_QUALITY: descending quality
- BY_ELUTION_CLOSENESS: ascending |elution difference|
- Stability on ties, idempotence, input not mutated
"""

import numpy as np
import pytest

from alphamatch.features import Feature, elution_value
from alphamatch.matching import OrderingMode, order_candidates
from alphamatch.tolerance import ConfigurationError, ElutionMode


@pytest.fixture
def master():
    return Feature(mass=1000.0, time=100.0, hydrophobicity=20.0, quality=0.5)


@pytest.fixture
def candidates():
    return [
        Feature(mass=1000.0, time=130.0, hydrophobicity=20.3, quality=0.2, feature_id="a"),
        Feature(mass=1000.0, time=95.0, hydrophobicity=19.9, quality=0.9, feature_id="b"),
        Feature(mass=1000.0, time=110.0, hydrophobicity=20.1, quality=0.5, feature_id="c"),
        Feature(mass=1000.0, time=90.0, hydrophobicity=19.8, quality=0.9, feature_id="d"),
    ]


def ids(features):
    return [f.feature_id for f in features]


class TestOrderByQuality:
    """Test ranking by intrinsic quality."""

    def test_descending_quality(self, master, candidates):
        ranked = order_candidates(candidates, master, OrderingMode.BY_QUALITY)
        assert ids(ranked) == ["b", "d", "c", "a"]

    def test_ties_keep_input_order(self, master, candidates):
        reversed_input = list(reversed(candidates))
        ranked = order_candidates(reversed_input, master, "quality")
        # d precedes b in the reversed input, both quality 0.9
        assert ids(ranked) == ["d", "b", "c", "a"]


class TestOrderByElutionCloseness:
    """Test ranking by elution distance to the master."""

    def test_time_mode(self, master, candidates):
        ranked = order_candidates(
            candidates, master, OrderingMode.BY_ELUTION_CLOSENESS, ElutionMode.TIME
        )
        assert ids(ranked) == ["b", "c", "d", "a"]

    def test_hydrophobicity_mode(self, master, candidates):
        ranked = order_candidates(candidates, master, "elution_closeness", "hydrophobicity")
        distances = [abs(elution_value(f, ElutionMode.HYDROPHOBICITY) - 20.0) for f in ranked]
        assert distances == sorted(distances)

    def test_equal_distance_keeps_input_order(self, master):
        before = Feature(mass=1000.0, time=90.0, feature_id="early")
        after = Feature(mass=1000.0, time=110.0, feature_id="late")

        assert ids(order_candidates([before, after], master, "elution_closeness", "time")) == ["early", "late"]
        assert ids(order_candidates([after, before], master, "elution_closeness", "time")) == ["late", "early"]

    def test_missing_hydrophobicity_raises(self, master):
        with pytest.raises(ConfigurationError):
            order_candidates([Feature(mass=1000.0)], master, "elution_closeness", "hydrophobicity")


class TestOrderingProperties:
    """Properties that hold for any candidate list."""

    @pytest.mark.parametrize("mode", list(OrderingMode))
    def test_idempotent(self, mode):
        rng = np.random.default_rng(7)
        master = Feature(mass=1000.0, time=500.0, quality=0.0)
        candidates = [
            Feature(mass=1000.0, time=float(t), quality=float(q))
            for t, q in zip(rng.integers(400, 600, 40), rng.integers(0, 5, 40))
        ]

        once = order_candidates(candidates, master, mode, "time")
        twice = order_candidates(once, master, mode, "time")

        assert all(a is b for a, b in zip(once, twice))

    def test_input_not_mutated(self, master, candidates):
        snapshot = list(candidates)
        ranked = order_candidates(candidates, master, OrderingMode.BY_QUALITY)

        assert ranked is not candidates
        assert all(a is b for a, b in zip(candidates, snapshot))

    def test_empty(self, master):
        assert order_candidates([], master) == []

    def test_unknown_mode(self, master, candidates):
        with pytest.raises(ConfigurationError):
            order_candidates(candidates, master, "by_mass")
