"""Tests for the global clustering matcher.

Tests:
- Candidate bucket size grid
- Clean 1:1 cells become single-element candidate lists
- Conflict cells produce ranked lists for every master
- Single-set cells are dropped
- Conservation: every returned slave shares its master's cell
"""

import numpy as np
import pytest

from alphamatch.clustering import partition
from alphamatch.features import Feature
from alphamatch.matching import (
    MatcherConfig,
    MatcherKind,
    OrderingMode,
    calculate_buckets,
    match_global_cluster,
)
from alphamatch.tolerance import ConfigurationError, Tolerance


def time_config(delta_mass=0.1, delta_elution=30.0, **kwargs):
    tolerance = Tolerance(delta_mass=delta_mass, mass_tolerance_type="absolute",
                          delta_elution=delta_elution, elution_mode="time")
    return MatcherConfig(tolerance=tolerance, matcher_kind=MatcherKind.GLOBAL_CLUSTERING, **kwargs)


class TestCalculateBuckets:
    """Test candidate bucket size generation."""

    def test_ppm_grid(self):
        assert calculate_buckets(4, 1.0, 5.0) == [2.0, 3.0, 4.0, 5.0]

    def test_ends_at_tolerance(self):
        sizes = calculate_buckets(4, 10.0, 60.0)
        assert sizes[-1] == 60.0
        assert sizes == sorted(sizes)

    def test_non_positive_sizes_dropped(self):
        assert calculate_buckets(4, 0.05, 0.05) == [0.05]

    def test_single_bucket(self):
        assert calculate_buckets(1, 1.0, 5.0) == [5.0]

    def test_zero_tolerance(self):
        assert calculate_buckets(4, 1.0, 0.0) == [0.0]

    def test_invalid_count(self):
        with pytest.raises(ConfigurationError):
            calculate_buckets(0, 1.0, 5.0)


class TestGlobalClusterMatching:
    """Test global clustering resolution of cells."""

    def test_single_pair(self, single_pair, clustering_config):
        master, slave = single_pair

        result = match_global_cluster(master, slave, clustering_config)

        assert len(result) == 1
        assert result.get(master[0]) == [slave[0]]
        assert result.diagnostics["one_to_one_cells"] == 1
        assert result.diagnostics["conflict_cells"] == 0

    def test_shared_slave_conflict(self, shared_slave, clustering_config):
        """Both masters get a ranked list pointing at the shared slave."""
        master, slave = shared_slave

        result = match_global_cluster(master, slave, clustering_config)

        assert len(result) == 2
        assert result.get(master[0]) == [slave[0]]
        assert result.get(master[1]) == [slave[0]]
        assert result.diagnostics["conflict_cells"] == 1

    def test_conflict_cell_ranks_all_slaves(self):
        master = [Feature(mass=1000.0, time=100.0)]
        far = Feature(mass=1000.02, time=105.0, feature_id="far")
        near = Feature(mass=1000.01, time=101.0, feature_id="near")

        result = match_global_cluster(master, [far, near], time_config())

        assert [f.feature_id for f in result.get(master[0])] == ["near", "far"]

    def test_conflict_cell_by_quality(self):
        master = [Feature(mass=1000.0, time=100.0)]
        low = Feature(mass=1000.01, time=101.0, quality=0.1, feature_id="low")
        high = Feature(mass=1000.02, time=104.0, quality=0.9, feature_id="high")

        result = match_global_cluster(master, [low, high],
                                      time_config(ordering_mode=OrderingMode.BY_QUALITY))

        assert [f.feature_id for f in result.get(master[0])] == ["high", "low"]

    def test_single_set_cells_dropped(self):
        master = [Feature(mass=1000.0, time=100.0), Feature(mass=1500.0, time=100.0)]
        slave = [Feature(mass=1000.01, time=100.0), Feature(mass=2000.0, time=100.0)]

        result = match_global_cluster(master, slave, time_config())

        assert result.master_features() == [master[0]]
        assert result.slave_features() == [slave[0]]

    def test_well_separated_pairs(self, paired_feature_sets, clustering_config):
        master, slave = paired_feature_sets

        result = match_global_cluster(master, slave, clustering_config)

        assert len(result) == len(master)
        for m, s in zip(master, slave):
            assert result.get(m) == [s]
        # Every pair is clean at the smallest candidate size, so evaluation stops there
        assert result.diagnostics["mass_bucket_size"] == 2.0
        assert result.diagnostics["one_to_one_cells"] == len(master)

    def test_prefers_bucket_size_with_clean_cells(self):
        """Tolerance 0.3 Da would merge both pairs; 0.1 Da keeps them apart."""
        master = [Feature(mass=100.0, time=0.0), Feature(mass=100.25, time=0.0)]
        slave = [Feature(mass=100.01, time=0.0), Feature(mass=100.26, time=0.0)]

        config = time_config(delta_mass=0.3, mass_bucket_increment=0.2, num_mass_buckets=2)
        result = match_global_cluster(master, slave, config)

        assert result.diagnostics["mass_bucket_size"] == pytest.approx(0.1)
        assert result.get(master[0]) == [slave[0]]
        assert result.get(master[1]) == [slave[1]]

    @pytest.mark.parametrize("master_size,slave_size", [(3, 0), (0, 3)])
    def test_empty_sets(self, master_size, slave_size):
        master = [Feature(mass=1000.0, time=1.0) for _ in range(master_size)]
        slave = [Feature(mass=1000.0, time=1.0) for _ in range(slave_size)]

        assert len(match_global_cluster(master, slave, time_config())) == 0


class TestClusteringConservation:
    """Every returned slave lies in its master's cell."""

    def test_slaves_share_master_cell(self):
        rng = np.random.default_rng(21)
        master = [Feature(mass=float(m), time=float(t))
                  for m, t in zip(rng.uniform(1000, 1002, 80), rng.uniform(0, 600, 80))]
        slave = [Feature(mass=float(m), time=float(t))
                 for m, t in zip(rng.uniform(1000, 1002, 80), rng.uniform(0, 600, 80))]
        config = time_config(delta_mass=0.05, delta_elution=30.0)

        result = match_global_cluster(master, slave, config)
        cells = partition(
            [master, slave],
            result.diagnostics["mass_bucket_size"],
            result.diagnostics["elution_bucket_size"],
            elution_mode="time",
        )
        cell_of = {}
        for k, cell in enumerate(cells):
            for f in cell.entries[0] + cell.entries[1]:
                cell_of[id(f)] = k

        max_slaves_per_cell = max(len(cell.entries[1]) for cell in cells)
        assert len(result.to_pairs()) <= min(len(master), len(slave)) * max_slaves_per_cell
        for m, candidates in result.items():
            for s in candidates:
                assert cell_of[id(s)] == cell_of[id(m)]
