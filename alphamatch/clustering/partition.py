"""Adaptive 2-D partitioning of feature sets into mass × elution cells.

The union of all input feature sets is projected to (mass, elution) and cut into
cells in two passes:

1. Mass axis: features sorted by mass are split recursively at the largest gap
   between neighbours until every span is no wider than the mass bucket size.
2. Elution axis: each mass span is sorted by elution and split the same way
   with the elution bucket size.

Every feature lands in exactly one cell. With a PPM mass tolerance the allowed
span width is converted at the lower bound of the span being split, so cells
are narrower at low mass and wider at high mass:

    width = span_min * bucket_ppm / 1e6

Cells are summarised as BucketSummary records that remember which input set
(0 = master, 1 = slave) each member came from. A cell holding exactly one
feature from each of two sets is a clean 1:1 correspondence; a cell with more
members per set is a conflict that the matchers resolve by ranking or by
refining the grid.

Performance
-----------
The splitting itself runs in a Numba kernel on sorted float64 arrays; Python
only builds the per-cell summaries.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from numba import njit

from alphamatch.features import Feature, project_elution, project_masses
from alphamatch.tolerance import ConfigurationError, ElutionMode, absolute_delta_mass, coerce_enum

logger = logging.getLogger(__name__)


# =============================================================================
# Splitting Kernel
# =============================================================================

@njit(cache=True)
def split_sorted_values(
    values: np.ndarray,
    bucket_size: float,
    is_ppm: bool,
) -> np.ndarray:
    """Split a sorted array into spans no wider than bucket_size.

    Parameters
    ----------
    values : np.ndarray (float64)
        Values sorted ascending. Not checked.
    bucket_size : float
        Maximum span width, in the units of values or in ppm if is_ppm
    is_ppm : bool
        Convert bucket_size to an absolute width at each span's minimum

    Returns
    -------
    boundaries : np.ndarray (int64)
        Span start indices followed by len(values); span k is
        values[boundaries[k]:boundaries[k + 1]]. Spans are in ascending order.

    Notes
    -----
    A span is split at its largest gap (the first one if several are equal),
    and both halves are split again. A span with a single value, or one whose
    width is within the limit, is a leaf.
    """
    n = len(values)
    boundaries = np.empty(n + 1, dtype=np.int64)
    if n == 0:
        boundaries[0] = 0
        return boundaries[:1]

    stack_lo = np.empty(n, dtype=np.int64)
    stack_hi = np.empty(n, dtype=np.int64)
    stack_lo[0] = 0
    stack_hi[0] = n
    top = 1
    count = 0

    while top > 0:
        top -= 1
        lo = stack_lo[top]
        hi = stack_hi[top]
        width = absolute_delta_mass(values[lo], bucket_size, is_ppm)

        if hi - lo > 1 and values[hi - 1] - values[lo] > width:
            split_at = lo + 1
            best_gap = values[lo + 1] - values[lo]
            for i in range(lo + 2, hi):
                gap = values[i] - values[i - 1]
                if gap > best_gap:
                    best_gap = gap
                    split_at = i
            # Right half first so the left half is popped (and emitted) first
            stack_lo[top] = split_at
            stack_hi[top] = hi
            top += 1
            stack_lo[top] = lo
            stack_hi[top] = split_at
            top += 1
        else:
            boundaries[count] = lo
            count += 1

    boundaries[count] = n
    return boundaries[:count + 1]


# =============================================================================
# Cell Summary
# =============================================================================

class BucketSummary:
    """One cell of a partition.

    Attributes:
        entries: Per input set, the member features (sorted by elution)
        min_mass, max_mass: Mass range of the members
        min_elution, max_elution: Elution range of the members
    """

    __slots__ = ("entries", "min_mass", "max_mass", "min_elution", "max_elution")

    def __init__(
        self,
        entries: List[List[Feature]],
        min_mass: float,
        max_mass: float,
        min_elution: float,
        max_elution: float,
    ):
        self.entries = entries
        self.min_mass = min_mass
        self.max_mass = max_mass
        self.min_elution = min_elution
        self.max_elution = max_elution

    @property
    def set_count(self) -> int:
        """Number of input sets with at least one member in this cell."""
        return sum(1 for members in self.entries if members)

    @property
    def feature_count(self) -> int:
        return sum(len(members) for members in self.entries)

    @property
    def is_one_to_one(self) -> bool:
        return self.set_count == 2 and self.feature_count == 2

    def get_set_features(self, set_index: int) -> List[Feature]:
        return self.entries[set_index]

    def contains(self, mass: float, elution: float) -> bool:
        return (
            self.min_mass <= mass <= self.max_mass
            and self.min_elution <= elution <= self.max_elution
        )

    def __repr__(self):
        sizes = "/".join(str(len(members)) for members in self.entries)
        return (
            f"BucketSummary(sets={self.set_count}, members={sizes}, "
            f"mass=[{self.min_mass:.5f}, {self.max_mass:.5f}], "
            f"elution=[{self.min_elution:.4f}, {self.max_elution:.4f}])"
        )


# =============================================================================
# Partitioner
# =============================================================================

def _check_bucket_size(value: float, name: str) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise ConfigurationError(f"{name} must be finite and >= 0, got {value}")
    return value


class FeaturePartitioner:
    """Projects feature sets once and partitions them at any bucket size.

    Use this instead of partition() when several bucket sizes are tried on the
    same input, as the global clustering matcher does.

    Args:
        feature_sets: Input sets, conventionally [master, slave]
        elution_mode: Elution coordinate for the second axis
        use_mass: Partition on neutral mass (True) or m/z (False)
        ppm_aware: Interpret mass bucket sizes as ppm
    """

    def __init__(
        self,
        feature_sets: Sequence[Sequence[Feature]],
        elution_mode=ElutionMode.HYDROPHOBICITY,
        use_mass: bool = True,
        ppm_aware: bool = False,
    ):
        self.elution_mode = coerce_enum(ElutionMode, elution_mode, "elution mode")
        self.ppm_aware = ppm_aware
        self.num_sets = len(feature_sets)
        self.set_sizes = [len(features) for features in feature_sets]

        self._features: List[Feature] = [f for features in feature_sets for f in features]
        self._set_index = np.repeat(
            np.arange(self.num_sets, dtype=np.int64),
            np.array(self.set_sizes, dtype=np.int64),
        )

        masses = np.concatenate(
            [project_masses(features, use_mass) for features in feature_sets]
        ) if self._features else np.empty(0, dtype=np.float64)
        elutions = np.concatenate(
            [project_elution(features, self.elution_mode) for features in feature_sets]
        ) if self._features else np.empty(0, dtype=np.float64)

        # Stable, so earlier sets come first among equal masses
        self._mass_order = np.argsort(masses, kind="mergesort")
        self._sorted_masses = masses[self._mass_order]
        self._masses = masses
        self._elutions = elutions

    def __len__(self) -> int:
        return len(self._features)

    def split(self, mass_bucket_size: float, elution_bucket_size: float) -> List[BucketSummary]:
        """Partition all features into cells.

        Args:
            mass_bucket_size: Maximum cell width on the mass axis (Da, or ppm if ppm_aware)
            elution_bucket_size: Maximum cell width on the elution axis

        Returns:
            One BucketSummary per non-empty cell, in ascending (mass, elution) order
        """
        mass_bucket_size = _check_bucket_size(mass_bucket_size, "mass_bucket_size")
        elution_bucket_size = _check_bucket_size(elution_bucket_size, "elution_bucket_size")

        buckets: List[BucketSummary] = []
        if not self._features:
            return buckets

        mass_bounds = split_sorted_values(self._sorted_masses, mass_bucket_size, self.ppm_aware)
        for k in range(len(mass_bounds) - 1):
            span = self._mass_order[mass_bounds[k]:mass_bounds[k + 1]]
            span_elutions = self._elutions[span]
            elution_order = np.argsort(span_elutions, kind="mergesort")
            span = span[elution_order]
            sorted_elutions = span_elutions[elution_order]

            elution_bounds = split_sorted_values(sorted_elutions, elution_bucket_size, False)
            for j in range(len(elution_bounds) - 1):
                cell = span[elution_bounds[j]:elution_bounds[j + 1]]
                buckets.append(self._summarize(cell))

        return buckets

    def _summarize(self, cell: np.ndarray) -> BucketSummary:
        entries: List[List[Feature]] = [[] for _ in range(self.num_sets)]
        for idx in cell:
            entries[self._set_index[idx]].append(self._features[idx])
        cell_masses = self._masses[cell]
        cell_elutions = self._elutions[cell]
        return BucketSummary(
            entries,
            float(cell_masses.min()),
            float(cell_masses.max()),
            float(cell_elutions.min()),
            float(cell_elutions.max()),
        )

    def num_buckets(self, mass_bucket_size: float, elution_bucket_size: float) -> int:
        return len(self.split(mass_bucket_size, elution_bucket_size))

    def count_one_to_one(self, mass_bucket_size: float, elution_bucket_size: float) -> int:
        """Number of clean cells (exactly one feature from each of two sets)."""
        return sum(
            1 for bucket in self.split(mass_bucket_size, elution_bucket_size)
            if bucket.is_one_to_one
        )

    def calculate_best_buckets(
        self,
        mass_buckets: Sequence[float],
        elution_buckets: Sequence[float],
    ) -> Tuple[float, float, np.ndarray]:
        """Pick the bucket size pair that yields the most clean 1:1 cells.

        Pairs are evaluated mass-major in the order given. The first pair
        reaching the best score wins, and evaluation stops early once the
        score equals the smallest set size (no pair can do better).

        Args:
            mass_buckets: Candidate mass bucket sizes
            elution_buckets: Candidate elution bucket sizes

        Returns:
            (best_mass_bucket, best_elution_bucket, scores) where scores has
            shape (len(mass_buckets), len(elution_buckets)) and holds -1 for
            pairs that were not evaluated
        """
        if len(mass_buckets) == 0 or len(elution_buckets) == 0:
            raise ConfigurationError("At least one mass and one elution bucket size are required")

        scores = np.full((len(mass_buckets), len(elution_buckets)), -1, dtype=np.int64)
        max_possible = min(self.set_sizes) if self.set_sizes else 0
        best_score = -1
        best_mass = mass_buckets[0]
        best_elution = elution_buckets[0]

        for i, mass_bucket in enumerate(mass_buckets):
            for j, elution_bucket in enumerate(elution_buckets):
                score = self.count_one_to_one(mass_bucket, elution_bucket)
                scores[i, j] = score
                logger.debug(
                    f"Bucket sizes mass={mass_bucket}, elution={elution_bucket}: "
                    f"{score} one-to-one cells"
                )
                if score > best_score:
                    best_score = score
                    best_mass = mass_bucket
                    best_elution = elution_bucket
                if best_score >= max_possible:
                    return best_mass, best_elution, scores

        return best_mass, best_elution, scores


def partition(
    feature_sets: Sequence[Sequence[Feature]],
    mass_bucket_size: float,
    elution_bucket_size: float,
    ppm_aware: bool = False,
    elution_mode=ElutionMode.HYDROPHOBICITY,
    use_mass: bool = True,
) -> List[BucketSummary]:
    """Partition the union of feature sets into mass × elution cells.

    Args:
        feature_sets: Input sets, conventionally [master, slave]
        mass_bucket_size: Maximum cell width on the mass axis (Da, or ppm if ppm_aware)
        elution_bucket_size: Maximum cell width on the elution axis
        ppm_aware: Interpret mass_bucket_size as ppm of each span's lower bound
        elution_mode: Elution coordinate for the second axis
        use_mass: Partition on neutral mass (True) or m/z (False)

    Returns:
        One BucketSummary per non-empty cell

    Examples:
        >>> from alphamatch.features import Feature
        >>> master = [Feature(mass=1000.0, hydrophobicity=10.0)]
        >>> slave = [Feature(mass=1000.0005, hydrophobicity=10.01)]
        >>> cells = partition([master, slave], 5.0, 0.05, ppm_aware=True)
        >>> len(cells), cells[0].set_count
        (1, 2)
    """
    partitioner = FeaturePartitioner(feature_sets, elution_mode, use_mass, ppm_aware)
    return partitioner.split(mass_bucket_size, elution_bucket_size)


def histogram_bucket_counts(buckets: Sequence[BucketSummary]) -> np.ndarray:
    """Number of cells per member count: result[k] = cells holding k features."""
    if not buckets:
        return np.zeros(1, dtype=np.int64)
    return np.bincount(np.array([b.feature_count for b in buckets], dtype=np.int64))


def histogram_set_counts(buckets: Sequence[BucketSummary], num_sets: Optional[int] = None) -> np.ndarray:
    """Number of cells per set count: result[k] = cells with members from k sets."""
    if num_sets is None:
        num_sets = max((len(b.entries) for b in buckets), default=0)
    counts = np.zeros(num_sets + 1, dtype=np.int64)
    for bucket in buckets:
        counts[bucket.set_count] += 1
    return counts
