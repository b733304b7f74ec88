"""Global clustering matcher.

Chooses one (mass, elution) bucket size pair from a small candidate grid, then
partitions master and slave features once:

- cell with one master and one slave: direct match
- cell with more members from either set: every master of the cell gets all
  slaves of the cell, ranked by the ordering strategy
- cell with members from one set only: unmatched

Candidate sizes per axis step down from the configured tolerance by a fixed
increment, e.g. 5 ppm with increment 1 and 4 buckets gives 2, 3, 4, 5 ppm.
The pair producing the most clean 1:1 cells is used.
"""

import logging
from typing import List, Sequence

import numpy as np

from alphamatch.clustering import BucketSummary, FeaturePartitioner
from alphamatch.features import Feature
from alphamatch.tolerance import ConfigurationError
from .config import MatcherConfig
from .ordering import order_candidates
from .result import FeatureMatchingResult

logger = logging.getLogger(__name__)

MASTER_SET = 0
SLAVE_SET = 1


def calculate_buckets(num_buckets: int, increment: float, max_bucket: float) -> List[float]:
    """Candidate bucket sizes ending at max_bucket, ascending.

    Sizes are max_bucket - k * increment for k = num_buckets - 1 ... 0; sizes
    that would not be positive are left out, so max_bucket itself is always
    included (unless it is 0, in which case [0.0] is returned).

    Examples:
        >>> calculate_buckets(4, 1.0, 5.0)
        [2.0, 3.0, 4.0, 5.0]
        >>> calculate_buckets(4, 0.05, 0.1)
        [0.05, 0.1]
    """
    if num_buckets < 1:
        raise ConfigurationError(f"num_buckets must be >= 1, got {num_buckets}")
    if max_bucket <= 0:
        return [0.0]
    sizes = [max_bucket - k * increment for k in range(num_buckets - 1, -1, -1)]
    return [float(size) for size in sizes if size > 0]


def resolve_bucket(
    bucket: BucketSummary,
    result: FeatureMatchingResult,
    config: MatcherConfig,
) -> bool:
    """Record the matches of one two-set cell.

    Returns:
        True for a clean 1:1 cell, False for a conflict cell
    """
    masters = bucket.get_set_features(MASTER_SET)
    slaves = bucket.get_set_features(SLAVE_SET)
    if len(masters) == 1 and len(slaves) == 1:
        result.put(masters[0], slaves)
        return True

    for master_feature in masters:
        result.put(
            master_feature,
            order_candidates(slaves, master_feature, config.ordering_mode, config.elution_mode),
        )
    return False


def match_global_cluster(
    master: Sequence[Feature],
    slave: Sequence[Feature],
    config: MatcherConfig,
) -> FeatureMatchingResult:
    """Match master to slave features with a single best-sized partition.

    Args:
        master: Features to find matches for
        slave: Features supplying candidates
        config: Tolerance (largest bucket sizes), bucket counts and increments,
            ordering mode

    Returns:
        FeatureMatchingResult; diagnostics hold the chosen bucket sizes, the
        evaluated score grid and the clean/conflict cell counts
    """
    result = FeatureMatchingResult()
    if len(master) == 0 or len(slave) == 0:
        logger.info(
            f"Global clustering skipped: {len(master)} master, {len(slave)} slave features"
        )
        return result

    tolerance = config.tolerance
    mass_buckets = calculate_buckets(
        config.num_mass_buckets, config.resolved_mass_bucket_increment, tolerance.delta_mass
    )
    elution_buckets = calculate_buckets(
        config.num_elution_buckets, config.resolved_elution_bucket_increment, tolerance.delta_elution
    )

    partitioner = FeaturePartitioner(
        [master, slave],
        elution_mode=config.elution_mode,
        use_mass=config.use_mass_instead_of_mz,
        ppm_aware=config.is_ppm,
    )
    best_mass, best_elution, scores = partitioner.calculate_best_buckets(
        mass_buckets, elution_buckets
    )
    logger.debug(f"Chosen bucket sizes: mass={best_mass}, elution={best_elution}")

    clean = 0
    conflicts = 0
    for bucket in partitioner.split(best_mass, best_elution):
        if bucket.set_count < 2:
            continue
        if resolve_bucket(bucket, result, config):
            clean += 1
        else:
            conflicts += 1

    result.diagnostics.update(
        mass_bucket_size=best_mass,
        elution_bucket_size=best_elution,
        mass_bucket_candidates=np.asarray(mass_buckets),
        elution_bucket_candidates=np.asarray(elution_buckets),
        bucket_scores=scores,
        one_to_one_cells=clean,
        conflict_cells=conflicts,
    )
    logger.info(
        f"Global clustering: {len(result)}/{len(master)} master features matched "
        f"({clean} one-to-one cells, {conflicts} conflict cells)"
    )
    return result
