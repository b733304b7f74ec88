"""Recursive adaptive matcher.

Partitions master and slave features at the configured tolerance, accepts the
clean 1:1 cells and re-partitions only the conflict cells with tolerances
reduced by a fixed step, until a floor is reached:

    depth 1: 5 ppm, 0.05      (clean cells matched, conflicts recurse)
    depth 2: 3 ppm, 0.04
    depth 3: 1 ppm, 0.03
    ...

Each tolerance is clamped to its floor once it drops below it, and that
dimension is then exhausted. When both are exhausted the recursion stops and
the conflict is resolved one level up by ranking all slaves of the cell for
each of its masters.

Shrinking linearly instead of halving is an approximation of hierarchical
clustering; it converges in at most ceil((delta - floor) / step) + 1 levels
per dimension.
"""

import logging
from typing import Dict, List, Sequence

from alphamatch.clustering import FeaturePartitioner
from alphamatch.features import Feature
from alphamatch.tolerance import ConfigurationError
from .config import MatcherConfig
from .ordering import order_candidates
from .result import FeatureMatchingResult

logger = logging.getLogger(__name__)

MASTER_SET = 0
SLAVE_SET = 1


class RecursiveMatcher:
    """State of one recursive matching call.

    Attributes:
        matched_at_depth: Depth -> number of masters resolved at that depth
        conflict_cells: Number of conflict cells met at any depth
        calls: Number of recursively_match invocations
        max_depth_reached: Deepest level visited
    """

    def __init__(self, config: MatcherConfig):
        self.config = config
        self.min_delta_mass = config.resolved_min_delta_mass
        self.min_delta_elution = config.resolved_min_delta_elution
        self.mass_step_down = config.resolved_mass_step_down
        self.elution_step_down = config.resolved_elution_step_down
        self.max_depth = config.max_recursion_depth

        self.matched_at_depth: Dict[int, int] = {}
        self.conflict_cells = 0
        self.calls = 0
        self.max_depth_reached = 0

    def _record(self, depth: int, count: int = 1) -> None:
        self.matched_at_depth[depth] = self.matched_at_depth.get(depth, 0) + count

    def _rank_all(
        self,
        result: FeatureMatchingResult,
        masters: List[Feature],
        slaves: List[Feature],
        depth: int,
    ) -> None:
        for master_feature in masters:
            result.put(
                master_feature,
                order_candidates(
                    slaves, master_feature, self.config.ordering_mode, self.config.elution_mode
                ),
            )
        self._record(depth, len(masters))

    def recursively_match(
        self,
        master_subset: Sequence[Feature],
        slave_subset: Sequence[Feature],
        current_delta_mass: float,
        current_delta_elution: float,
        depth: int,
    ) -> FeatureMatchingResult:
        """Match a subset of features at the given tolerances.

        Args:
            master_subset: Master features of the region being refined
            slave_subset: Slave features of the region being refined
            current_delta_mass: Mass bucket size at this level (Da or ppm)
            current_delta_elution: Elution bucket size at this level
            depth: Recursion level, 1 for the top call

        Returns:
            Matches found in this region (empty once both tolerances are exhausted)

        Raises:
            ConfigurationError: depth exceeds max_recursion_depth
        """
        if depth > self.max_depth:
            raise ConfigurationError(
                f"Recursion depth {depth} exceeds max_recursion_depth={self.max_depth}; "
                f"increase the step-downs or the floors"
            )
        self.calls += 1
        self.max_depth_reached = max(self.max_depth_reached, depth)

        mass_exhausted = False
        if current_delta_mass < self.min_delta_mass:
            current_delta_mass = self.min_delta_mass
            mass_exhausted = True
        elution_exhausted = False
        if current_delta_elution < self.min_delta_elution:
            current_delta_elution = self.min_delta_elution
            elution_exhausted = True

        result = FeatureMatchingResult()
        if mass_exhausted and elution_exhausted:
            return result

        partitioner = FeaturePartitioner(
            [master_subset, slave_subset],
            elution_mode=self.config.elution_mode,
            use_mass=self.config.use_mass_instead_of_mz,
            ppm_aware=self.config.is_ppm,
        )

        for bucket in partitioner.split(current_delta_mass, current_delta_elution):
            if bucket.set_count < 2:
                continue

            masters = bucket.get_set_features(MASTER_SET)
            slaves = bucket.get_set_features(SLAVE_SET)
            if len(masters) == 1 and len(slaves) == 1:
                result.put(masters[0], slaves)
                self._record(depth)
                continue

            self.conflict_cells += 1
            sub_result = self.recursively_match(
                masters,
                slaves,
                current_delta_mass - self.mass_step_down,
                current_delta_elution - self.elution_step_down,
                depth + 1,
            )

            if len(sub_result) == 0:
                self._rank_all(result, masters, slaves, depth)
                continue

            result.update(sub_result)
            consumed_slaves = {id(f) for f in sub_result.slave_features()}
            unmatched_masters = [m for m in masters if m not in sub_result]
            if unmatched_masters and any(id(s) not in consumed_slaves for s in slaves):
                # Rank against the whole cell, not only the leftovers
                self._rank_all(result, unmatched_masters, slaves, depth)

        return result


def match_recursive_adaptive(
    master: Sequence[Feature],
    slave: Sequence[Feature],
    config: MatcherConfig,
) -> FeatureMatchingResult:
    """Match master to slave features by recursive tolerance refinement.

    Args:
        master: Features to find matches for
        slave: Features supplying candidates
        config: Tolerance (starting bucket sizes), floors, step-downs,
            max_recursion_depth and ordering mode

    Returns:
        FeatureMatchingResult; diagnostics hold matched_at_depth (depth ->
        masters resolved there), the conflict cell count and the call count

    Raises:
        ConfigurationError: recursion deeper than config.max_recursion_depth
    """
    matcher = RecursiveMatcher(config)
    if len(master) == 0 or len(slave) == 0:
        result = FeatureMatchingResult()
        logger.info(
            f"Recursive matching skipped: {len(master)} master, {len(slave)} slave features"
        )
    else:
        result = matcher.recursively_match(
            master,
            slave,
            config.tolerance.delta_mass,
            config.tolerance.delta_elution,
            1,
        )

    matched_at_depth = dict(sorted(matcher.matched_at_depth.items()))
    for depth, count in matched_at_depth.items():
        logger.debug(f"Depth {depth}: {count} master features matched")

    result.diagnostics.update(
        matched_at_depth=matched_at_depth,
        conflict_cells=matcher.conflict_cells,
        recursive_calls=matcher.calls,
        max_depth_reached=matcher.max_depth_reached,
    )
    logger.info(
        f"Recursive matching: {len(result)}/{len(master)} master features matched "
        f"in {matcher.calls} partitioning calls"
    )
    return result
