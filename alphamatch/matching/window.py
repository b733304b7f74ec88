"""Windowed nearest-candidate matching.

For every master feature, all slave features inside an (optionally asymmetric)
mass window and an elution window are collected by walking outward from the
master's position in the mass-sorted slave array:

    offsets 0, +1, -1, +2, -2, ...

The mass difference is master - slave. Walking down (lighter slaves) stops
once the difference exceeds the window maximum; walking up stops once it falls
below the window minimum. With a PPM tolerance both bounds are converted at the
master's own mass.

Candidates are kept in probe order (nearest mass first, alternating sides).
The candidate ordering strategy is deliberately not applied.
"""

import logging
from typing import Sequence

import numpy as np
from numba import njit

from alphamatch.features import Feature, project_elution, project_elution_ranges, project_masses
from alphamatch.tolerance import calculate_absolute_delta_mass
from .config import ElutionCompareMode, MatcherConfig
from .result import FeatureMatchingResult

logger = logging.getLogger(__name__)


@njit(cache=True)
def probe_window(
    sorted_masses: np.ndarray,
    sorted_elution_lo: np.ndarray,
    sorted_elution_hi: np.ndarray,
    sorted_charges: np.ndarray,
    master_mass: float,
    master_elution_lo: float,
    master_elution_hi: float,
    master_charge: int,
    abs_min_mass_diff: float,
    abs_max_mass_diff: float,
    min_elution_diff: float,
    max_elution_diff: float,
    use_range: bool,
    same_charge_only: bool,
    out: np.ndarray,
) -> int:
    """Collect slaves inside the window around one master.

    Parameters
    ----------
    sorted_masses : np.ndarray (float64)
        Slave masses, sorted ascending
    sorted_elution_lo, sorted_elution_hi : np.ndarray (float64)
        Slave elution ranges (both equal to the point value in point mode)
    sorted_charges : np.ndarray (int64)
        Slave charges
    master_mass, master_elution_lo, master_elution_hi, master_charge
        Master coordinates
    abs_min_mass_diff, abs_max_mass_diff : float
        Window on master - slave mass, already in Da
    min_elution_diff, max_elution_diff : float
        Window on the elution difference
    use_range : bool
        Use the gap between elution ranges instead of the signed point difference
    same_charge_only : bool
        Reject slaves whose charge differs from the master's
    out : np.ndarray (int64)
        Buffer of at least len(sorted_masses); receives accepted indices

    Returns
    -------
    count : int
        Number of accepted indices written to out, in probe order
    """
    n = len(sorted_masses)
    count = 0

    # First index with mass >= master_mass
    left, right = 0, n
    while left < right:
        mid = (left + right) // 2
        if sorted_masses[mid] < master_mass:
            left = mid + 1
        else:
            right = mid

    up = left
    down = left - 1
    up_done = up >= n
    down_done = down < 0
    going_up = True

    while not (up_done and down_done):
        if going_up and up_done:
            going_up = False
        elif not going_up and down_done:
            going_up = True

        probing_up = going_up
        if probing_up:
            idx = up
            up += 1
            if up >= n:
                up_done = True
        else:
            idx = down
            down -= 1
            if down < 0:
                down_done = True
        # Offset 0 is followed by +1, then directions alternate
        if not (probing_up and idx == left):
            going_up = not going_up

        mass_diff = master_mass - sorted_masses[idx]
        if probing_up and mass_diff < abs_min_mass_diff:
            up_done = True
            continue
        if not probing_up and mass_diff > abs_max_mass_diff:
            down_done = True
            continue
        if mass_diff < abs_min_mass_diff or mass_diff > abs_max_mass_diff:
            continue
        if same_charge_only and sorted_charges[idx] != master_charge:
            continue

        if use_range:
            if sorted_elution_lo[idx] > master_elution_hi:
                elution_diff = sorted_elution_lo[idx] - master_elution_hi
            elif master_elution_lo > sorted_elution_hi[idx]:
                elution_diff = master_elution_lo - sorted_elution_hi[idx]
            else:
                elution_diff = 0.0
        else:
            elution_diff = master_elution_lo - sorted_elution_lo[idx]

        if elution_diff < min_elution_diff or elution_diff > max_elution_diff:
            continue

        out[count] = idx
        count += 1

    return count


def _project_elution_bounds(features: Sequence[Feature], config: MatcherConfig):
    if config.elution_compare_mode == ElutionCompareMode.RANGE:
        return project_elution_ranges(features, config.elution_mode)
    points = project_elution(features, config.elution_mode)
    return points, points


def match_windowed(
    master: Sequence[Feature],
    slave: Sequence[Feature],
    config: MatcherConfig,
) -> FeatureMatchingResult:
    """Match every master feature to all slaves inside the configured window.

    Args:
        master: Features driving the search
        slave: Features supplying candidates
        config: Window bounds (min/max mass and elution differences, in the
            tolerance's units), elution compare mode and same-charge flag

    Returns:
        FeatureMatchingResult with candidates in probe order; masters without
        candidates are absent

    Raises:
        ConfigurationError: a feature lacks the selected elution coordinate or
            (in range mode) a valid scan range
    """
    result = FeatureMatchingResult()
    if len(master) == 0 or len(slave) == 0:
        logger.info(f"Windowed matching skipped: {len(master)} master, {len(slave)} slave features")
        return result

    use_mass = config.use_mass_instead_of_mz
    use_range = config.elution_compare_mode == ElutionCompareMode.RANGE
    min_mass_diff, max_mass_diff = config.mass_window
    min_elution_diff, max_elution_diff = config.elution_window
    tolerance_type = config.tolerance.mass_tolerance_type

    slave_masses = project_masses(slave, use_mass)
    order = np.argsort(slave_masses, kind="mergesort")
    slave_lo, slave_hi = _project_elution_bounds(slave, config)
    slave_charges = np.array([f.charge for f in slave], dtype=np.int64)

    sorted_masses = slave_masses[order]
    sorted_lo = slave_lo[order]
    sorted_hi = slave_hi[order]
    sorted_charges = slave_charges[order]

    master_masses = project_masses(master, use_mass)
    master_lo, master_hi = _project_elution_bounds(master, config)

    buffer = np.empty(len(slave), dtype=np.int64)
    for i, master_feature in enumerate(master):
        mass = master_masses[i]
        count = probe_window(
            sorted_masses, sorted_lo, sorted_hi, sorted_charges,
            mass, master_lo[i], master_hi[i], master_feature.charge,
            calculate_absolute_delta_mass(mass, min_mass_diff, tolerance_type),
            calculate_absolute_delta_mass(mass, max_mass_diff, tolerance_type),
            min_elution_diff, max_elution_diff,
            use_range, config.same_charge_only,
            buffer,
        )
        if count:
            result.put(master_feature, [slave[order[k]] for k in buffer[:count]])

    logger.info(
        f"Windowed matching: {len(result)}/{len(master)} master features matched "
        f"against {len(slave)} slave features"
    )
    return result
