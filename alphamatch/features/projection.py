"""Projection of features onto the matching axes.

The mass axis is either the neutral mass or m/z. The elution axis is one of
hydrophobicity, retention time or scan number ("point" elution), or, in scan
mode only, the [first scan, last scan] interval ("range" elution).
"""

from typing import Sequence, Tuple

import numpy as np

from alphamatch.tolerance import ConfigurationError, ElutionMode, coerce_enum
from .feature import Feature


def elution_value(feature: Feature, elution_mode: ElutionMode) -> float:
    """Scalar elution coordinate of a feature.

    Raises:
        ConfigurationError: hydrophobicity requested but not assigned
    """
    if elution_mode == ElutionMode.TIME:
        return float(feature.time)
    if elution_mode == ElutionMode.SCAN:
        return float(feature.scan)
    if elution_mode == ElutionMode.HYDROPHOBICITY:
        if feature.hydrophobicity is None:
            raise ConfigurationError(
                f"Hydrophobicity elution mode requested but {feature!r} has no hydrophobicity"
            )
        return float(feature.hydrophobicity)
    raise ConfigurationError(f"Unsupported elution mode: {elution_mode!r}")


def elution_range_values(feature: Feature, elution_mode: ElutionMode) -> Tuple[float, float]:
    """(first, last) elution interval of a feature.

    Only scan mode has a real interval; other modes collapse to (point, point).
    """
    if elution_mode != ElutionMode.SCAN:
        point = elution_value(feature, elution_mode)
        return point, point
    if not feature.has_scan_range:
        raise ConfigurationError(
            f"Range elution requested but {feature!r} has no valid scan range "
            f"({feature.scan_first}, {feature.scan_last})"
        )
    return float(feature.scan_first), float(feature.scan_last)


def mass_value(feature: Feature, use_mass: bool = True) -> float:
    """Neutral mass, or m/z when use_mass is False."""
    return float(feature.mass) if use_mass else float(feature.mz)


def project_masses(features: Sequence[Feature], use_mass: bool = True) -> np.ndarray:
    return np.array([mass_value(f, use_mass) for f in features], dtype=np.float64)


def project_elution(features: Sequence[Feature], elution_mode) -> np.ndarray:
    elution_mode = coerce_enum(ElutionMode, elution_mode, "elution mode")
    return np.array([elution_value(f, elution_mode) for f in features], dtype=np.float64)


def project_elution_ranges(
    features: Sequence[Feature], elution_mode
) -> Tuple[np.ndarray, np.ndarray]:
    """Arrays of range lower and upper bounds for all features."""
    elution_mode = coerce_enum(ElutionMode, elution_mode, "elution mode")
    lo = np.empty(len(features), dtype=np.float64)
    hi = np.empty(len(features), dtype=np.float64)
    for i, feature in enumerate(features):
        lo[i], hi[i] = elution_range_values(feature, elution_mode)
    return lo, hi
