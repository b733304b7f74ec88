"""Matcher configuration.

One immutable MatcherConfig carries everything any of the three matching
strategies needs. Knobs that a strategy does not use are ignored by it, and
knobs left as None resolve to defaults that depend on the tolerance's mass
tolerance type and elution mode (see the resolved_* properties).
"""

import math
import numbers
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from alphamatch.constants import (
    CLUSTERING_ELUTION_BUCKET_INCREMENT_HYDROPHOBICITY,
    CLUSTERING_ELUTION_BUCKET_INCREMENT_SCAN,
    CLUSTERING_ELUTION_BUCKET_INCREMENT_TIME,
    CLUSTERING_MASS_BUCKET_INCREMENT_DA,
    CLUSTERING_MASS_BUCKET_INCREMENT_PPM,
    DEFAULT_MAX_RECURSION_DEPTH,
    DEFAULT_MIN_DELTA_HYDROPHOBICITY,
    DEFAULT_MIN_DELTA_MASS_DA,
    DEFAULT_MIN_DELTA_MASS_PPM,
    DEFAULT_MIN_DELTA_SCAN,
    DEFAULT_MIN_DELTA_TIME,
    DEFAULT_NUM_ELUTION_BUCKETS,
    DEFAULT_NUM_MASS_BUCKETS,
    RECURSIVE_ELUTION_STEP_HYDROPHOBICITY,
    RECURSIVE_ELUTION_STEP_SCAN,
    RECURSIVE_ELUTION_STEP_TIME,
    RECURSIVE_MASS_STEP_DA,
    RECURSIVE_MASS_STEP_PPM,
)
from alphamatch.tolerance import (
    ConfigurationError,
    ElutionMode,
    MassToleranceType,
    Tolerance,
    coerce_enum,
)


class OrderingMode(Enum):
    """How candidate lists are ranked, best first."""
    BY_QUALITY = "quality"                      # larger quality first
    BY_ELUTION_CLOSENESS = "elution_closeness"  # smaller |elution diff| first


class MatcherKind(Enum):
    """Top-level matching algorithm."""
    WINDOWED = "windowed"
    GLOBAL_CLUSTERING = "global_clustering"
    RECURSIVE_ADAPTIVE = "recursive_adaptive"


class ElutionCompareMode(Enum):
    """Compare elution as apex points or as [first, last] scan ranges."""
    POINT = "point"
    RANGE = "range"  # scan mode only


_ELUTION_BUCKET_INCREMENTS = {
    ElutionMode.HYDROPHOBICITY: CLUSTERING_ELUTION_BUCKET_INCREMENT_HYDROPHOBICITY,
    ElutionMode.TIME: CLUSTERING_ELUTION_BUCKET_INCREMENT_TIME,
    ElutionMode.SCAN: CLUSTERING_ELUTION_BUCKET_INCREMENT_SCAN,
}

_ELUTION_STEPS = {
    ElutionMode.HYDROPHOBICITY: RECURSIVE_ELUTION_STEP_HYDROPHOBICITY,
    ElutionMode.TIME: RECURSIVE_ELUTION_STEP_TIME,
    ElutionMode.SCAN: RECURSIVE_ELUTION_STEP_SCAN,
}

_MIN_DELTA_ELUTION = {
    ElutionMode.HYDROPHOBICITY: DEFAULT_MIN_DELTA_HYDROPHOBICITY,
    ElutionMode.TIME: DEFAULT_MIN_DELTA_TIME,
    ElutionMode.SCAN: DEFAULT_MIN_DELTA_SCAN,
}


def _check_optional(value: Optional[float], name: str, positive: bool = False) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value}")
    if positive and value <= 0:
        raise ConfigurationError(f"{name} must be > 0, got {value}")
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


def _check_count(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    if not math.isfinite(value) or int(value) != value or value < 1:
        raise ConfigurationError(f"{name} must be a positive integer, got {value}")
    return int(value)


def max_safe_recursion_depth() -> int:
    """Deepest recursive matching level that stays clear of the interpreter recursion limit."""
    return sys.getrecursionlimit() // 4


def _check_window_bound(value: Optional[float], name: str) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    if math.isnan(value):
        raise ConfigurationError(f"{name} must not be NaN")
    return value


@dataclass(frozen=True)
class MatcherConfig:
    """Parameters for matching a master feature set against a slave set.

    Args:
        tolerance: Mass and elution tolerance shared by all strategies
        ordering_mode: Ranking of candidate lists (clustering matchers)
        matcher_kind: Strategy used by match_features()
        min_mass_diff, max_mass_diff: Window on master - slave mass, Da or ppm
            as per the tolerance (windowed matcher). None = ∓delta_mass.
        min_elution_diff, max_elution_diff: Window on the elution difference
            (windowed matcher). None = ∓delta_elution. Infinite bounds are allowed.
        num_mass_buckets, num_elution_buckets: Candidate bucket sizes tried per
            axis (global clustering matcher)
        mass_bucket_increment, elution_bucket_increment: Spacing of candidate
            bucket sizes. None = mode-specific default.
        min_delta_mass, min_delta_elution: Floors of the recursive matcher.
            None = mode-specific default.
        mass_step_down, elution_step_down: Per-level tolerance decrease of the
            recursive matcher. None = mode-specific default.
        max_recursion_depth: Deepest level the recursive matcher may reach
        same_charge_only: Only accept slaves of the master's charge (windowed)
        elution_compare_mode: POINT or RANGE elution comparison (windowed)
        use_mass_instead_of_mz: Match on neutral mass (True) or m/z (False)
    """

    tolerance: Tolerance = field(default_factory=Tolerance)
    ordering_mode: OrderingMode = OrderingMode.BY_ELUTION_CLOSENESS
    matcher_kind: MatcherKind = MatcherKind.WINDOWED

    # Windowed matcher
    min_mass_diff: Optional[float] = None
    max_mass_diff: Optional[float] = None
    min_elution_diff: Optional[float] = None
    max_elution_diff: Optional[float] = None
    same_charge_only: bool = False
    elution_compare_mode: ElutionCompareMode = ElutionCompareMode.POINT

    # Global clustering matcher
    num_mass_buckets: int = DEFAULT_NUM_MASS_BUCKETS
    num_elution_buckets: int = DEFAULT_NUM_ELUTION_BUCKETS
    mass_bucket_increment: Optional[float] = None
    elution_bucket_increment: Optional[float] = None

    # Recursive adaptive matcher
    min_delta_mass: Optional[float] = None
    min_delta_elution: Optional[float] = None
    mass_step_down: Optional[float] = None
    elution_step_down: Optional[float] = None
    max_recursion_depth: int = DEFAULT_MAX_RECURSION_DEPTH

    use_mass_instead_of_mz: bool = True

    def __post_init__(self):
        if not isinstance(self.tolerance, Tolerance):
            raise ConfigurationError(f"tolerance must be a Tolerance, got {self.tolerance!r}")

        object.__setattr__(
            self, "ordering_mode", coerce_enum(OrderingMode, self.ordering_mode, "ordering mode")
        )
        object.__setattr__(
            self, "matcher_kind", coerce_enum(MatcherKind, self.matcher_kind, "matcher kind")
        )
        object.__setattr__(
            self,
            "elution_compare_mode",
            coerce_enum(ElutionCompareMode, self.elution_compare_mode, "elution compare mode"),
        )

        for name in ("min_mass_diff", "max_mass_diff", "min_elution_diff", "max_elution_diff"):
            object.__setattr__(self, name, _check_window_bound(getattr(self, name), name))
        for axis, (lo, hi) in (("mass", self.mass_window), ("elution", self.elution_window)):
            if lo > hi:
                raise ConfigurationError(f"Empty {axis} window: min {lo} > max {hi}")

        for name in ("num_mass_buckets", "num_elution_buckets", "max_recursion_depth"):
            object.__setattr__(self, name, _check_count(getattr(self, name), name))
        if self.max_recursion_depth > max_safe_recursion_depth():
            raise ConfigurationError(
                f"max_recursion_depth={self.max_recursion_depth} exceeds "
                f"{max_safe_recursion_depth()}, the safe limit for the interpreter recursion limit"
            )

        for name in ("mass_bucket_increment", "elution_bucket_increment",
                     "mass_step_down", "elution_step_down"):
            object.__setattr__(self, name, _check_optional(getattr(self, name), name, positive=True))

        for name in ("min_delta_mass", "min_delta_elution"):
            object.__setattr__(self, name, _check_optional(getattr(self, name), name))

        if self.elution_compare_mode == ElutionCompareMode.RANGE \
                and self.tolerance.elution_mode != ElutionMode.SCAN:
            raise ConfigurationError(
                f"Range elution comparison requires scan elution mode, "
                f"not {self.tolerance.elution_mode.value}"
            )

    @classmethod
    def for_elution_mode(
        cls,
        elution_mode,
        mass_tolerance_type=MassToleranceType.PPM,
        delta_mass: Optional[float] = None,
        delta_elution: Optional[float] = None,
        **kwargs,
    ) -> 'MatcherConfig':
        """Create a configuration with defaults appropriate for an elution mode.

        Args:
            elution_mode: HYDROPHOBICITY, TIME or SCAN (or their string values)
            mass_tolerance_type: ABSOLUTE or PPM
            delta_mass: Override for the default mass tolerance
            delta_elution: Override for the default elution tolerance
            **kwargs: Any other MatcherConfig field

        Returns:
            MatcherConfig built around Tolerance.default_for(...)
        """
        tolerance = Tolerance.default_for(
            elution_mode,
            mass_tolerance_type=mass_tolerance_type,
            delta_mass=delta_mass,
            delta_elution=delta_elution,
        )
        return cls(tolerance=tolerance, **kwargs)

    # -------------------------------------------------------------------------
    # Resolved values
    # -------------------------------------------------------------------------

    @property
    def elution_mode(self) -> ElutionMode:
        return self.tolerance.elution_mode

    @property
    def is_ppm(self) -> bool:
        return self.tolerance.is_ppm

    @property
    def mass_window(self):
        """(min, max) bounds on master - slave mass, in tolerance units."""
        lo = -self.tolerance.delta_mass if self.min_mass_diff is None else self.min_mass_diff
        hi = self.tolerance.delta_mass if self.max_mass_diff is None else self.max_mass_diff
        return lo, hi

    @property
    def elution_window(self):
        lo = -self.tolerance.delta_elution if self.min_elution_diff is None else self.min_elution_diff
        hi = self.tolerance.delta_elution if self.max_elution_diff is None else self.max_elution_diff
        return lo, hi

    @property
    def resolved_mass_bucket_increment(self) -> float:
        if self.mass_bucket_increment is not None:
            return self.mass_bucket_increment
        if self.is_ppm:
            return CLUSTERING_MASS_BUCKET_INCREMENT_PPM
        return CLUSTERING_MASS_BUCKET_INCREMENT_DA

    @property
    def resolved_elution_bucket_increment(self) -> float:
        if self.elution_bucket_increment is not None:
            return self.elution_bucket_increment
        return _ELUTION_BUCKET_INCREMENTS[self.elution_mode]

    @property
    def resolved_min_delta_mass(self) -> float:
        if self.min_delta_mass is not None:
            return self.min_delta_mass
        return DEFAULT_MIN_DELTA_MASS_PPM if self.is_ppm else DEFAULT_MIN_DELTA_MASS_DA

    @property
    def resolved_min_delta_elution(self) -> float:
        if self.min_delta_elution is not None:
            return self.min_delta_elution
        return _MIN_DELTA_ELUTION[self.elution_mode]

    @property
    def resolved_mass_step_down(self) -> float:
        if self.mass_step_down is not None:
            return self.mass_step_down
        return RECURSIVE_MASS_STEP_PPM if self.is_ppm else RECURSIVE_MASS_STEP_DA

    @property
    def resolved_elution_step_down(self) -> float:
        if self.elution_step_down is not None:
            return self.elution_step_down
        return _ELUTION_STEPS[self.elution_mode]
