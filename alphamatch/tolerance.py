"""Mass and elution tolerance model.

A tolerance pairs a mass window (absolute Daltons or parts-per-million) with an
elution window expressed in one of three elution coordinates (hydrophobicity,
retention time or scan number).

PPM tolerances widen with mass, so they must be converted to an absolute delta
at the mass of the feature doing the querying:

    abs_delta = reference_mass * ppm / 1e6

Examples
--------
>>> from alphamatch.tolerance import MassToleranceType, calculate_absolute_delta_mass
>>> calculate_absolute_delta_mass(1000.0, 5.0, MassToleranceType.PPM)
0.005
>>> calculate_absolute_delta_mass(1000.0, 0.2, MassToleranceType.ABSOLUTE)
0.2
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Type, TypeVar

from numba import njit

from .constants import (
    PPM_SCALE,
    DEFAULT_DELTA_MASS_ABSOLUTE,
    DEFAULT_DELTA_MASS_PPM,
    DEFAULT_DELTA_SCAN,
    DEFAULT_DELTA_TIME,
    DEFAULT_DELTA_HYDROPHOBICITY,
)


class ConfigurationError(ValueError):
    """Raised for unsupported or contradictory matching settings."""


class MassToleranceType(Enum):
    """How a mass tolerance is expressed."""
    ABSOLUTE = "absolute"  # Daltons
    PPM = "ppm"            # parts per million of the reference mass


class ElutionMode(Enum):
    """Which elution coordinate is used for matching."""
    HYDROPHOBICITY = "hydrophobicity"
    TIME = "time"
    SCAN = "scan"


E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: Type[E], value, name: str) -> E:
    """Accept an enum member or its string value, raise ConfigurationError otherwise."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower().strip())
    except ValueError:
        allowed = ", ".join(repr(member.value) for member in enum_cls)
        raise ConfigurationError(
            f"Unsupported {name}: {value!r} (expected one of {allowed})"
        ) from None


def calculate_absolute_delta_mass(
    center_mass: float,
    delta_mass: float,
    mass_tolerance_type: MassToleranceType,
) -> float:
    """Convert a mass tolerance to Daltons at a given reference mass.

    Args:
        center_mass: Reference mass (Da), normally the querying feature's mass
        delta_mass: Tolerance, in Da or ppm depending on mass_tolerance_type
        mass_tolerance_type: ABSOLUTE or PPM

    Returns:
        Absolute tolerance in Da
    """
    if mass_tolerance_type == MassToleranceType.ABSOLUTE:
        return delta_mass
    return center_mass * delta_mass / PPM_SCALE


@njit(cache=True)
def absolute_delta_mass(center_mass: float, delta_mass: float, is_ppm: bool) -> float:
    """Numba twin of calculate_absolute_delta_mass for use inside kernels."""
    if is_ppm:
        return center_mass * delta_mass / 1e6
    return delta_mass


def _check_delta(value: float, name: str) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value}")
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


def default_delta_elution(elution_mode: ElutionMode) -> float:
    """Default elution tolerance for an elution mode."""
    elution_mode = coerce_enum(ElutionMode, elution_mode, "elution mode")
    if elution_mode == ElutionMode.SCAN:
        return DEFAULT_DELTA_SCAN
    if elution_mode == ElutionMode.TIME:
        return DEFAULT_DELTA_TIME
    return DEFAULT_DELTA_HYDROPHOBICITY


def default_delta_mass(mass_tolerance_type: MassToleranceType) -> float:
    """Default mass tolerance for a tolerance type."""
    mass_tolerance_type = coerce_enum(MassToleranceType, mass_tolerance_type, "mass tolerance type")
    if mass_tolerance_type == MassToleranceType.PPM:
        return DEFAULT_DELTA_MASS_PPM
    return DEFAULT_DELTA_MASS_ABSOLUTE


@dataclass(frozen=True)
class Tolerance:
    """Mass and elution tolerance used by every matcher.

    Deltas must be finite and non-negative. Enum fields also accept their
    string values ("ppm", "time", ...).
    """

    delta_mass: float = DEFAULT_DELTA_MASS_PPM
    mass_tolerance_type: MassToleranceType = MassToleranceType.PPM
    delta_elution: float = DEFAULT_DELTA_HYDROPHOBICITY
    elution_mode: ElutionMode = ElutionMode.HYDROPHOBICITY

    def __post_init__(self):
        object.__setattr__(self, "delta_mass", _check_delta(self.delta_mass, "delta_mass"))
        object.__setattr__(self, "delta_elution", _check_delta(self.delta_elution, "delta_elution"))
        object.__setattr__(
            self,
            "mass_tolerance_type",
            coerce_enum(MassToleranceType, self.mass_tolerance_type, "mass tolerance type"),
        )
        object.__setattr__(
            self,
            "elution_mode",
            coerce_enum(ElutionMode, self.elution_mode, "elution mode"),
        )

    @property
    def is_ppm(self) -> bool:
        return self.mass_tolerance_type == MassToleranceType.PPM

    def absolute_delta_mass(self, reference_mass: float) -> float:
        """Mass tolerance in Da at the given reference mass."""
        return calculate_absolute_delta_mass(reference_mass, self.delta_mass, self.mass_tolerance_type)

    @classmethod
    def default_for(
        cls,
        elution_mode: ElutionMode,
        mass_tolerance_type: MassToleranceType = MassToleranceType.PPM,
        delta_mass: Optional[float] = None,
        delta_elution: Optional[float] = None,
    ) -> 'Tolerance':
        """Create a tolerance with defaults appropriate for an elution mode.

        Args:
            elution_mode: Elution coordinate to match on
            mass_tolerance_type: ABSOLUTE (Da) or PPM
            delta_mass: Override for the default mass tolerance
            delta_elution: Override for the default elution tolerance

        Returns:
            Tolerance with mode-specific defaults
        """
        return cls(
            delta_mass=default_delta_mass(mass_tolerance_type) if delta_mass is None else delta_mass,
            mass_tolerance_type=mass_tolerance_type,
            delta_elution=default_delta_elution(elution_mode) if delta_elution is None else delta_elution,
            elution_mode=elution_mode,
        )
