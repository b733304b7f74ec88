"""LC-MS feature model and projection onto the matching axes.

This module provides:
- Immutable, identity-compared Feature records
- FeatureSet containers for one acquisition run
- Projection of features to mass / m/z and to an elution coordinate
"""

from .feature import (
    Feature,
    FeatureSet,
)

from .projection import (
    elution_value,
    elution_range_values,
    mass_value,
    project_masses,
    project_elution,
    project_elution_ranges,
)

__all__ = [
    # Feature model
    'Feature',
    'FeatureSet',

    # Projection
    'elution_value',
    'elution_range_values',
    'mass_value',
    'project_masses',
    'project_elution',
    'project_elution_ranges',
]
