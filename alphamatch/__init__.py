"""AlphaMatch - Tolerance-based matching of LC-MS feature sets.

Matches the features of a "master" run against those of a "slave" run in
mass × elution space, producing for every master feature a ranked list of
candidate slave features. Three strategies are available: windowed search,
global grid clustering and recursive adaptive clustering.

Hot loops (window probing, grid splitting) are Numba-compiled.
"""

__version__ = "0.1.0"

# Import main submodules for convenient access
from alphamatch import features
from alphamatch import clustering
from alphamatch import matching

from alphamatch.tolerance import (
    ConfigurationError,
    ElutionMode,
    MassToleranceType,
    Tolerance,
    calculate_absolute_delta_mass,
)
from alphamatch.features import Feature, FeatureSet
from alphamatch.matching import (
    ElutionCompareMode,
    FeatureMatchingResult,
    MatcherConfig,
    MatcherKind,
    OrderingMode,
    match_features,
    match_global_cluster,
    match_recursive_adaptive,
    match_windowed,
    order_candidates,
)

__all__ = [
    "features",
    "clustering",
    "matching",
    # Tolerance model
    "ConfigurationError",
    "ElutionMode",
    "MassToleranceType",
    "Tolerance",
    "calculate_absolute_delta_mass",
    # Feature model
    "Feature",
    "FeatureSet",
    # Matching
    "ElutionCompareMode",
    "FeatureMatchingResult",
    "MatcherConfig",
    "MatcherKind",
    "OrderingMode",
    "match_features",
    "match_global_cluster",
    "match_recursive_adaptive",
    "match_windowed",
    "order_candidates",
]
