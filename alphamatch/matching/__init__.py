"""Feature set matching strategies.

Three alternative algorithms share one configuration and one result type:
1. Windowed: outward probe through the mass-sorted slave set
2. Global clustering: one partition at the best of a small grid of bucket sizes
3. Recursive adaptive: partition, then re-partition conflict cells at
   stepwise tighter tolerances
"""

from .config import (
    MatcherConfig,
    MatcherKind,
    OrderingMode,
    ElutionCompareMode,
    max_safe_recursion_depth,
)

from .ordering import (
    order_candidates,
    candidate_sort_key,
)

from .result import FeatureMatchingResult

from .window import (
    match_windowed,
    probe_window,
)

from .global_cluster import (
    match_global_cluster,
    calculate_buckets,
)

from .recursive import (
    match_recursive_adaptive,
    RecursiveMatcher,
)

from .engine import match_features

__all__ = [
    # Configuration
    'MatcherConfig',
    'MatcherKind',
    'OrderingMode',
    'ElutionCompareMode',
    'max_safe_recursion_depth',

    # Ordering
    'order_candidates',
    'candidate_sort_key',

    # Result
    'FeatureMatchingResult',

    # Windowed matcher
    'match_windowed',
    'probe_window',

    # Global clustering matcher
    'match_global_cluster',
    'calculate_buckets',

    # Recursive adaptive matcher
    'match_recursive_adaptive',
    'RecursiveMatcher',

    # Dispatch
    'match_features',
]
