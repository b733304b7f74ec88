"""Grid partitioning of feature sets for the clustering matchers.

Core algorithm: adaptive largest-gap splitting along mass, then elution,
with PPM-aware cell widths on the mass axis.
"""

from .partition import (
    BucketSummary,
    FeaturePartitioner,
    partition,
    split_sorted_values,
    histogram_bucket_counts,
    histogram_set_counts,
)

__all__ = [
    'BucketSummary',
    'FeaturePartitioner',
    'partition',
    'split_sorted_values',
    'histogram_bucket_counts',
    'histogram_set_counts',
]
