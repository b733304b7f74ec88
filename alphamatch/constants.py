"""Physical constants and default matching tolerances.

This module collects every default used by the feature set matchers so that
the tolerance model, the partitioning engine and the three matching strategies
agree on the same numbers.

Key Features
------------
- Correct PROTON_MASS (1.007276466622 Da, not hydrogen atom mass!)
- Default mass tolerances for absolute (Da) and relative (ppm) matching
- Default elution tolerances for hydrophobicity, retention time and scan number
- Bucket increments and recursion floors for the clustering matchers

Sources
-------
- NIST physical constants: https://physics.nist.gov/cgi-bin/cuu/Value
- msInspect/AMT feature set matcher defaults
"""

# =============================================================================
# Fundamental Physical Constants (NIST values)
# =============================================================================

# Proton mass (NOT hydrogen atom mass!)
# Source: NIST 2018 CODATA
PROTON_MASS = 1.007276466622  # Da

# One million, the ppm denominator
PPM_SCALE = 1e6

# =============================================================================
# Default Mass Tolerances
# =============================================================================

DEFAULT_DELTA_MASS_ABSOLUTE = 0.2  # Da
DEFAULT_DELTA_MASS_PPM = 5.0  # ppm

# =============================================================================
# Default Elution Tolerances
# =============================================================================

# These values depend heavily on the chromatography; tune them per analysis.
DEFAULT_DELTA_SCAN = 3.0  # scans
DEFAULT_DELTA_TIME = 20.0  # seconds
DEFAULT_DELTA_HYDROPHOBICITY = 0.05  # normalized hydrophobicity units

# =============================================================================
# Global Clustering Matcher
# =============================================================================

# Grid of candidate bucket sizes evaluated per axis.
# Complexity grows with num_mass_buckets * num_elution_buckets.
DEFAULT_NUM_MASS_BUCKETS = 4
DEFAULT_NUM_ELUTION_BUCKETS = 4

CLUSTERING_MASS_BUCKET_INCREMENT_DA = 0.05
CLUSTERING_MASS_BUCKET_INCREMENT_PPM = 1.0

CLUSTERING_ELUTION_BUCKET_INCREMENT_HYDROPHOBICITY = 0.05
CLUSTERING_ELUTION_BUCKET_INCREMENT_TIME = 10.0
CLUSTERING_ELUTION_BUCKET_INCREMENT_SCAN = 5.0

# =============================================================================
# Recursive Adaptive Matcher
# =============================================================================

# Step by which tolerances shrink at each recursion level
RECURSIVE_MASS_STEP_DA = 0.05
RECURSIVE_MASS_STEP_PPM = 2.0

RECURSIVE_ELUTION_STEP_HYDROPHOBICITY = 0.01
RECURSIVE_ELUTION_STEP_TIME = 10.0
RECURSIVE_ELUTION_STEP_SCAN = 5.0

# Floors below which a dimension counts as exhausted
DEFAULT_MIN_DELTA_MASS_DA = 0.05
DEFAULT_MIN_DELTA_MASS_PPM = 1.0

DEFAULT_MIN_DELTA_HYDROPHOBICITY = 0.005
DEFAULT_MIN_DELTA_TIME = 10.0
DEFAULT_MIN_DELTA_SCAN = 5.0

# Upper bound on recursion depth tracked by the per-depth diagnostics
DEFAULT_MAX_RECURSION_DEPTH = 100
