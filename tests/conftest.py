"""Pytest configuration for AlphaMatch tests.

This module provides common fixtures and configuration for all tests.
All matching is pure in-memory computation, so fixtures only build
feature sets and configurations.
"""

import numpy as np
import pytest

from alphamatch.features import Feature, FeatureSet
from alphamatch.matching import MatcherConfig
from alphamatch.tolerance import Tolerance


@pytest.fixture
def ppm_tolerance():
    """5 ppm, 0.05 hydrophobicity units."""
    return Tolerance(delta_mass=5.0, mass_tolerance_type="ppm",
                     delta_elution=0.05, elution_mode="hydrophobicity")


@pytest.fixture
def single_pair():
    """One master and one slave feature 0.5 ppm and 0.01 units apart."""
    master = FeatureSet([Feature(mass=1000.0, hydrophobicity=10.0, feature_id="m0")], name="master")
    slave = FeatureSet([Feature(mass=1000.0005, hydrophobicity=10.01, feature_id="s0")], name="slave")
    return master, slave


@pytest.fixture
def shared_slave():
    """Two masters within tolerance of each other and of a single slave."""
    master = FeatureSet([
        Feature(mass=1000.0, hydrophobicity=10.0, feature_id="m0"),
        Feature(mass=1000.001, hydrophobicity=10.0, feature_id="m1"),
    ])
    slave = FeatureSet([Feature(mass=1000.0005, hydrophobicity=10.0, feature_id="s0")])
    return master, slave


@pytest.fixture
def paired_feature_sets():
    """50 well separated masters, each with a slave shifted by < 1 ppm.

    Masters are 10 Da and 1 hydrophobicity unit apart, so every pair forms
    its own cluster at any tolerance used in the tests.
    """
    rng = np.random.default_rng(42)
    n = 50
    masses = 800.0 + 10.0 * np.arange(n)
    hydrophobicities = 5.0 + 1.0 * np.arange(n)
    rng.shuffle(hydrophobicities)

    master = []
    slave = []
    for i in range(n):
        mass = float(masses[i])
        h = float(hydrophobicities[i])
        master.append(Feature(mass=mass, hydrophobicity=h, quality=1.0, feature_id=f"m{i}"))
        slave.append(Feature(
            mass=mass * (1 + rng.uniform(-0.8e-6, 0.8e-6)),
            hydrophobicity=h + rng.uniform(-0.01, 0.01),
            quality=1.0,
            feature_id=f"s{i}",
        ))
    return FeatureSet(master, name="master"), FeatureSet(slave, name="slave")


@pytest.fixture
def clustering_config():
    """Default 5 ppm / 0.05 hydrophobicity configuration."""
    return MatcherConfig.for_elution_mode("hydrophobicity", delta_mass=5.0, delta_elution=0.05)


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
