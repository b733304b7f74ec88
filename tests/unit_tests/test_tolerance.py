"""Tests for the tolerance model.

Tests:
- PPM to absolute conversion at the reference mass
- Numba kernel agrees with the Python conversion
- Validation of deltas and enum coercion
- Elution-mode presets
"""

import math
import unittest

from alphamatch.constants import (
    DEFAULT_DELTA_HYDROPHOBICITY,
    DEFAULT_DELTA_MASS_ABSOLUTE,
    DEFAULT_DELTA_MASS_PPM,
    DEFAULT_DELTA_SCAN,
    DEFAULT_DELTA_TIME,
)
from alphamatch.tolerance import (
    ConfigurationError,
    ElutionMode,
    MassToleranceType,
    Tolerance,
    absolute_delta_mass,
    calculate_absolute_delta_mass,
    coerce_enum,
)


class TestAbsoluteDeltaMass(unittest.TestCase):
    """Test PPM to Da conversion."""

    def test_ppm_conversion(self):
        """5 ppm at 1000 Da is 0.005 Da."""
        delta = calculate_absolute_delta_mass(1000.0, 5.0, MassToleranceType.PPM)
        self.assertAlmostEqual(delta, 0.005, places=12)

    def test_ppm_widens_with_mass(self):
        low = calculate_absolute_delta_mass(500.0, 5.0, MassToleranceType.PPM)
        high = calculate_absolute_delta_mass(2000.0, 5.0, MassToleranceType.PPM)
        self.assertAlmostEqual(high, 4 * low, places=12)

    def test_absolute_passthrough(self):
        delta = calculate_absolute_delta_mass(1000.0, 0.2, MassToleranceType.ABSOLUTE)
        self.assertEqual(delta, 0.2)

    def test_negative_bound_keeps_sign(self):
        """Asymmetric window bounds convert linearly, sign included."""
        delta = calculate_absolute_delta_mass(2000.0, -3.0, MassToleranceType.PPM)
        self.assertAlmostEqual(delta, -0.006, places=12)

    def test_numba_kernel_matches_python(self):
        for mass in (100.0, 1000.0, 4321.5):
            for tol in (0.0, 1.0, 5.0, 20.0):
                self.assertAlmostEqual(
                    absolute_delta_mass(mass, tol, True),
                    calculate_absolute_delta_mass(mass, tol, MassToleranceType.PPM),
                    places=12,
                )
                self.assertEqual(absolute_delta_mass(mass, tol, False), tol)


class TestTolerance(unittest.TestCase):
    """Test Tolerance validation and presets."""

    def test_defaults(self):
        tolerance = Tolerance()
        self.assertEqual(tolerance.delta_mass, DEFAULT_DELTA_MASS_PPM)
        self.assertTrue(tolerance.is_ppm)
        self.assertEqual(tolerance.elution_mode, ElutionMode.HYDROPHOBICITY)

    def test_string_enums_accepted(self):
        tolerance = Tolerance(delta_mass=0.1, mass_tolerance_type="Absolute",
                              delta_elution=30.0, elution_mode=" time ")
        self.assertEqual(tolerance.mass_tolerance_type, MassToleranceType.ABSOLUTE)
        self.assertEqual(tolerance.elution_mode, ElutionMode.TIME)
        self.assertFalse(tolerance.is_ppm)

    def test_negative_delta_rejected(self):
        with self.assertRaises(ConfigurationError):
            Tolerance(delta_mass=-1.0)
        with self.assertRaises(ConfigurationError):
            Tolerance(delta_elution=-0.1)

    def test_non_finite_delta_rejected(self):
        with self.assertRaises(ConfigurationError):
            Tolerance(delta_mass=math.inf)
        with self.assertRaises(ConfigurationError):
            Tolerance(delta_elution=math.nan)

    def test_unknown_mode_rejected(self):
        with self.assertRaises(ConfigurationError):
            Tolerance(elution_mode="retention")

    def test_configuration_error_is_value_error(self):
        with self.assertRaises(ValueError):
            coerce_enum(MassToleranceType, "percent", "mass tolerance type")

    def test_absolute_delta_mass_method(self):
        tolerance = Tolerance(delta_mass=10.0, mass_tolerance_type=MassToleranceType.PPM)
        self.assertAlmostEqual(tolerance.absolute_delta_mass(1500.0), 0.015, places=12)

    def test_default_for_each_mode(self):
        scan = Tolerance.default_for(ElutionMode.SCAN)
        time = Tolerance.default_for("time", mass_tolerance_type="absolute")
        hydro = Tolerance.default_for(ElutionMode.HYDROPHOBICITY, delta_mass=2.0)

        self.assertEqual(scan.delta_elution, DEFAULT_DELTA_SCAN)
        self.assertEqual(scan.delta_mass, DEFAULT_DELTA_MASS_PPM)
        self.assertEqual(time.delta_elution, DEFAULT_DELTA_TIME)
        self.assertEqual(time.delta_mass, DEFAULT_DELTA_MASS_ABSOLUTE)
        self.assertEqual(hydro.delta_elution, DEFAULT_DELTA_HYDROPHOBICITY)
        self.assertEqual(hydro.delta_mass, 2.0)

    def test_frozen(self):
        tolerance = Tolerance()
        with self.assertRaises(AttributeError):
            tolerance.delta_mass = 1.0


if __name__ == '__main__':
    unittest.main()
