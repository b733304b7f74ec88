"""
Feature and FeatureSet containers.

A feature is a single detected LC-MS point: a monoisotopic neutral mass, its
m/z and charge, up to three elution coordinates (hydrophobicity, retention
time, scan number, plus an optional first/last scan range) and a quality score.

Features are immutable and compared by identity: two features with identical
coordinates are still two different features, which is what the matchers need
when the same mass shows up twice in a run.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Union

from alphamatch.constants import PROTON_MASS

# Feature fields that may be absent; the rest need a value in every row
_OPTIONAL_COLUMNS = ("hydrophobicity", "scan_first", "scan_last", "feature_id")


@dataclass(frozen=True, eq=False)
class Feature:
    """A detected MS1 feature.

    Attributes:
        mass: Monoisotopic neutral mass (Da)
        mz: Mass-to-charge ratio
        charge: Charge state, 0 if unknown
        time: Retention time (seconds)
        scan: Apex scan number
        hydrophobicity: Observed hydrophobicity, None if not assigned
        scan_first: First scan of the elution profile, None if unknown
        scan_last: Last scan of the elution profile, None if unknown
        quality: Intrinsic goodness score (larger = better)
        feature_id: Optional label carried through for reporting
    """

    mass: float
    mz: float = 0.0
    charge: int = 0
    time: float = 0.0
    scan: int = 0
    hydrophobicity: Optional[float] = None
    scan_first: Optional[int] = None
    scan_last: Optional[int] = None
    quality: float = 0.0
    feature_id: Optional[str] = None

    def __post_init__(self):
        if self.charge < 0:
            raise ValueError(f"Charge must be >= 0, got {self.charge}")

    @classmethod
    def from_mz(cls, mz: float, charge: int, **kwargs) -> 'Feature':
        """Create a feature from m/z and charge, deriving the neutral mass.

        M = (m/z) × z - z × proton_mass

        Args:
            mz: Mass-to-charge ratio
            charge: Charge state (must be known, i.e. > 0)
            **kwargs: Any other Feature field

        Returns:
            Feature with mass derived from m/z
        """
        if charge <= 0:
            raise ValueError(f"Cannot derive neutral mass for charge {charge}")
        return cls(mass=mz * charge - charge * PROTON_MASS, mz=mz, charge=charge, **kwargs)

    @property
    def has_scan_range(self) -> bool:
        return (
            self.scan_first is not None
            and self.scan_last is not None
            and self.scan_first <= self.scan_last
        )

    def __repr__(self):
        label = f"{self.feature_id!r}, " if self.feature_id is not None else ""
        return (
            f"Feature({label}mass={self.mass:.5f}, charge={self.charge}, "
            f"time={self.time}, scan={self.scan}, hydrophobicity={self.hydrophobicity}, "
            f"quality={self.quality})"
        )


class FeatureSet(Sequence):
    """Ordered collection of features from one acquisition run."""

    def __init__(self, features: Iterable[Feature] = (), name: Optional[str] = None):
        self._features = tuple(features)
        self.name = name

    @classmethod
    def coerce(cls, features: Union['FeatureSet', Iterable[Feature]]) -> 'FeatureSet':
        """Return features unchanged if already a FeatureSet, else wrap them."""
        if isinstance(features, FeatureSet):
            return features
        return cls(features)

    @classmethod
    def from_dataframe(cls, df, name: Optional[str] = None) -> 'FeatureSet':
        """Build a feature set from a DataFrame, one feature per row.

        Parameters
        ----------
        df : pandas.DataFrame
            Must have a 'mass' column, or 'mz' and 'charge' to derive it.
            Any other Feature field present as a column is used. Missing
            values become None in the optional columns (hydrophobicity,
            scan_first, scan_last, feature_id) and 0 in charge; a missing
            mass is derived from m/z when the charge is known.
        name : str, optional
            Name of the run

        Returns
        -------
        feature_set : FeatureSet
            Features in row order
        """
        import pandas as pd

        field_names = [f for f in Feature.__dataclass_fields__ if f in df.columns]
        if "mass" not in df.columns and not {"mz", "charge"} <= set(df.columns):
            raise ValueError("DataFrame needs a 'mass' column or both 'mz' and 'charge'")

        features = []
        for row_number, row in enumerate(df[field_names].itertuples(index=False)):
            values = {}
            for column, value in zip(field_names, row):
                if not pd.isna(value):
                    values[column] = value
                elif column in _OPTIONAL_COLUMNS:
                    values[column] = None
                elif column == "charge":
                    values[column] = 0  # unknown charge
                elif column != "mass":
                    raise ValueError(f"Missing value in column '{column}' at row {row_number}")
            if "charge" in values:
                values["charge"] = int(values["charge"])

            if "mass" in values:
                features.append(Feature(**values))
            elif "mz" in values and values.get("charge", 0) > 0:
                features.append(Feature.from_mz(**values))
            else:
                raise ValueError(
                    f"Missing value in column 'mass' at row {row_number} "
                    f"and no m/z with a known charge to derive it"
                )
        return cls(features, name=name)

    @property
    def features(self) -> tuple:
        return self._features

    def __len__(self) -> int:
        return len(self._features)

    def __getitem__(self, index):
        return self._features[index]

    def __iter__(self) -> Iterator[Feature]:
        return iter(self._features)

    def sorted_by_mass(self) -> List[Feature]:
        """Features in ascending mass order (stable)."""
        return sorted(self._features, key=lambda f: f.mass)

    def __repr__(self):
        name = f"{self.name!r}, " if self.name else ""
        return f"FeatureSet({name}{len(self)} features)"
