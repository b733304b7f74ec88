"""Container for the output of one matching call."""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from alphamatch.features import Feature


class FeatureMatchingResult:
    """Mapping from each matched master feature to its ranked slave candidates.

    Masters are keyed by identity, so two masters with identical coordinates
    are kept apart. The first candidate of every list is the best match.
    Masters without candidates are never stored: absence means "no match".

    Attributes:
        diagnostics: Free-form statistics filled in by the matcher that
            produced this result (bucket sizes, per-depth counts, ...)
    """

    def __init__(self):
        self._matches: Dict[Feature, List[Feature]] = {}
        self.diagnostics: Dict[str, Any] = {}

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def put(self, master: Feature, slaves: Iterable[Feature]) -> None:
        """Set the candidate list of master, replacing any previous list.

        Duplicate slave instances are dropped (first occurrence kept). An empty
        list removes the master.
        """
        unique: List[Feature] = []
        seen = set()
        for slave in slaves:
            if id(slave) not in seen:
                seen.add(id(slave))
                unique.append(slave)
        if unique:
            self._matches[master] = unique
        else:
            self._matches.pop(master, None)

    def add(self, master: Feature, slave: Feature) -> None:
        """Append one slave to the end of master's candidate list."""
        candidates = self._matches.setdefault(master, [])
        if not any(existing is slave for existing in candidates):
            candidates.append(slave)

    def update(self, other: 'FeatureMatchingResult') -> None:
        """Union with another result; other's lists win for shared masters."""
        for master, slaves in other.items():
            self._matches[master] = list(slaves)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, master: Feature, default=None) -> Optional[List[Feature]]:
        return self._matches.get(master, default)

    def slave_features_for(self, master: Feature) -> List[Feature]:
        """Ranked candidates of master (empty list if unmatched)."""
        return list(self._matches.get(master, ()))

    def best_match(self, master: Feature) -> Optional[Feature]:
        candidates = self._matches.get(master)
        return candidates[0] if candidates else None

    def master_features(self) -> List[Feature]:
        return list(self._matches)

    def slave_features(self) -> List[Feature]:
        """Every slave appearing in any candidate list, each once, in first-seen order."""
        seen = set()
        slaves: List[Feature] = []
        for candidates in self._matches.values():
            for slave in candidates:
                if id(slave) not in seen:
                    seen.add(id(slave))
                    slaves.append(slave)
        return slaves

    def items(self) -> Iterator[Tuple[Feature, List[Feature]]]:
        return iter(self._matches.items())

    def to_pairs(self) -> List[Tuple[Feature, Feature, int]]:
        """Flatten to (master, slave, rank) tuples; rank 0 is the best match."""
        return [
            (master, slave, rank)
            for master, candidates in self._matches.items()
            for rank, slave in enumerate(candidates)
        ]

    def to_dataframe(self):
        """One row per (master, slave) pair with both features' coordinates.

        Returns
        -------
        df : pandas.DataFrame
            Columns master_id, slave_id, rank, master_mass, slave_mass,
            delta_mass (master - slave), master_charge, slave_charge,
            slave_quality
        """
        import pandas as pd

        rows = [
            {
                "master_id": master.feature_id,
                "slave_id": slave.feature_id,
                "rank": rank,
                "master_mass": master.mass,
                "slave_mass": slave.mass,
                "delta_mass": master.mass - slave.mass,
                "master_charge": master.charge,
                "slave_charge": slave.charge,
                "slave_quality": slave.quality,
            }
            for master, slave, rank in self.to_pairs()
        ]
        columns = ["master_id", "slave_id", "rank", "master_mass", "slave_mass",
                   "delta_mass", "master_charge", "slave_charge", "slave_quality"]
        return pd.DataFrame(rows, columns=columns)

    @property
    def size(self) -> int:
        return len(self._matches)

    def __len__(self) -> int:
        return len(self._matches)

    def __contains__(self, master) -> bool:
        return master in self._matches

    def __iter__(self) -> Iterator[Feature]:
        return iter(self._matches)

    def __repr__(self):
        return f"FeatureMatchingResult({len(self)} matched masters)"
