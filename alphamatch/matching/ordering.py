"""Best-first ranking of slave candidates for one master feature."""

from typing import Callable, List, Sequence

from alphamatch.features import Feature, elution_value
from alphamatch.tolerance import ElutionMode, coerce_enum
from .config import OrderingMode


def candidate_sort_key(
    master_feature: Feature,
    ordering_mode: OrderingMode,
    elution_mode: ElutionMode,
) -> Callable[[Feature], float]:
    """Key function for sorted(): smaller key = better candidate."""
    if ordering_mode == OrderingMode.BY_QUALITY:
        return lambda candidate: -candidate.quality

    master_elution = elution_value(master_feature, elution_mode)
    return lambda candidate: abs(elution_value(candidate, elution_mode) - master_elution)


def order_candidates(
    candidates: Sequence[Feature],
    master_feature: Feature,
    ordering_mode=OrderingMode.BY_ELUTION_CLOSENESS,
    elution_mode=ElutionMode.HYDROPHOBICITY,
) -> List[Feature]:
    """Rank candidates best first.

    BY_QUALITY puts the highest quality first; BY_ELUTION_CLOSENESS puts the
    candidate whose elution is closest to the master's first. The sort is
    stable, so equal keys keep their input order.

    Args:
        candidates: Slave features to rank (not modified)
        master_feature: Feature the candidates are ranked against
        ordering_mode: Ranking criterion
        elution_mode: Elution coordinate used by BY_ELUTION_CLOSENESS

    Returns:
        New list of the same candidates, best first
    """
    ordering_mode = coerce_enum(OrderingMode, ordering_mode, "ordering mode")
    elution_mode = coerce_enum(ElutionMode, elution_mode, "elution mode")
    return sorted(candidates, key=candidate_sort_key(master_feature, ordering_mode, elution_mode))
