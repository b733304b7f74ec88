"""Single entry point dispatching to the configured matching strategy."""

import logging
from typing import Iterable, Optional

from alphamatch.features import Feature, FeatureSet
from alphamatch.tolerance import ConfigurationError
from .config import MatcherConfig, MatcherKind
from .global_cluster import match_global_cluster
from .recursive import match_recursive_adaptive
from .result import FeatureMatchingResult
from .window import match_windowed

logger = logging.getLogger(__name__)

_MATCHERS = {
    MatcherKind.WINDOWED: match_windowed,
    MatcherKind.GLOBAL_CLUSTERING: match_global_cluster,
    MatcherKind.RECURSIVE_ADAPTIVE: match_recursive_adaptive,
}


def match_features(
    master: Iterable[Feature],
    slave: Iterable[Feature],
    config: Optional[MatcherConfig] = None,
) -> FeatureMatchingResult:
    """Match a master feature set against a slave feature set.

    Args:
        master: FeatureSet (or any iterable of features) to find matches for
        slave: FeatureSet (or any iterable of features) supplying candidates
        config: Matching parameters; MatcherConfig() if None

    Returns:
        FeatureMatchingResult mapping matched masters to ranked slave candidates

    Raises:
        ConfigurationError: invalid settings, or features lacking the
            coordinates the configuration needs

    Examples:
        >>> from alphamatch import Feature, MatcherConfig, match_features
        >>> master = [Feature(mass=1000.0, hydrophobicity=10.0)]
        >>> slave = [Feature(mass=1000.0005, hydrophobicity=10.01)]
        >>> result = match_features(master, slave, MatcherConfig())
        >>> len(result)
        1
    """
    if config is None:
        config = MatcherConfig()
    if not isinstance(config, MatcherConfig):
        raise ConfigurationError(f"config must be a MatcherConfig, got {type(config).__name__}")

    master = FeatureSet.coerce(master)
    slave = FeatureSet.coerce(slave)
    logger.debug(
        f"Matching {len(master)} master against {len(slave)} slave features with "
        f"{config.matcher_kind.value} matcher"
    )
    return _MATCHERS[config.matcher_kind](master, slave, config)
