"""Per-feature matching shared by previews and full runs."""

import logging
from collections.abc import Sequence

from proximity_join.config import DEFAULT_SETTINGS, ProximityJoinSettings
from proximity_join.models.domain import Feature, JoinConfig, MatchResult
from proximity_join.spatial.distance import GeometryDistanceResolver
from proximity_join.spatial.index import TargetSet
from proximity_join.spatial.search import find_nearest

logger = logging.getLogger(__name__)


class NearestFeatureMatcher:
    """Matches source features to their nearest target feature.

    Targets are prepared once (geometry kinds and bounding-box index). When
    the config has a finite radius, candidates are pre-filtered by bbox
    before the exact search.
    """

    def __init__(
        self,
        config: JoinConfig,
        targets: Sequence[Feature],
        settings: ProximityJoinSettings = DEFAULT_SETTINGS,
        use_prefilter: bool = True,
    ):
        self.config = config
        self.max_radius_m = config.max_radius_m
        self.resolver = GeometryDistanceResolver(config.representative_point_method)
        self.targets = TargetSet(targets, settings)
        self.use_prefilter = use_prefilter

    def match(self, source_index: int, source: Feature | None) -> MatchResult:
        """Find the nearest target for one source feature.

        A source with missing or invalid geometry is not searched and is
        returned unmatched with ``geometry_invalid`` set.

        Args:
            source_index: Index of the source feature in its dataset
            source: Source feature

        Returns:
            MatchResult (unmatched when nothing is within the radius)
        """
        if source is None or self.resolver.source_point(source) is None:
            return MatchResult(source_index=source_index, geometry_invalid=True)

        if self.use_prefilter:
            candidates = self.targets.filter_candidates(source, self.max_radius_m)
        else:
            candidates = self.targets.candidates

        match = find_nearest(
            source, candidates, self.max_radius_m, self.resolver, source_index=source_index
        )
        if match is None:
            return MatchResult(source_index=source_index)
        return match
