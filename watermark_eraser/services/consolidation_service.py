from collections import Counter
from typing import List, Optional
import logging

from ..models.engine_config import ConsolidationConfig
from ..models.region import Region, RegionType
from ..repositories.region_repository import RegionRepository

logger = logging.getLogger(__name__)


class ConsolidationService:
    """
    Reduces raw detector output to a small, deduplicated region list.
    Single-pass greedy clustering: deterministic, not globally optimal.
    """

    def __init__(self, config: Optional[ConsolidationConfig] = None):
        self.config = config or ConsolidationConfig()
        if self.config.type_tie_break not in ("first", "mean_confidence"):
            raise ValueError(f"Unsupported type tie-break: {self.config.type_tie_break}")
        self.repository = RegionRepository()

    def consolidate(self, candidates: List[Region]) -> List[Region]:
        cfg = self.config
        accepted = self.repository.filter_by_confidence(candidates, cfg.acceptance_threshold)
        ordered = self.repository.sort_by_confidence(accepted)

        merged = [self.merge_cluster(cluster) for cluster in self.cluster(ordered)]
        final = self.repository.get_top_n(merged, cfg.max_regions)

        logger.info(
            f"Consolidated {len(candidates)} candidate(s) → {len(accepted)} accepted "
            f"→ {len(merged)} cluster(s) → {len(final)} region(s)"
        )
        return final

    # ─── Clustering ───────────────────────────────────────────────
    def _absorbs(self, box: Region, seed: Region, other: Region) -> bool:
        if box.overlaps(other):
            return True
        return other.type == seed.type and box.distance_to(other) <= self.config.merge_distance

    def cluster(self, ordered: List[Region]) -> List[List[Region]]:
        """
        Walk regions in order; each unclustered region seeds a cluster that
        absorbs every later unclustered region touching its growing box.
        """
        clustered = [False] * len(ordered)
        clusters: List[List[Region]] = []

        for i, seed in enumerate(ordered):
            if clustered[i]:
                continue
            clustered[i] = True
            members = [seed]
            box = seed
            for j in range(i + 1, len(ordered)):
                if clustered[j]:
                    continue
                other = ordered[j]
                if self._absorbs(box, seed, other):
                    clustered[j] = True
                    members.append(other)
                    box = self.bounding_box(members)
            clusters.append(members)
        return clusters

    # ─── Merging ──────────────────────────────────────────────────
    @staticmethod
    def bounding_box(members: List[Region]) -> Region:
        x0 = min(r.x for r in members)
        y0 = min(r.y for r in members)
        x1 = max(r.right for r in members)
        y1 = max(r.bottom for r in members)
        return Region(x=x0, y=y0, width=x1 - x0, height=y1 - y0,
                      confidence=members[0].confidence, type=members[0].type)

    def representative_type(self, members: List[Region]) -> RegionType:
        counts = Counter(r.type for r in members)
        top = max(counts.values())
        tied = [t for t in counts if counts[t] == top]   # Counter keeps first-seen order
        if len(tied) == 1 or self.config.type_tie_break == "first":
            return tied[0]

        def mean_confidence(t):
            scores = [r.confidence for r in members if r.type == t]
            return sum(scores) / len(scores)

        return max(tied, key=mean_confidence)

    def merge_cluster(self, members: List[Region]) -> Region:
        box = self.bounding_box(members)
        box.confidence = sum(r.confidence for r in members) / len(members)
        box.type = self.representative_type(members)
        return box
