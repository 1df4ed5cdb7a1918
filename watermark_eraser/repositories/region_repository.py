from typing import List
from ..models.region import Region


class RegionRepository:
    """
    Repository for data operations on Region collections.
    Handles filtering, sorting, and selection operations.
    """

    def filter_by_confidence(
        self,
        regions: List[Region],
        min_threshold: float
    ) -> List[Region]:
        """
        Drop regions scoring below a confidence threshold.

        Args:
            regions: List of Region objects
            min_threshold: Minimum confidence to keep

        Returns:
            List[Region]: Regions with confidence >= min_threshold, order kept
        """
        return [region for region in regions if region.confidence >= min_threshold]

    def sort_by_confidence(
        self,
        regions: List[Region],
        descending: bool = True
    ) -> List[Region]:
        """
        Sort regions by confidence. The sort is stable, so equal scores keep
        their insertion order.
        """
        return sorted(regions, key=lambda r: r.confidence, reverse=descending)

    def get_top_n(
        self,
        regions: List[Region],
        n: int
    ) -> List[Region]:
        """
        Get the N most confident regions.

        Args:
            regions: List of Region objects
            n: Number of regions to keep

        Returns:
            List[Region]: At most n regions, highest confidence first
        """
        return self.sort_by_confidence(regions)[:max(n, 0)]
