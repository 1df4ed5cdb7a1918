from .image_service import ImageService
from .detection_service import (
    BlockVarianceDetector,
    ContrastEdgeDetector,
    DetectionService,
    RegionDetector,
    RepeatingPatternDetector,
    SobelEdgeDetector,
    TransparencyDetector,
)
from .consolidation_service import ConsolidationService
from .patch_match_service import PatchMatchService
from .inpainting_service import InpaintingService
from .filter_service import FilterService

__all__ = [
    "ImageService",
    "RegionDetector",
    "BlockVarianceDetector",
    "ContrastEdgeDetector",
    "TransparencyDetector",
    "RepeatingPatternDetector",
    "SobelEdgeDetector",
    "DetectionService",
    "ConsolidationService",
    "PatchMatchService",
    "InpaintingService",
    "FilterService",
]
