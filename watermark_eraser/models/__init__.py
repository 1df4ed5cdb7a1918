from .pixel_buffer import PixelBuffer
from .region import Region, RegionType
from .patch_candidate import PatchCandidate
from .processing_result import ProcessingResult
from .engine_config import EngineConfig

__all__ = [
    "PixelBuffer",
    "Region",
    "RegionType",
    "PatchCandidate",
    "ProcessingResult",
    "EngineConfig",
]
