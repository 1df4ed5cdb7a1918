"""
Heuristic watermark detection and removal on raw RGBA pixel buffers.

Layers follow one direction: models (value objects) ← repositories (I/O,
collection operations) ← services (detection, consolidation, inpainting,
filters) ← pipeline (orchestration).
"""

from .models import EngineConfig, PixelBuffer, ProcessingResult, Region, RegionType
from .pipeline import process_file, remove_watermarks

__all__ = [
    "EngineConfig",
    "PixelBuffer",
    "ProcessingResult",
    "Region",
    "RegionType",
    "process_file",
    "remove_watermarks",
]
