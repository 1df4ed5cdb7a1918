from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from .pixel_buffer import PixelBuffer
from .region import Region


@dataclass(frozen=True)
class ProcessingResult:
    """
    Data object describing one pipeline run.
    Created once by the orchestrator, never mutated afterwards.
    """
    success: bool
    output: Optional[PixelBuffer] = None  # Copy of the input, cleaned. None on failure.
    regions: Tuple[Region, ...] = ()      # Final regions in input coordinates.
    processing_time: float = 0.0          # Seconds.
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """JSON-friendly summary (pixels are left to the encoder)."""
        return {
            "success": self.success,
            "watermarks_detected": [r.to_dict() for r in self.regions],
            "processing_time": round(self.processing_time, 4),
            "error": self.error,
        }
