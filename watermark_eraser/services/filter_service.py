from typing import Optional
import logging

import cv2
import numpy as np

from ..models.engine_config import FilterConfig
from ..models.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

SMOOTHING_KERNEL = np.array(
    [[1, 2, 1],
     [2, 4, 2],
     [1, 2, 1]],
    dtype=np.float32,
) / 16.0


class FilterService:
    """
    Global post-processing that blends rebuilt regions into their surroundings.
    Each filter reads the current color channels, computes into a new array,
    then swaps it in.  Alpha is left as is.
    """

    def __init__(self, config: Optional[FilterConfig] = None):
        self.config = config or FilterConfig()

    def apply_all(self, buffer: PixelBuffer) -> PixelBuffer:
        cfg = self.config
        if cfg.smoothing_enabled:
            buffer.replace_rgb(self.smooth(buffer.rgb, cfg.smoothing_mix))
        if cfg.contrast_enabled:
            buffer.replace_rgb(self.normalize_contrast(buffer.rgb, cfg.contrast_gain, cfg.brightness_offset))
        if cfg.median_enabled:
            buffer.replace_rgb(self.reduce_noise(buffer.rgb, cfg.median_threshold))
        logger.debug("Post-processing filters applied")
        return buffer

    @staticmethod
    def smooth(rgb: np.ndarray, mix: float) -> np.ndarray:
        """Center-weighted 3x3 average, blended back at *mix*."""
        src = rgb.astype(np.float32)
        blurred = cv2.filter2D(src, -1, SMOOTHING_KERNEL, borderType=cv2.BORDER_REFLECT)
        return src * (1.0 - mix) + blurred * mix

    @staticmethod
    def normalize_contrast(rgb: np.ndarray, gain: float, offset: float = 0.0) -> np.ndarray:
        """Linear stretch around mid-gray, clamped to [0, 255]."""
        out = (rgb.astype(np.float32) - 128.0) * gain + 128.0 + offset
        return np.clip(out, 0.0, 255.0)

    @staticmethod
    def reduce_noise(rgb: np.ndarray, threshold: float) -> np.ndarray:
        """Replace a channel with its 3x3 median only where it is an outlier."""
        src = np.ascontiguousarray(rgb, dtype=np.uint8)
        median = cv2.medianBlur(src, 3)
        outlier = np.abs(src.astype(np.int16) - median.astype(np.int16)) > threshold
        return np.where(outlier, median, src)
