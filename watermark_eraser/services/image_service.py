from __future__ import annotations
from typing import Tuple

import cv2
import numpy as np

from ..models.pixel_buffer import PixelBuffer
from ..models.region import Region


class ImageService:
    """Pixel helpers shared by detectors, inpainting and filters.  No I/O."""

    # ─── Brightness ───────────────────────────────────────────────
    @staticmethod
    def brightness(buffer: PixelBuffer) -> np.ndarray:
        """
        Args:
            buffer (PixelBuffer): Source pixels.

        Returns:
            (np.ndarray): (H, W) float64 map of (R + G + B) / 3.
        """
        return buffer.rgb.astype(np.float64).mean(axis=2)

    @staticmethod
    def brightness_of(rgb: np.ndarray) -> np.ndarray:
        """Same as brightness() for a bare (..., 3) color array."""
        return rgb.astype(np.float64).mean(axis=-1)

    @staticmethod
    def sobel_magnitude(brightness: np.ndarray) -> np.ndarray:
        """Gradient magnitude of a brightness map (3x3 Sobel, reflected border)."""
        src = brightness.astype(np.float32)
        gx = cv2.Sobel(src, cv2.CV_32F, 1, 0, ksize=3)
        gy = cv2.Sobel(src, cv2.CV_32F, 0, 1, ksize=3)
        return cv2.magnitude(gx, gy)

    # ─── Sliding windows ──────────────────────────────────────────
    @staticmethod
    def window_origins(height: int, width: int, size: int, stride: int) -> Tuple[np.ndarray, np.ndarray]:
        """Top-left corners of every size×size window lying fully inside the image."""
        if size <= 0 or stride <= 0:
            raise ValueError(f"Window size and stride must be positive, got {size}/{stride}")
        ys = np.arange(0, height - size + 1, stride)
        xs = np.arange(0, width - size + 1, stride)
        return ys, xs

    @staticmethod
    def integral(arr: np.ndarray) -> np.ndarray:
        """Summed-area table with a zero first row and column."""
        table = np.zeros((arr.shape[0] + 1, arr.shape[1] + 1), dtype=np.float64)
        table[1:, 1:] = arr.astype(np.float64).cumsum(axis=0).cumsum(axis=1)
        return table

    @staticmethod
    def rect_sums(table: np.ndarray, ys: np.ndarray, xs: np.ndarray, rect_h: int, rect_w: int) -> np.ndarray:
        """(len(ys), len(xs)) sums of rect_h×rect_w rectangles anchored at ys × xs."""
        y0 = ys[:, None]
        x0 = xs[None, :]
        return (
            table[y0 + rect_h, x0 + rect_w]
            - table[y0, x0 + rect_w]
            - table[y0 + rect_h, x0]
            + table[y0, x0]
        )

    def window_stats(
        self, brightness: np.ndarray, size: int, stride: int
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Mean and variance of brightness for every window.

        Returns:
            (mean, variance, ys, xs) where mean/variance are (len(ys), len(xs)).
        """
        h, w = brightness.shape
        ys, xs = self.window_origins(h, w, size, stride)
        if ys.size == 0 or xs.size == 0:
            empty = np.zeros((ys.size, xs.size))
            return empty, empty, ys, xs
        n = float(size * size)
        mean = self.rect_sums(self.integral(brightness), ys, xs, size, size) / n
        sq_mean = self.rect_sums(self.integral(brightness ** 2), ys, xs, size, size) / n
        variance = np.clip(sq_mean - mean ** 2, 0.0, None)
        return mean, variance, ys, xs

    # ─── Hashing ──────────────────────────────────────────────────
    @staticmethod
    def coarse_hash(window: np.ndarray, sample_step: int, bin_width: int) -> bytes:
        """
        Bucket every sample_step-th brightness value into bin_width-wide bins
        and concatenate the bin indices.
        """
        samples = window[::sample_step, ::sample_step]
        bins = np.clip(samples // bin_width, 0, 255).astype(np.uint8)
        return bins.tobytes()

    # ─── Masks ────────────────────────────────────────────────────
    @staticmethod
    def region_mask(height: int, width: int, region: Region) -> np.ndarray:
        """Boolean (H, W) mask of the region clipped to the image."""
        mask = np.zeros((height, width), dtype=bool)
        x0, y0, x1, y1 = region.clip(width, height)
        mask[y0:y1, x0:x1] = True
        return mask
