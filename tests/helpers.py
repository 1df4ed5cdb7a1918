"""Small image builders shared by the test modules."""

import numpy as np

from watermark_eraser.models.pixel_buffer import PixelBuffer


def solid(width: int, height: int, rgb, alpha: int = 255) -> PixelBuffer:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :, :3] = rgb
    pixels[:, :, 3] = alpha
    return PixelBuffer.from_rgba(pixels)


def noise(width: int, height: int, seed: int = 0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    pixels = np.full((height, width, 4), 255, dtype=np.uint8)
    pixels[:, :, :3] = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    return PixelBuffer.from_rgba(pixels)


def paint(buffer: PixelBuffer, x: int, y: int, width: int, height: int, rgb) -> PixelBuffer:
    """Fill a rectangle of color channels in place (alpha untouched)."""
    buffer.rgba[y:y + height, x:x + width, :3] = rgb
    return buffer


def checkerboard(size: int, cell: int, low: int, high: int) -> PixelBuffer:
    ys, xs = np.mgrid[0:size, 0:size]
    gray = np.where(((xs // cell) + (ys // cell)) % 2 == 0, low, high).astype(np.uint8)
    pixels = np.full((size, size, 4), 255, dtype=np.uint8)
    pixels[:, :, :3] = gray[..., None]
    return PixelBuffer.from_rgba(pixels)
