from __future__ import annotations
from dataclasses import dataclass, field
import numpy as np


@dataclass
class PixelBuffer:
    """
    Simple data object: interleaved RGBA bytes (+ dimensions).
    Row-major, top-left origin; pixel (x, y) starts at 4 * (y * width + x).
    """
    width: int
    height: int
    data: np.ndarray = field(repr=False)  # Shape (4*W*H,), dtype uint8, RGBA order.

    def __post_init__(self):
        if isinstance(self.data, np.ndarray):
            self.data = self.data.astype(np.uint8, copy=False).reshape(-1)
        else:
            self.data = np.frombuffer(bytes(self.data), dtype=np.uint8).copy()

    @classmethod
    def from_rgba(cls, pixels: np.ndarray) -> "PixelBuffer":
        """Build a buffer from an (H, W, 4) uint8 array (copied)."""
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA array, got shape {pixels.shape}")
        h, w = pixels.shape[:2]
        return cls(width=w, height=h, data=np.ascontiguousarray(pixels, dtype=np.uint8).reshape(-1).copy())

    @classmethod
    def from_bytes(cls, width: int, height: int, raw: bytes | bytearray) -> "PixelBuffer":
        return cls(width=width, height=height, data=raw)

    # ── Invariants ───────────────────────────────────────────────────
    @property
    def expected_length(self) -> int:
        return 4 * self.width * self.height

    def validate(self) -> None:
        """Raise ValueError when dimensions and byte length disagree."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image must be non-empty, got {self.width}x{self.height}")
        if self.data.size != self.expected_length:
            raise ValueError(
                f"Byte array length {self.data.size} does not match "
                f"{self.width}x{self.height} RGBA ({self.expected_length} expected)"
            )

    # ── Views ────────────────────────────────────────────────────────
    @property
    def rgba(self) -> np.ndarray:
        """(H, W, 4) view sharing memory with `data`."""
        return self.data.reshape(self.height, self.width, 4)

    @property
    def rgb(self) -> np.ndarray:
        """(H, W, 3) view of the color channels."""
        return self.rgba[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.rgba[:, :, 3]

    def index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height}")
        return 4 * (y * self.width + x)

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(width=self.width, height=self.height, data=self.data.copy())

    def replace_rgb(self, new_rgb: np.ndarray) -> None:
        """Swap in new color channels, leaving alpha untouched."""
        self.rgba[:, :, :3] = np.clip(np.rint(new_rgb), 0, 255).astype(np.uint8)
