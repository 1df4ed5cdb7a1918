from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import math


class RegionType(str, Enum):
    TEXT = "text"
    LOGO = "logo"
    PATTERN = "pattern"
    TRANSPARENT = "transparent"


@dataclass
class Region:
    x: int
    y: int
    width: int
    height: int
    confidence: float                       # [0, 1]
    type: RegionType = RegionType.TEXT

    @property
    def right(self) -> int:
        """Exclusive right edge."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """Exclusive bottom edge."""
        return self.y + self.height

    def overlaps(self, other: "Region") -> bool:
        """
        Separating-axis test on the two boxes. Boxes that only touch
        along an edge count as overlapping.
        """
        return not (
            self.right < other.x
            or other.right < self.x
            or self.bottom < other.y
            or other.bottom < self.y
        )

    def distance_to(self, other: "Region") -> float:
        """Euclidean gap between the two boxes (0 when they overlap)."""
        dx = max(0, other.x - self.right, self.x - other.right)
        dy = max(0, other.y - self.bottom, self.y - other.bottom)
        return math.hypot(dx, dy)

    def contains(self, other: "Region") -> bool:
        return (
            self.x <= other.x
            and self.y <= other.y
            and self.right >= other.right
            and self.bottom >= other.bottom
        )

    def clip(self, width: int, height: int) -> tuple[int, int, int, int]:
        """Return (x0, y0, x1, y1) clipped to [0,width) x [0,height)."""
        x0 = min(max(self.x, 0), width)
        y0 = min(max(self.y, 0), height)
        x1 = min(max(self.right, 0), width)
        y1 = min(max(self.bottom, 0), height)
        return x0, y0, x1, y1

    def to_dict(self) -> dict:
        return {
            "x": int(self.x),
            "y": int(self.y),
            "width": int(self.width),
            "height": int(self.height),
            "confidence": round(float(self.confidence), 4),
            "type": self.type.value,
        }
