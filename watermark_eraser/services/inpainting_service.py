from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging

import cv2
import numpy as np
from tqdm import tqdm

from ..models.engine_config import InpaintingConfig
from ..models.pixel_buffer import PixelBuffer
from ..models.region import Region, RegionType
from .image_service import ImageService
from .patch_match_service import PatchMatchService

logger = logging.getLogger(__name__)

Box = Tuple[int, int, int, int]

ALL_DIRECTIONS: Sequence[Tuple[int, int]] = (
    (-1, 0), (1, 0), (0, -1), (0, 1),
    (-1, -1), (1, 1), (-1, 1), (1, -1),
)
CARDINAL_DIRECTIONS: Sequence[Tuple[int, int]] = ((-1, 0), (1, 0), (0, -1), (0, 1))


class InpaintingService:
    """
    Rebuilds the pixels of each region from surrounding content.
    *   One reconstruction method per RegionType, chosen by explicit lookup.
    *   Each region reads a snapshot taken right before its own write.
    *   Only R, G, B are written; alpha is never touched.
    """

    def __init__(
        self,
        config: Optional[InpaintingConfig] = None,
        image_service: ImageService | None = None,
        patch_match_service: PatchMatchService | None = None,
    ):
        self.config = config or InpaintingConfig()
        self.image_service = image_service or ImageService()
        self.patch_match_service = patch_match_service or PatchMatchService(self.config)
        self._strategies: Dict[RegionType, Callable[[np.ndarray, np.ndarray, Box], np.ndarray]] = {
            RegionType.TEXT: self.inpaint_directional,
            RegionType.PATTERN: self.inpaint_cardinal,
            RegionType.TRANSPARENT: self.inpaint_transparent,
            RegionType.LOGO: self.inpaint_content_aware,
        }

    # ─── Public API ────────────────────────────────────────────────
    def inpaint(self, buffer: PixelBuffer, regions: List[Region]) -> PixelBuffer:
        """Rebuild every region in order, mutating *buffer* in place."""
        for region in tqdm(regions, desc="inpaint", ncols=70, disable=not self.config.show_progress):
            self.inpaint_region(buffer, region)
        return buffer

    def inpaint_region(self, buffer: PixelBuffer, region: Region) -> None:
        box = region.clip(buffer.width, buffer.height)
        x0, y0, x1, y1 = box
        if x1 <= x0 or y1 <= y0:
            logger.debug(f"Skipping region outside the image: {region}")
            return

        snapshot = buffer.rgb.astype(np.float64)
        mask = self.image_service.region_mask(buffer.height, buffer.width, region)
        strategy = self._strategies[region.type]
        rebuilt = strategy(snapshot, mask, box)

        buffer.rgba[y0:y1, x0:x1, :3] = np.clip(np.rint(rebuilt), 0, 255).astype(np.uint8)
        logger.debug(f"Inpainted {region.type.value} region at ({x0},{y0})-({x1},{y1})")

    # ─── text / generic ────────────────────────────────────────────
    def _directional_samples(
        self,
        snapshot: np.ndarray,
        box: Box,
        directions: Sequence[Tuple[int, int]],
        inverse_distance: bool = False,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        For every pixel in the box, look along each direction to the box
        border and sample sample_offset pixels past it.

        Returns:
            (weighted color sum (h, w, 3), weight sum (h, w)) over valid samples.
        """
        h, w = snapshot.shape[:2]
        x0, y0, x1, y1 = box
        py, px = np.mgrid[y0:y1, x0:x1]
        far = np.iinfo(np.int64).max // 4
        offset = max(1, self.config.sample_offset)

        def steps_out(p, lo, hi, d):
            if d > 0:
                return (hi - p).astype(np.int64)
            if d < 0:
                return (p - lo + 1).astype(np.int64)
            return np.full(p.shape, far, dtype=np.int64)

        total = np.zeros(py.shape + (3,))
        weight = np.zeros(py.shape)
        for dx, dy in directions:
            steps = np.minimum(steps_out(px, x0, x1, dx), steps_out(py, y0, y1, dy))
            dist = steps - 1 + offset
            sx = px + dx * dist
            sy = py + dy * dist
            valid = (sx >= 0) & (sx < w) & (sy >= 0) & (sy < h)
            if not valid.any():
                continue
            wgt = (1.0 / dist[valid]) if inverse_distance else np.ones(int(valid.sum()))
            total[valid] += snapshot[sy[valid], sx[valid]] * wgt[:, None]
            weight[valid] += wgt
        return total, weight

    def _neighbourhood_average(self, snapshot: np.ndarray, mask: np.ndarray, box: Box) -> Tuple[np.ndarray, np.ndarray]:
        """Mean of out-of-region pixels within fallback_radius, plus a has-samples flag."""
        x0, y0, x1, y1 = box
        k = 2 * max(1, self.config.fallback_radius) + 1
        known = (~mask).astype(np.float32)
        masked = snapshot.astype(np.float32) * known[..., None]
        sums = cv2.boxFilter(masked, -1, (k, k), normalize=False, borderType=cv2.BORDER_CONSTANT)
        counts = cv2.boxFilter(known, -1, (k, k), normalize=False, borderType=cv2.BORDER_CONSTANT)
        sums, counts = sums[y0:y1, x0:x1], counts[y0:y1, x0:x1]
        has = counts > 0.5
        avg = np.zeros(sums.shape, dtype=np.float64)
        avg[has] = sums[has] / counts[has][:, None]
        return avg, has

    def _sampled_fill(self, snapshot, mask, box, directions, inverse_distance=False) -> np.ndarray:
        x0, y0, x1, y1 = box
        out = snapshot[y0:y1, x0:x1].copy()
        total, weight = self._directional_samples(snapshot, box, directions, inverse_distance)
        sampled = weight > 0
        out[sampled] = total[sampled] / weight[sampled][:, None]

        if not sampled.all():
            avg, has = self._neighbourhood_average(snapshot, mask, box)
            fallback = ~sampled & has
            out[fallback] = avg[fallback]
        return out

    def inpaint_directional(self, snapshot: np.ndarray, mask: np.ndarray, box: Box) -> np.ndarray:
        """Average of samples beyond the border in eight directions."""
        return self._sampled_fill(snapshot, mask, box, ALL_DIRECTIONS)

    # ─── pattern ───────────────────────────────────────────────────
    def inpaint_cardinal(self, snapshot: np.ndarray, mask: np.ndarray, box: Box) -> np.ndarray:
        """
        Left/right/up/down samples only, weighted by inverse distance so the
        nearer border dominates: a cheap stand-in for suppressing a
        repeating signal.
        """
        return self._sampled_fill(snapshot, mask, box, CARDINAL_DIRECTIONS, inverse_distance=True)

    # ─── transparent ───────────────────────────────────────────────
    def _ring_average(self, snapshot: np.ndarray, box: Box) -> Tuple[np.ndarray, np.ndarray]:
        cfg = self.config
        h, w = snapshot.shape[:2]
        x0, y0, x1, y1 = box
        py, px = np.mgrid[y0:y1, x0:x1]
        total = np.zeros(py.shape + (3,))
        count = np.zeros(py.shape)
        n = max(1, cfg.ring_samples)
        for k in range(n):
            angle = 2.0 * np.pi * k / n
            sx = np.rint(px + cfg.ring_radius * np.cos(angle)).astype(np.int64)
            sy = np.rint(py + cfg.ring_radius * np.sin(angle)).astype(np.int64)
            valid = (sx >= 0) & (sx < w) & (sy >= 0) & (sy < h)
            colors = np.zeros(py.shape + (3,))
            colors[valid] = snapshot[sy[valid], sx[valid]]
            lum = self.image_service.brightness_of(colors)
            safe = valid & (lum >= cfg.safe_min) & (lum <= cfg.safe_max)
            total[safe] += colors[safe]
            count[safe] += 1
        return total, count

    def inpaint_transparent(self, snapshot: np.ndarray, mask: np.ndarray, box: Box) -> np.ndarray:
        """
        Undo an assumed overlay blend:
            bright overlay  original = (observed - a*255) / (1 - a)
            dark overlay    original = observed / (1 - a)
        The inversion is trusted only for pixels inside the extreme band whose
        recovered brightness is plausible; the rest average safe ring samples.
        """
        cfg = self.config
        x0, y0, x1, y1 = box
        observed = snapshot[y0:y1, x0:x1]
        lum = self.image_service.brightness_of(observed)
        a = min(max(cfg.opacity, 0.0), 0.99)

        bright = lum > cfg.bright_threshold
        dark = lum < cfg.dark_threshold
        recovered = observed.copy()
        recovered[bright] = (observed[bright] - a * 255.0) / (1.0 - a)
        recovered[dark] = observed[dark] / (1.0 - a)
        recovered = np.clip(recovered, 0.0, 255.0)

        rec_lum = self.image_service.brightness_of(recovered)
        reliable = (bright | dark) & (rec_lum >= cfg.safe_min) & (rec_lum <= cfg.safe_max)

        out = recovered
        total, count = self._ring_average(snapshot, box)
        ring = ~reliable & (count > 0)
        out[ring] = total[ring] / count[ring][:, None]
        return out

    # ─── logo ──────────────────────────────────────────────────────
    def inpaint_content_aware(self, snapshot: np.ndarray, mask: np.ndarray, box: Box) -> np.ndarray:
        """Patch search fill; whatever it cannot reach falls back to directional sampling."""
        x0, y0, x1, y1 = box
        filled, known = self.patch_match_service.fill(snapshot, ~mask, box)
        out = filled[y0:y1, x0:x1]
        leftover = ~known[y0:y1, x0:x1]
        if leftover.any():
            logger.debug(f"{int(leftover.sum())} pixel(s) left after patch fill, sampling instead")
            out[leftover] = self.inpaint_directional(snapshot, mask, box)[leftover]
        return out
