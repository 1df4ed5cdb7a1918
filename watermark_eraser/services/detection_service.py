"""
Region detectors.

Five independent sliding-window heuristics, each scoring sub-regions of a
PixelBuffer for "watermark-likeness".  Detectors only read the buffer;
their outputs are concatenated and handed to the consolidation step.
"""
from __future__ import annotations

from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple
import logging

import numpy as np

from ..models.engine_config import (
    BlockVarianceConfig,
    ContrastEdgeConfig,
    EngineConfig,
    RepeatingPatternConfig,
    SobelEdgeConfig,
    TransparencyConfig,
)
from ..models.pixel_buffer import PixelBuffer
from ..models.region import Region, RegionType
from .image_service import ImageService

logger = logging.getLogger(__name__)


def _clamp01(value: float) -> float:
    return float(min(1.0, max(0.0, value)))


class RegionDetector:
    """Base class: subclasses implement _scan(); detect() applies the confidence floor."""
    name = "detector"

    def __init__(self, config, image_service: ImageService | None = None):
        self.config = config
        self.image_service = image_service or ImageService()

    def detect(self, buffer: PixelBuffer) -> List[Region]:
        regions = [r for r in self._scan(buffer) if r.confidence >= self.config.min_confidence]
        logger.debug(f"{self.name}: {len(regions)} candidate(s)")
        return regions

    def _scan(self, buffer: PixelBuffer) -> List[Region]:
        raise NotImplementedError


class BlockVarianceDetector(RegionDetector):
    """
    Near-uniform blocks that are very bright or very dark.
    Low variance + extreme mean is the signature of a flat overlay.
    """
    name = "block_variance"

    def __init__(self, config: BlockVarianceConfig | None = None, image_service: ImageService | None = None):
        super().__init__(config or BlockVarianceConfig(), image_service)

    def _scan(self, buffer: PixelBuffer) -> List[Region]:
        cfg = self.config
        brightness = self.image_service.brightness(buffer)
        mean, variance, ys, xs = self.image_service.window_stats(brightness, cfg.block_size, cfg.stride)

        extreme = (mean > cfg.bright_threshold) | (mean < cfg.dark_threshold)
        in_band = (variance >= cfg.min_variance) & (variance < cfg.max_variance)

        regions = []
        for iy, ix in np.argwhere(extreme & in_band):
            var = float(variance[iy, ix])
            regions.append(Region(
                x=int(xs[ix]), y=int(ys[iy]),
                width=cfg.block_size, height=cfg.block_size,
                confidence=_clamp01((cfg.variance_threshold - var) / cfg.variance_threshold),
                type=RegionType.TRANSPARENT if var < cfg.flat_variance else RegionType.PATTERN,
            ))
        return regions


class ContrastEdgeDetector(RegionDetector):
    """
    Text overlays: a moderate share of adjacent-pixel pairs with a strong
    brightness step.  Flat areas score ~0, busy photo texture scores high;
    lettering sits in between.
    """
    name = "contrast_edge"
    _HASH_BIN_WIDTH = 32

    def __init__(self, config: ContrastEdgeConfig | None = None, image_service: ImageService | None = None):
        super().__init__(config or ContrastEdgeConfig(), image_service)

    def edge_density(self, brightness: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Returns:
            (density, ys, xs): fraction of horizontal + vertical pairs per
            window whose absolute difference exceeds the gradient threshold.
        """
        cfg = self.config
        svc = self.image_service
        h, w = brightness.shape
        size = cfg.window_size
        ys, xs = svc.window_origins(h, w, size, cfg.stride)
        if ys.size == 0 or xs.size == 0 or size < 2:
            return np.zeros((ys.size, xs.size)), ys, xs

        horizontal = np.abs(np.diff(brightness, axis=1)) > cfg.gradient_threshold   # (H, W-1)
        vertical = np.abs(np.diff(brightness, axis=0)) > cfg.gradient_threshold     # (H-1, W)

        h_count = svc.rect_sums(svc.integral(horizontal), ys, xs, size, size - 1)
        v_count = svc.rect_sums(svc.integral(vertical), ys, xs, size - 1, size)
        pairs = 2.0 * size * (size - 1)
        return (h_count + v_count) / pairs, ys, xs

    def _scan(self, buffer: PixelBuffer) -> List[Region]:
        cfg = self.config
        brightness = self.image_service.brightness(buffer)
        density, ys, xs = self.edge_density(brightness)

        in_band = (density >= cfg.min_density) & (density <= cfg.max_density)
        hits = np.argwhere(in_band)
        if hits.size == 0:
            return []

        size = cfg.window_size
        sample_step = max(1, size // 6)
        hashes = []
        for iy, ix in hits:
            y0, x0 = int(ys[iy]), int(xs[ix])
            window = brightness[y0:y0 + size, x0:x0 + size]
            hashes.append(self.image_service.coarse_hash(window, sample_step, self._HASH_BIN_WIDTH))
        counts: Dict[bytes, int] = defaultdict(int)
        for key in hashes:
            counts[key] += 1

        regions = []
        for (iy, ix), key in zip(hits, hashes):
            score = min(1.0, float(density[iy, ix]) * cfg.score_scale)
            # same sub-pattern elsewhere → artificial overlay
            if counts[key] >= cfg.repeat_min_count:
                score += cfg.repeat_boost
            regions.append(Region(
                x=int(xs[ix]), y=int(ys[iy]),
                width=size, height=size,
                confidence=_clamp01(score),
                type=RegionType.TEXT,
            ))
        return regions


class TransparencyDetector(RegionDetector):
    """Flat, semi-transparent overlays: tiny spread plus an extreme mean."""
    name = "transparency"

    def __init__(self, config: TransparencyConfig | None = None, image_service: ImageService | None = None):
        super().__init__(config or TransparencyConfig(), image_service)

    def _scan(self, buffer: PixelBuffer) -> List[Region]:
        cfg = self.config
        brightness = self.image_service.brightness(buffer)
        mean, variance, ys, xs = self.image_service.window_stats(brightness, cfg.window_size, cfg.stride)

        flat = np.sqrt(variance) < cfg.std_threshold
        extreme = (mean > cfg.bright_threshold) | (mean < cfg.dark_threshold)

        return [
            Region(
                x=int(xs[ix]), y=int(ys[iy]),
                width=cfg.window_size, height=cfg.window_size,
                confidence=cfg.confidence,
                type=RegionType.TRANSPARENT,
            )
            for iy, ix in np.argwhere(flat & extreme)
        ]


class RepeatingPatternDetector(RegionDetector):
    """
    Tiled watermarks: identical coarse hashes on a grid of windows.
    Featureless windows are not hashed (a plain sky is not a pattern).
    """
    name = "repeating_pattern"

    def __init__(self, config: RepeatingPatternConfig | None = None, image_service: ImageService | None = None):
        super().__init__(config or RepeatingPatternConfig(), image_service)

    def group_windows(self, buffer: PixelBuffer) -> Dict[bytes, List[Tuple[int, int]]]:
        """Map coarse hash → list of (x, y) window origins sharing it."""
        cfg = self.config
        brightness = self.image_service.brightness(buffer)
        _, variance, ys, xs = self.image_service.window_stats(brightness, cfg.window_size, cfg.stride)

        groups: Dict[bytes, List[Tuple[int, int]]] = defaultdict(list)
        for iy, y0 in enumerate(ys):
            for ix, x0 in enumerate(xs):
                if np.sqrt(variance[iy, ix]) < cfg.min_texture_std:
                    continue
                window = brightness[y0:y0 + cfg.window_size, x0:x0 + cfg.window_size]
                key = self.image_service.coarse_hash(window, cfg.sample_step, cfg.bin_width)
                groups[key].append((int(x0), int(y0)))
        return dict(groups)

    def _scan(self, buffer: PixelBuffer) -> List[Region]:
        cfg = self.config
        regions = []
        for members in self.group_windows(buffer).values():
            if len(members) < cfg.min_group_size:
                continue
            confidence = _clamp01(len(members) * cfg.confidence_per_member)
            for x0, y0 in members:
                regions.append(Region(
                    x=x0, y=y0,
                    width=cfg.window_size, height=cfg.window_size,
                    confidence=confidence,
                    type=RegionType.PATTERN,
                ))
        return regions


class SobelEdgeDetector(RegionDetector):
    """
    Logos: more structure than a flat overlay, less chaos than photo
    detail.  Scores windows whose mean Sobel magnitude sits in a band.
    """
    name = "sobel_edge"
    _MAX_RESPONSE = 4.0 * 255.0   # largest single-axis 3x3 Sobel response

    def __init__(self, config: SobelEdgeConfig | None = None, image_service: ImageService | None = None):
        super().__init__(config or SobelEdgeConfig(), image_service)

    def _scan(self, buffer: PixelBuffer) -> List[Region]:
        cfg = self.config
        svc = self.image_service
        brightness = svc.brightness(buffer)
        h, w = brightness.shape
        ys, xs = svc.window_origins(h, w, cfg.window_size, cfg.stride)
        if ys.size == 0 or xs.size == 0:
            return []

        magnitude = np.clip(svc.sobel_magnitude(brightness) / self._MAX_RESPONSE, 0.0, 1.0)
        avg = svc.rect_sums(svc.integral(magnitude), ys, xs, cfg.window_size, cfg.window_size)
        avg /= float(cfg.window_size * cfg.window_size)

        centre = (cfg.min_magnitude + cfg.max_magnitude) / 2.0
        half_width = max((cfg.max_magnitude - cfg.min_magnitude) / 2.0, 1e-9)

        regions = []
        for iy, ix in np.argwhere((avg >= cfg.min_magnitude) & (avg <= cfg.max_magnitude)):
            closeness = 1.0 - abs(float(avg[iy, ix]) - centre) / half_width
            regions.append(Region(
                x=int(xs[ix]), y=int(ys[iy]),
                width=cfg.window_size, height=cfg.window_size,
                confidence=_clamp01(0.4 + 0.6 * closeness),
                type=RegionType.LOGO,
            ))
        return regions


class DetectionService:
    """
    Runs every enabled detector over one buffer.
    *   Output order is the fixed detector order, whatever the worker count.
    *   Detectors never write to the buffer, so they may share it across threads.
    """

    def __init__(self, config: Optional[EngineConfig] = None, image_service: ImageService | None = None):
        config = config or EngineConfig()
        image_service = image_service or ImageService()
        self.max_workers = max(1, config.detector_workers)
        candidates = [
            (config.block_variance, BlockVarianceDetector),
            (config.contrast_edge, ContrastEdgeDetector),
            (config.transparency, TransparencyDetector),
            (config.repeating_pattern, RepeatingPatternDetector),
            (config.sobel_edge, SobelEdgeDetector),
        ]
        self.detectors: List[RegionDetector] = [
            cls(cfg, image_service) for cfg, cls in candidates if cfg.enabled
        ]

    def detect_all(self, buffer: PixelBuffer) -> List[Region]:
        if self.max_workers > 1 and len(self.detectors) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                per_detector = list(pool.map(lambda d: d.detect(buffer), self.detectors))
        else:
            per_detector = [d.detect(buffer) for d in self.detectors]

        regions: List[Region] = []
        for detector, found in zip(self.detectors, per_detector):
            logger.info(f"{detector.name} flagged {len(found)} window(s)")
            regions.extend(found)
        return regions
