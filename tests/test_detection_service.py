"""Tests for the sliding-window detectors."""

import numpy as np
import pytest

from watermark_eraser.models.engine_config import EngineConfig
from watermark_eraser.models.region import RegionType
from watermark_eraser.services.detection_service import (
    BlockVarianceDetector,
    ContrastEdgeDetector,
    DetectionService,
    RepeatingPatternDetector,
    SobelEdgeDetector,
    TransparencyDetector,
)
from watermark_eraser.services.image_service import ImageService
from tests.helpers import checkerboard, noise, paint, solid

TILE_ORIGINS = [(0, 0), (96, 48), (48, 144)]


def _tiled_image():
    """192x192 noise with one random 48x48 tile stamped at three grid offsets."""
    buffer = noise(192, 192, seed=3)
    tile = np.random.default_rng(7).integers(0, 256, size=(48, 48, 3), dtype=np.uint8)
    for x, y in TILE_ORIGINS:
        buffer.rgba[y:y + 48, x:x + 48, :3] = tile
    return buffer


def _bright_square():
    buffer = noise(200, 200, seed=11)
    return paint(buffer, 80, 80, 40, 40, (230, 230, 230))


def test_window_origins_stay_inside_image() -> None:
    ys, xs = ImageService.window_origins(100, 70, 32, 16)
    assert ys.tolist() == [0, 16, 32, 48, 64]
    assert xs.tolist() == [0, 16, 32]


def test_window_origins_reject_bad_stride() -> None:
    with pytest.raises(ValueError):
        ImageService.window_origins(10, 10, 4, 0)


def test_window_stats_match_direct_computation() -> None:
    brightness = np.random.default_rng(1).uniform(0, 255, size=(40, 40))
    mean, variance, ys, xs = ImageService().window_stats(brightness, 8, 8)
    block = brightness[8:16, 16:24]
    assert mean[1, 2] == pytest.approx(block.mean())
    assert variance[1, 2] == pytest.approx(block.var())


def test_uniform_image_triggers_no_detector(config: EngineConfig) -> None:
    buffer = solid(100, 100, (90, 120, 150))
    assert DetectionService(config).detect_all(buffer) == []


def test_block_variance_flags_flat_bright_block() -> None:
    regions = BlockVarianceDetector().detect(_bright_square())
    assert len(regions) == 1
    region = regions[0]
    assert (region.x, region.y, region.width, region.height) == (80, 80, 32, 32)
    assert region.type == RegionType.TRANSPARENT
    assert region.confidence == pytest.approx(1.0)


def test_transparency_detector_flags_only_windows_inside_square() -> None:
    regions = TransparencyDetector().detect(_bright_square())
    assert len(regions) == 16
    for region in regions:
        assert region.type == RegionType.TRANSPARENT
        assert region.confidence == pytest.approx(0.8)
        assert 80 <= region.x and region.right <= 120
        assert 80 <= region.y and region.bottom <= 120


def test_edge_density_of_checkerboard() -> None:
    detector = ContrastEdgeDetector()
    brightness = ImageService.brightness(checkerboard(48, 4, 100, 160))
    density, ys, xs = detector.edge_density(brightness)
    # five steps per row and per column inside each 24px window
    assert density.shape == (3, 3)
    assert np.allclose(density, 240 / (2 * 24 * 23))


def test_contrast_edge_flags_repeated_lettering() -> None:
    regions = ContrastEdgeDetector().detect(checkerboard(48, 4, 100, 160))
    assert len(regions) == 9
    for region in regions:
        assert region.type == RegionType.TEXT
        # density score plus the repeated sub-pattern boost
        assert region.confidence == pytest.approx(240 / 1104 * 2.5 + 0.2)


def test_contrast_edge_ignores_busy_noise() -> None:
    assert ContrastEdgeDetector().detect(noise(96, 96, seed=5)) == []


def test_repeating_pattern_groups_identical_tiles() -> None:
    groups = RepeatingPatternDetector().group_windows(_tiled_image())
    repeated = [members for members in groups.values() if len(members) > 1]
    assert repeated == [TILE_ORIGINS]


def test_repeating_pattern_flags_every_tile() -> None:
    regions = RepeatingPatternDetector().detect(_tiled_image())
    assert sorted((r.x, r.y) for r in regions) == sorted(TILE_ORIGINS)
    for region in regions:
        assert region.type == RegionType.PATTERN
        assert region.confidence == pytest.approx(0.75)
        assert region.width == region.height == 48


def test_repeating_pattern_skips_featureless_windows() -> None:
    assert RepeatingPatternDetector().group_windows(solid(192, 192, (200, 200, 200))) == {}


def test_sobel_edge_flags_moderate_structure() -> None:
    regions = SobelEdgeDetector().detect(checkerboard(96, 8, 100, 140))
    assert len(regions) == 9
    for region in regions:
        assert region.type == RegionType.LOGO
        assert 0.4 <= region.confidence <= 1.0


def test_sobel_edge_ignores_flat_and_busy_content() -> None:
    detector = SobelEdgeDetector()
    assert detector.detect(solid(96, 96, (30, 30, 30))) == []
    assert detector.detect(noise(96, 96, seed=9)) == []


def test_detectors_do_not_touch_buffer(config: EngineConfig) -> None:
    buffer = _bright_square()
    before = buffer.data.copy()
    DetectionService(config).detect_all(buffer)
    assert np.array_equal(buffer.data, before)


def test_threaded_detection_matches_sequential(config: EngineConfig) -> None:
    buffer = _tiled_image()
    sequential = DetectionService(config).detect_all(buffer)
    config.detector_workers = 4
    threaded = DetectionService(config).detect_all(buffer)
    assert threaded == sequential


def test_disabled_detector_is_skipped(config: EngineConfig) -> None:
    config.repeating_pattern.enabled = False
    service = DetectionService(config)
    assert not any(isinstance(d, RepeatingPatternDetector) for d in service.detectors)
    assert all(r.type != RegionType.PATTERN for r in service.detect_all(_tiled_image()))
