"""Tests for per-type region reconstruction and patch search."""

import numpy as np
import pytest

from watermark_eraser.models.engine_config import InpaintingConfig
from watermark_eraser.models.region import Region, RegionType
from watermark_eraser.services.inpainting_service import InpaintingService
from watermark_eraser.services.patch_match_service import PatchMatchService
from tests.helpers import noise, paint, solid

BACKGROUND = (50, 100, 150)
ALL_TYPES = [RegionType.TEXT, RegionType.PATTERN, RegionType.TRANSPARENT, RegionType.LOGO]


def _region(x, y, w, h, kind) -> Region:
    return Region(x=x, y=y, width=w, height=h, confidence=0.9, type=kind)


@pytest.mark.parametrize("kind", ALL_TYPES)
def test_alpha_and_outside_pixels_untouched(kind: RegionType) -> None:
    buffer = noise(64, 64, seed=4)
    buffer.rgba[:, :, 3] = np.arange(64, dtype=np.uint8)[None, :] * 3
    before = buffer.rgba.copy()

    InpaintingService().inpaint(buffer, [_region(20, 24, 18, 12, kind)])

    assert np.array_equal(buffer.alpha, before[:, :, 3])
    outside = np.ones((64, 64), dtype=bool)
    outside[24:36, 20:38] = False
    assert np.array_equal(buffer.rgba[outside], before[outside])


@pytest.mark.parametrize("kind", [RegionType.TEXT, RegionType.PATTERN, RegionType.LOGO])
def test_mark_on_flat_background_is_removed(kind: RegionType) -> None:
    buffer = paint(solid(64, 64, BACKGROUND, alpha=200), 20, 20, 16, 16, (255, 0, 0))

    InpaintingService().inpaint(buffer, [_region(20, 20, 16, 16, kind)])

    assert np.all(buffer.rgb == np.array(BACKGROUND, dtype=np.uint8))
    assert np.all(buffer.alpha == 200)


def test_bright_overlay_falls_back_to_ring_samples() -> None:
    buffer = paint(solid(64, 64, (128, 128, 128)), 24, 24, 16, 16, (230, 230, 230))

    InpaintingService().inpaint_region(buffer, _region(24, 24, 16, 16, RegionType.TRANSPARENT))

    # inverting 230 gives ~219, outside the plausible band
    assert np.all(buffer.rgb == 128)


def test_moderate_overlay_is_unblended() -> None:
    buffer = paint(solid(64, 64, (128, 128, 128)), 24, 24, 16, 16, (210, 210, 210))

    InpaintingService().inpaint_region(buffer, _region(24, 24, 16, 16, RegionType.TRANSPARENT))

    # (210 - 0.3 * 255) / 0.7
    assert np.all(buffer.rgb[24:40, 24:40] == 191)
    assert np.all(buffer.rgb[:24] == 128)


def test_dark_overlay_is_unblended() -> None:
    buffer = paint(solid(64, 64, (128, 128, 128)), 24, 24, 16, 16, (35, 35, 35))

    InpaintingService().inpaint_region(buffer, _region(24, 24, 16, 16, RegionType.TRANSPARENT))

    assert np.all(buffer.rgb[24:40, 24:40] == 50)


@pytest.mark.parametrize("kind", [RegionType.TEXT, RegionType.PATTERN, RegionType.LOGO])
def test_region_covering_whole_image_keeps_pixels(kind: RegionType) -> None:
    buffer = noise(24, 24, seed=8)
    before = buffer.data.copy()

    InpaintingService().inpaint(buffer, [_region(-4, -4, 40, 40, kind)])

    assert np.array_equal(buffer.data, before)


def test_region_outside_image_is_skipped() -> None:
    buffer = noise(24, 24, seed=8)
    before = buffer.data.copy()
    InpaintingService().inpaint(buffer, [_region(100, 100, 10, 10, RegionType.TEXT)])
    assert np.array_equal(buffer.data, before)


def test_directional_fill_interpolates_between_borders() -> None:
    buffer = solid(60, 20, (0, 0, 0))
    buffer.rgba[:, :20, :3] = 40
    buffer.rgba[:, 40:, :3] = 120
    paint(buffer, 20, 0, 20, 20, (255, 255, 255))

    InpaintingService().inpaint_region(buffer, _region(20, 0, 20, 20, RegionType.PATTERN))

    rebuilt = buffer.rgb[10, 20:40, 0].astype(int)
    assert np.all(np.diff(rebuilt) >= 0)
    assert 40 <= rebuilt.min() and rebuilt.max() <= 120


def test_patch_similarity_with_itself_is_one() -> None:
    image = noise(32, 32, seed=2).rgb.astype(np.float64)
    known = np.ones((32, 32), dtype=bool)
    service = PatchMatchService()
    assert service.patch_similarity(image, known, (10, 12), (10, 12)) == pytest.approx(1.0)
    assert service.patch_similarity(image, known, (0, 0), (0, 0)) == pytest.approx(1.0)


def test_patch_similarity_stays_in_unit_range() -> None:
    image = noise(32, 32, seed=6).rgb.astype(np.float64)
    known = np.random.default_rng(1).random((32, 32)) > 0.3
    service = PatchMatchService()
    for target, source in [((3, 3), (20, 20)), ((0, 31), (31, 0)), ((15, 15), (16, 15))]:
        assert 0.0 <= service.patch_similarity(image, known, target, source) <= 1.0


def test_patch_similarity_without_shared_pixels_is_zero() -> None:
    image = noise(32, 32, seed=6).rgb.astype(np.float64)
    known = np.zeros((32, 32), dtype=bool)
    assert PatchMatchService().patch_similarity(image, known, (5, 5), (20, 20)) == 0.0


def test_patch_fill_copies_matching_texture() -> None:
    stripes = np.zeros((40, 40, 3))
    stripes[:, ::2] = 200.0
    known = np.ones((40, 40), dtype=bool)
    known[16:24, 16:24] = False
    image = stripes.copy()
    image[~known] = 0.0

    filled, now_known = PatchMatchService().fill(image, known, (16, 16, 24, 24))

    assert now_known.all()
    assert np.allclose(filled, stripes)


def test_even_patch_size_rejected() -> None:
    with pytest.raises(ValueError):
        PatchMatchService(InpaintingConfig(patch_size=6))
