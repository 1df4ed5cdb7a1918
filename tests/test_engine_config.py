"""Tests for default and environment-driven settings."""

import pytest

from watermark_eraser.models.engine_config import EngineConfig


def test_defaults() -> None:
    config = EngineConfig()
    assert config.block_variance.block_size == 32
    assert config.block_variance.stride == 16
    assert config.consolidation.acceptance_threshold == 0.35
    assert config.consolidation.max_regions == 10
    assert config.inpainting.opacity == 0.3
    assert config.inpainting.patch_size % 2 == 1
    assert config.filters.smoothing_mix == 0.2
    assert config.detector_workers == 1


def test_from_env_reads_wm_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WM_MERGE_DISTANCE", "35")
    monkeypatch.setenv("WM_TYPE_TIE_BREAK", "mean_confidence")
    monkeypatch.setenv("WM_LOGO_ENABLED", "false")
    monkeypatch.setenv("WM_PATCH_SIZE", "9")
    monkeypatch.setenv("WM_DETECTOR_WORKERS", "3")

    config = EngineConfig.from_env()

    assert config.consolidation.merge_distance == 35.0
    assert config.consolidation.type_tie_break == "mean_confidence"
    assert config.sobel_edge.enabled is False
    assert config.inpainting.patch_size == 9
    assert config.detector_workers == 3


def test_from_env_falls_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WM_BLOCK_SIZE", raising=False)
    monkeypatch.delenv("WM_SHOW_PROGRESS", raising=False)
    config = EngineConfig.from_env()
    assert config.block_variance.block_size == 32
    assert config.inpainting.show_progress is False
