"""Tests for the single-image command line entry point."""

from pathlib import Path

import pytest

from watermark_eraser.cli.remove_single import main
from watermark_eraser.repositories.image_repository import ImageRepository
from tests.helpers import noise, paint


def test_cli_writes_default_output(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OUTPUT_IMG_EXT", raising=False)
    source = tmp_path / "photo.png"
    ImageRepository.save(paint(noise(96, 96, seed=1), 32, 32, 32, 32, (240, 240, 240)), source)

    assert main([str(source)]) == 0
    assert (tmp_path / "photo_clean.png").is_file()


def test_cli_explicit_output_and_env_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WM_MAX_REGIONS", "10")
    source = tmp_path / "photo.png"
    target = tmp_path / "cleaned" / "result.jpg"
    env_file = tmp_path / "tuning.env"
    env_file.write_text("WM_MAX_REGIONS=2\n")
    ImageRepository.save(noise(64, 64, seed=2), source)

    assert main([str(source), "-o", str(target), "--env-file", str(env_file)]) == 0
    assert target.is_file()


def test_cli_missing_input_fails(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    assert main([str(tmp_path / "missing.png")]) == 1
    assert "Failed to load image" in capsys.readouterr().out


def test_cli_bad_output_format_fails_cleanly(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    source = tmp_path / "photo.png"
    ImageRepository.save(noise(48, 48, seed=3), source)

    assert main([str(source), "-o", str(tmp_path / "photo.xyz")]) == 1
    assert "Failed to save image" in capsys.readouterr().out
