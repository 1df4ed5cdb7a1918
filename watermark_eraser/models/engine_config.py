from __future__ import annotations
from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _f(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _i(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _b(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


# ── Detectors ────────────────────────────────────────────────────────
@dataclass
class BlockVarianceConfig:
    enabled: bool = True
    block_size: int = 32
    stride: int = 16                       # 50 % overlap
    min_variance: float = 0.0
    max_variance: float = 500.0
    variance_threshold: float = 1000.0     # confidence = (thr - var) / thr
    flat_variance: float = 100.0           # below → transparent, else pattern
    bright_threshold: float = 200.0
    dark_threshold: float = 100.0
    min_confidence: float = 0.3

    @classmethod
    def from_env(cls) -> "BlockVarianceConfig":
        return cls(
            enabled=_b("WM_BLOCK_ENABLED", True),
            block_size=_i("WM_BLOCK_SIZE", 32),
            stride=_i("WM_BLOCK_STRIDE", 16),
            min_variance=_f("WM_BLOCK_MIN_VARIANCE", 0.0),
            max_variance=_f("WM_BLOCK_MAX_VARIANCE", 500.0),
            variance_threshold=_f("WM_BLOCK_VARIANCE_THRESHOLD", 1000.0),
            flat_variance=_f("WM_BLOCK_FLAT_VARIANCE", 100.0),
            bright_threshold=_f("WM_BLOCK_BRIGHT_THRESHOLD", 200.0),
            dark_threshold=_f("WM_BLOCK_DARK_THRESHOLD", 100.0),
            min_confidence=_f("WM_BLOCK_MIN_CONFIDENCE", 0.3),
        )


@dataclass
class ContrastEdgeConfig:
    enabled: bool = True
    window_size: int = 24
    stride: int = 12
    gradient_threshold: float = 30.0
    min_density: float = 0.1
    max_density: float = 0.4
    score_scale: float = 2.5
    repeat_boost: float = 0.2
    repeat_min_count: int = 3
    min_confidence: float = 0.3

    @classmethod
    def from_env(cls) -> "ContrastEdgeConfig":
        return cls(
            enabled=_b("WM_TEXT_ENABLED", True),
            window_size=_i("WM_TEXT_WINDOW_SIZE", 24),
            stride=_i("WM_TEXT_STRIDE", 12),
            gradient_threshold=_f("WM_TEXT_GRADIENT_THRESHOLD", 30.0),
            min_density=_f("WM_TEXT_MIN_DENSITY", 0.1),
            max_density=_f("WM_TEXT_MAX_DENSITY", 0.4),
            score_scale=_f("WM_TEXT_SCORE_SCALE", 2.5),
            repeat_boost=_f("WM_TEXT_REPEAT_BOOST", 0.2),
            repeat_min_count=_i("WM_TEXT_REPEAT_MIN_COUNT", 3),
            min_confidence=_f("WM_TEXT_MIN_CONFIDENCE", 0.3),
        )


@dataclass
class TransparencyConfig:
    enabled: bool = True
    window_size: int = 16
    stride: int = 8
    std_threshold: float = 12.0
    bright_threshold: float = 200.0
    dark_threshold: float = 55.0
    confidence: float = 0.8
    min_confidence: float = 0.3

    @classmethod
    def from_env(cls) -> "TransparencyConfig":
        return cls(
            enabled=_b("WM_TRANSPARENT_ENABLED", True),
            window_size=_i("WM_TRANSPARENT_WINDOW_SIZE", 16),
            stride=_i("WM_TRANSPARENT_STRIDE", 8),
            std_threshold=_f("WM_TRANSPARENT_STD_THRESHOLD", 12.0),
            bright_threshold=_f("WM_TRANSPARENT_BRIGHT_THRESHOLD", 200.0),
            dark_threshold=_f("WM_TRANSPARENT_DARK_THRESHOLD", 55.0),
            confidence=_f("WM_TRANSPARENT_CONFIDENCE", 0.8),
            min_confidence=_f("WM_TRANSPARENT_MIN_CONFIDENCE", 0.3),
        )


@dataclass
class RepeatingPatternConfig:
    enabled: bool = True
    window_size: int = 48
    stride: int = 48
    sample_step: int = 6
    bin_width: int = 32
    min_texture_std: float = 4.0
    min_group_size: int = 3
    confidence_per_member: float = 0.25
    min_confidence: float = 0.3

    @classmethod
    def from_env(cls) -> "RepeatingPatternConfig":
        return cls(
            enabled=_b("WM_PATTERN_ENABLED", True),
            window_size=_i("WM_PATTERN_WINDOW_SIZE", 48),
            stride=_i("WM_PATTERN_STRIDE", 48),
            sample_step=_i("WM_PATTERN_SAMPLE_STEP", 6),
            bin_width=_i("WM_PATTERN_BIN_WIDTH", 32),
            min_texture_std=_f("WM_PATTERN_MIN_TEXTURE_STD", 4.0),
            min_group_size=_i("WM_PATTERN_MIN_GROUP_SIZE", 3),
            confidence_per_member=_f("WM_PATTERN_CONFIDENCE_PER_MEMBER", 0.25),
            min_confidence=_f("WM_PATTERN_MIN_CONFIDENCE", 0.3),
        )


@dataclass
class SobelEdgeConfig:
    enabled: bool = True
    window_size: int = 48
    stride: int = 24
    min_magnitude: float = 0.04            # normalised average gradient
    max_magnitude: float = 0.12
    min_confidence: float = 0.3

    @classmethod
    def from_env(cls) -> "SobelEdgeConfig":
        return cls(
            enabled=_b("WM_LOGO_ENABLED", True),
            window_size=_i("WM_LOGO_WINDOW_SIZE", 48),
            stride=_i("WM_LOGO_STRIDE", 24),
            min_magnitude=_f("WM_LOGO_MIN_MAGNITUDE", 0.04),
            max_magnitude=_f("WM_LOGO_MAX_MAGNITUDE", 0.12),
            min_confidence=_f("WM_LOGO_MIN_CONFIDENCE", 0.3),
        )


# ── Consolidation ────────────────────────────────────────────────────
@dataclass
class ConsolidationConfig:
    acceptance_threshold: float = 0.35
    merge_distance: float = 20.0
    max_regions: int = 10
    type_tie_break: str = "first"          # "first" | "mean_confidence"

    @classmethod
    def from_env(cls) -> "ConsolidationConfig":
        return cls(
            acceptance_threshold=_f("WM_ACCEPTANCE_THRESHOLD", 0.35),
            merge_distance=_f("WM_MERGE_DISTANCE", 20.0),
            max_regions=_i("WM_MAX_REGIONS", 10),
            type_tie_break=os.getenv("WM_TYPE_TIE_BREAK", "first"),
        )


# ── Inpainting ───────────────────────────────────────────────────────
@dataclass
class InpaintingConfig:
    # directional sampler (text / pattern)
    sample_offset: int = 4
    fallback_radius: int = 2
    # blend inversion (transparent)
    opacity: float = 0.3
    bright_threshold: float = 200.0
    dark_threshold: float = 55.0
    safe_min: float = 30.0
    safe_max: float = 200.0
    ring_radius: int = 24
    ring_samples: int = 16
    # patch search (logo)
    patch_size: int = 7
    search_radius: int = 30
    search_stride: int = 2
    target_stride: int = 2
    top_k: int = 3
    max_passes: int = 24
    show_progress: bool = False

    @classmethod
    def from_env(cls) -> "InpaintingConfig":
        return cls(
            sample_offset=_i("WM_SAMPLE_OFFSET", 4),
            fallback_radius=_i("WM_FALLBACK_RADIUS", 2),
            opacity=_f("WM_OPACITY", 0.3),
            bright_threshold=_f("WM_INPAINT_BRIGHT_THRESHOLD", 200.0),
            dark_threshold=_f("WM_INPAINT_DARK_THRESHOLD", 55.0),
            safe_min=_f("WM_SAFE_MIN", 30.0),
            safe_max=_f("WM_SAFE_MAX", 200.0),
            ring_radius=_i("WM_RING_RADIUS", 24),
            ring_samples=_i("WM_RING_SAMPLES", 16),
            patch_size=_i("WM_PATCH_SIZE", 7),
            search_radius=_i("WM_PATCH_SEARCH_RADIUS", 30),
            search_stride=_i("WM_PATCH_SEARCH_STRIDE", 2),
            target_stride=_i("WM_PATCH_TARGET_STRIDE", 2),
            top_k=_i("WM_PATCH_TOP_K", 3),
            max_passes=_i("WM_PATCH_MAX_PASSES", 24),
            show_progress=_b("WM_SHOW_PROGRESS", False),
        )


# ── Post-processing ──────────────────────────────────────────────────
@dataclass
class FilterConfig:
    smoothing_enabled: bool = True
    smoothing_mix: float = 0.2
    contrast_enabled: bool = True
    contrast_gain: float = 1.03
    brightness_offset: float = 0.0
    median_enabled: bool = True
    median_threshold: float = 30.0

    @classmethod
    def from_env(cls) -> "FilterConfig":
        return cls(
            smoothing_enabled=_b("WM_SMOOTHING_ENABLED", True),
            smoothing_mix=_f("WM_SMOOTHING_MIX", 0.2),
            contrast_enabled=_b("WM_CONTRAST_ENABLED", True),
            contrast_gain=_f("WM_CONTRAST_GAIN", 1.03),
            brightness_offset=_f("WM_BRIGHTNESS_OFFSET", 0.0),
            median_enabled=_b("WM_MEDIAN_ENABLED", True),
            median_threshold=_f("WM_MEDIAN_THRESHOLD", 30.0),
        )


@dataclass
class EngineConfig:
    """
    Value-object bundling every tunable of one processing run.
    EngineConfig() gives the documented defaults; from_env() reads the
    WM_* environment variables (a .env file is honoured).
    """
    block_variance: BlockVarianceConfig = field(default_factory=BlockVarianceConfig)
    contrast_edge: ContrastEdgeConfig = field(default_factory=ContrastEdgeConfig)
    transparency: TransparencyConfig = field(default_factory=TransparencyConfig)
    repeating_pattern: RepeatingPatternConfig = field(default_factory=RepeatingPatternConfig)
    sobel_edge: SobelEdgeConfig = field(default_factory=SobelEdgeConfig)
    consolidation: ConsolidationConfig = field(default_factory=ConsolidationConfig)
    inpainting: InpaintingConfig = field(default_factory=InpaintingConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    detector_workers: int = 1

    @classmethod
    def from_env(cls) -> "EngineConfig":
        return cls(
            block_variance=BlockVarianceConfig.from_env(),
            contrast_edge=ContrastEdgeConfig.from_env(),
            transparency=TransparencyConfig.from_env(),
            repeating_pattern=RepeatingPatternConfig.from_env(),
            sobel_edge=SobelEdgeConfig.from_env(),
            consolidation=ConsolidationConfig.from_env(),
            inpainting=InpaintingConfig.from_env(),
            filters=FilterConfig.from_env(),
            detector_workers=_i("WM_DETECTOR_WORKERS", 1),
        )
