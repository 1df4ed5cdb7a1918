"""
Watermark Remover Pipeline
Detect → consolidate → inpaint → post-process, packaged as a ProcessingResult.
This is the only step that talks to the decode/encode collaborator.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Union

from ..models.engine_config import EngineConfig
from ..models.pixel_buffer import PixelBuffer
from ..models.processing_result import ProcessingResult
from ..repositories.image_repository import ImageRepository
from ..services.consolidation_service import ConsolidationService
from ..services.detection_service import DetectionService
from ..services.filter_service import FilterService
from ..services.inpainting_service import InpaintingService

logger = logging.getLogger(__name__)


def _failure(message: str, start: float) -> ProcessingResult:
    logger.error(message)
    return ProcessingResult(
        success=False,
        regions=(),
        processing_time=time.perf_counter() - start,
        error=message,
    )


def remove_watermarks(
    buffer: PixelBuffer,
    config: Optional[EngineConfig] = None,
    *,
    detection_service: Optional[DetectionService] = None,
    consolidation_service: Optional[ConsolidationService] = None,
    inpainting_service: Optional[InpaintingService] = None,
    filter_service: Optional[FilterService] = None,
) -> ProcessingResult:
    """
    Run the full engine over one image.

    The caller's buffer is never modified: the pipeline works on a copy and
    returns it as ``result.output`` only when every stage completed.

    Args:
        buffer: Decoded RGBA pixels
        config: Tunables for every stage (documented defaults when omitted)
        *_service: Optional pre-built stages, mostly for tests

    Returns:
        ProcessingResult: success flag, cleaned copy, final regions, timing
    """
    start = time.perf_counter()
    config = config or EngineConfig()

    # 1. Input errors
    try:
        buffer.validate()
    except ValueError as err:
        return _failure(f"Invalid input: {err}", start)

    # 2. Working copy (the only buffer we mutate)
    try:
        working = buffer.copy()
    except MemoryError:
        return _failure("Resource error: unable to allocate the working buffer", start)

    detection_service = detection_service or DetectionService(config)
    consolidation_service = consolidation_service or ConsolidationService(config.consolidation)
    inpainting_service = inpainting_service or InpaintingService(config.inpainting)
    filter_service = filter_service or FilterService(config.filters)

    try:
        candidates = detection_service.detect_all(working)
        regions = consolidation_service.consolidate(candidates)

        # No regions is a no-op: hand back the pixels untouched
        if regions:
            inpainting_service.inpaint(working, regions)
            filter_service.apply_all(working)
    except MemoryError:
        return _failure("Resource error: ran out of memory while processing", start)
    except Exception as err:
        logger.exception("Watermark removal failed")
        return _failure(f"Processing failed: {err}", start)

    elapsed = time.perf_counter() - start
    logger.info(f"Processed {buffer.width}x{buffer.height} image: {len(regions)} region(s) in {elapsed:.3f}s")
    return ProcessingResult(
        success=True,
        output=working,
        regions=tuple(regions),
        processing_time=elapsed,
    )


def process_file(
    path: Union[str, Path],
    output_path: Union[str, Path, None] = None,
    config: Optional[EngineConfig] = None,
    *,
    image_repository: Optional[ImageRepository] = None,
) -> ProcessingResult:
    """
    Decode *path*, run the engine and, when *output_path* is given and the
    run succeeded, encode the cleaned image there.  A save error turns the
    run into a failure.
    """
    start = time.perf_counter()
    image_repository = image_repository or ImageRepository()
    try:
        buffer = image_repository.load(path)
    except (FileNotFoundError, ValueError, OSError) as err:
        return _failure(f"Failed to load image: {err}", start)

    result = remove_watermarks(buffer, config)
    if result.success and output_path is not None:
        try:
            saved = image_repository.save(result.output, output_path)
        except (OSError, ValueError) as err:
            return _failure(f"Failed to save image: {err}", start)
        logger.info(f"Saved cleaned image to {saved}")
    return result


def log_processing_result(result: ProcessingResult, source: Union[str, Path, None] = None) -> None:
    """
    Log one processing run in a human-readable block.

    Args:
        result: Result returned by remove_watermarks/process_file
        source: Optional input path shown in the header
    """
    name = Path(source).name if source else "image"
    print(f"{'='*60}")
    if not result.success:
        print(f"❌ {name}: {result.error}")
        print(f"{'='*60}\n")
        return

    print(f"🧼 {name}: {len(result.regions)} watermark region(s) in {result.processing_time:.2f}s")
    for i, region in enumerate(result.regions, 1):
        print(f"{i:2d}. {region.type.value:<11} | "
              f"Confidence: {region.confidence:4.2f} | "
              f"Box: ({region.x}, {region.y}) {region.width}x{region.height}")
    print(f"{'='*60}\n")
