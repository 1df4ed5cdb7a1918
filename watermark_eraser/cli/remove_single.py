import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..models.engine_config import EngineConfig
from ..pipeline.watermark_remover import log_processing_result, process_file


def _default_output(input_path: Path) -> Path:
    ext = os.getenv("OUTPUT_IMG_EXT") or ".png"
    return input_path.with_name(f"{input_path.stem}_clean{ext}")


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Remove watermark-like overlays from one image.")
    ap.add_argument("input", help="image to clean")
    ap.add_argument("-o", "--output", help="where to write the cleaned image "
                                           "(default: <input>_clean<OUTPUT_IMG_EXT>)")
    ap.add_argument("--env-file", help="extra .env file with WM_* settings")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = ap.parse_args(argv)

    # Load environment variables first
    if args.env_file:
        load_dotenv(args.env_file, override=True)
    else:
        load_dotenv()

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else _default_output(input_path)

    result = process_file(input_path, output_path, EngineConfig.from_env())
    log_processing_result(result, input_path)
    if result.success:
        print(f"📁 Cleaned image: {output_path}")
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
