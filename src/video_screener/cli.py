"""CLI tool for spectral fingerprint detection of AI-generated video.

Usage:
    video-screener clip.mp4
    video-screener clip.mp4 --frames 8 --output outputs/
    video-screener frames_dir/ --fps 2 --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import matplotlib

# Non-interactive backend, plots are only written to disk
matplotlib.use("Agg")

from video_screener.config import FingerprintConfig
from video_screener.exceptions import ScreenerError
from video_screener.frame_source import (
    SUPPORTED_IMAGE_EXTENSIONS,
    ArrayFrameSource,
    VideoFileFrameSource,
)
from video_screener.pipeline import AnalysisResult, FingerprintPipeline
from video_screener.visualization import format_pattern_report, save_spectrum_plot

logger = logging.getLogger(__name__)

EXIT_NATURAL = 0
EXIT_ERROR = 1
EXIT_AI_GENERATED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="video-screener",
        description="Detect AI-generated video from frequency-domain fingerprints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  video-screener clip.mp4
  video-screener clip.mp4 --frames 8 --workers 4 --output outputs/
  video-screener frames_dir/ --fps 2 --json

Exit codes: 0 natural footage, 2 AI generated, 1 error
        """,
    )

    parser.add_argument(
        "input_path",
        type=str,
        help="Video file (.mp4, .webm, .mov, .mkv, .avi) or a directory of frame images",
    )
    parser.add_argument(
        "--frames",
        "-n",
        type=int,
        default=5,
        help="Number of frames to sample (default: 5)",
    )
    parser.add_argument(
        "--size",
        "-s",
        type=int,
        default=256,
        help="Analysis window side length, power of 2 (default: 256)",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=1,
        help="Worker threads for per-frame analysis (default: 1)",
    )
    parser.add_argument(
        "--fps",
        type=float,
        default=1.0,
        help="Frame rate assumed for a directory of frame images (default: 1.0)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Save the spectrum plot to this file or directory",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable informational logging",
    )
    return parser


def result_to_dict(result: AnalysisResult) -> dict:
    """JSON-serializable view of a result (the spectrum itself is omitted)."""
    return {
        "is_ai_generated": result.is_ai_generated,
        "confidence": result.confidence,
        "ai_score": result.ai_score,
        "real_score": result.real_score,
        "patterns": result.patterns._asdict(),
        "details": list(result.details),
        "timestamps": list(result.timestamps),
        "frame_scores": [scores._asdict() for scores in result.frame_scores],
        "spectrum_shape": list(result.spectrum.shape),
    }


def print_report(result: AnalysisResult, input_path: Path) -> None:
    verdict = "AI GENERATED" if result.is_ai_generated else "REAL VIDEO"

    print("\n" + "=" * 60)
    print("SPECTRAL FINGERPRINT ANALYSIS")
    print("=" * 60)
    print(f"\nInput: {input_path.name}")
    print(f"Verdict: {verdict}")
    print(f"Confidence: {round(result.confidence)}%")

    print("\nFindings:")
    for detail in result.details:
        print(f"  - {detail}")

    print("\nPattern Analysis:")
    for line in format_pattern_report(result.patterns):
        print(f"  {line}")
    print("=" * 60)


def _resolve_plot_path(output: str, input_path: Path) -> Path:
    output_path = Path(output)
    if output_path.suffix in [".png", ".jpg", ".pdf", ".svg"]:
        return output_path
    output_path.mkdir(parents=True, exist_ok=True)
    return output_path / f"{input_path.stem}_spectrum.png"


def _open_source(input_path: Path, fps: float):
    if input_path.is_dir():
        image_paths = sorted(
            p for p in input_path.iterdir() if p.suffix.lower() in SUPPORTED_IMAGE_EXTENSIONS
        )
        if not image_paths:
            raise ValueError(f"No frame images found in {input_path}")
        return ArrayFrameSource.from_images(image_paths, fps=fps)
    return VideoFileFrameSource(input_path)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    input_path = Path(args.input_path)
    if not input_path.exists():
        logger.error(f"Input not found: {input_path}")
        return EXIT_ERROR

    try:
        config = FingerprintConfig(
            frame_size=args.size, frame_count=args.frames, max_workers=args.workers
        )
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_ERROR

    pipeline = FingerprintPipeline(config=config)

    try:
        source = _open_source(input_path, args.fps)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read input: {e}")
        return EXIT_ERROR

    try:
        result = pipeline.analyze(source)
    except (ScreenerError, ValueError) as e:
        logger.error(f"Analysis failed: {e}", exc_info=args.verbose)
        return EXIT_ERROR
    finally:
        if isinstance(source, VideoFileFrameSource):
            source.close()

    if args.json:
        print(json.dumps(result_to_dict(result), indent=2))
    else:
        print_report(result, input_path)

    if args.output:
        plot_path = _resolve_plot_path(args.output, input_path)
        try:
            save_spectrum_plot(result, plot_path, title=input_path.name)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save spectrum plot: {e}")
            return EXIT_ERROR
        if not args.json:
            print(f"\nSaved spectrum to: {plot_path}")

    return EXIT_AI_GENERATED if result.is_ai_generated else EXIT_NATURAL


if __name__ == "__main__":
    sys.exit(main())
