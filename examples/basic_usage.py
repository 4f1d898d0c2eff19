"""Basic usage example for the spectral fingerprint pipeline."""

import logging
from pathlib import Path

from video_screener.config import FingerprintConfig
from video_screener.frame_source import VideoFileFrameSource
from video_screener.pipeline import FingerprintPipeline
from video_screener.visualization import format_pattern_report

# Configure logging
logging.basicConfig(level=logging.INFO)

# Example: Analyze a single video
def analyze_single_video():
    """Analyze a single video for spectral artifacts."""
    pipeline = FingerprintPipeline(
        config=FingerprintConfig(frame_size=256, frame_count=5, max_workers=4)
    )

    video_path = Path("samples/clip.mp4")

    if not video_path.exists():
        print(f"Video not found: {video_path}")
        print("Please provide a valid video path")
        return

    def on_progress(percent):
        print(f"  progress: {percent:5.1f}%")

    with VideoFileFrameSource(video_path) as source:
        result = pipeline.analyze(source, on_progress=on_progress)

    verdict = "AI generated" if result.is_ai_generated else "Real video"
    print(f"\nAnalysis Results for: {video_path}")
    print(f"Verdict: {verdict} ({result.confidence:.0f}% confidence)")
    print(f"AI score: {result.ai_score:.4f} | Natural score: {result.real_score:.4f}")
    print("\nPattern Analysis:")
    for line in format_pattern_report(result.patterns):
        print(f"  {line}")


# Example: Batch analyze multiple videos
def batch_analyze():
    """Analyze every video in a directory with one pipeline."""
    pipeline = FingerprintPipeline()

    video_dir = Path("samples")
    video_paths = []
    for ext in ["*.mp4", "*.webm", "*.mov"]:
        video_paths.extend(video_dir.rglob(ext))

    if not video_paths:
        print("No sample videos found")
        return

    print(f"Analyzing {len(video_paths)} videos...\n")
    print("Batch Analysis Results:")
    print("-" * 60)
    for video_path in sorted(video_paths):
        with VideoFileFrameSource(video_path) as source:
            result = pipeline.analyze(source)
        print(
            f"{video_path.name:30s} | "
            f"AI: {str(result.is_ai_generated):5s} | "
            f"Confidence: {result.confidence:5.1f}%"
        )


if __name__ == "__main__":
    print("=" * 60)
    print("Spectral Fingerprint Pipeline - Basic Usage Example")
    print("=" * 60)

    # Run single video analysis
    analyze_single_video()

    print("\n" + "=" * 60)
    print("\n")

    # Run batch analysis
    batch_analyze()
