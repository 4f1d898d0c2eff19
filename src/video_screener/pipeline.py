"""Fingerprint pipeline - samples frames, scores their spectra, decides.

Frames are requested one at a time from the frame source. Once all frames
are in memory their spectra are computed and scored (optionally on a
thread pool), the scores are averaged, and a weighted rule turns the
average into a verdict.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Tuple

import numpy as np
from pydantic import Field
from pydantic.dataclasses import dataclass

from video_screener.config import FingerprintConfig, ReportThresholds, ScoreWeights
from video_screener.exceptions import AnalysisCancelledError
from video_screener.frame_source import FrameSource, acquire_frames
from video_screener.patterns import PatternClassifier, PatternScores, average_scores
from video_screener.spectrum import SpectrumProcessor, normalize, to_uint8

logger = logging.getLogger(__name__)

__all__ = [
    'AnalysisResult',
    'FingerprintPipeline',
    'PipelineState',
    'Verdict',
    'analyze',
    'build_details',
    'compute_verdict',
    'sample_timestamps',
]

ProgressCallback = Callable[[float], None]

ACQUISITION_SHARE = 50.0  # Percent of progress spent acquiring frames
MAX_CONFIDENCE = 99.0

AI_FINDINGS = {
    "grid": "Strong grid pattern detected - characteristic of CNN upsampling",
    "dots": "Regular bright dots found - indicates periodic artifacts",
    "cross": "Cross/plus shape pattern - common in GAN-generated content",
    "checker": "Checkerboard effect visible - typical of diffusion models",
}

NATURAL_FINDINGS = [
    "Smooth, natural frequency distribution detected",
    "No geometric patterns or regular artifacts found",
    "Frequency spectrum matches real camera footage",
]


class PipelineState(Enum):
    """Stages of one analysis run."""

    IDLE = "idle"
    SAMPLING = "sampling"
    PER_FRAME = "per_frame"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"


class Verdict(NamedTuple):
    """Outcome of the decision rule."""

    is_ai_generated: bool
    confidence: float  # 0-99
    ai_score: float
    real_score: float


class AnalysisResult(NamedTuple):
    """Result of analyzing one video."""

    is_ai_generated: bool
    confidence: float  # 0-99
    patterns: PatternScores  # Mean over all sampled frames
    spectrum: np.ndarray  # Centered log-magnitude spectrum of the first frame (dB)
    details: List[str]  # Human-readable findings
    frame_scores: List[PatternScores]  # Per-frame scores in sampling order
    timestamps: List[float]  # Sampled timestamps in request order
    ai_score: float
    real_score: float


def sample_timestamps(duration: float, frame_count: int) -> List[float]:
    """
    Evenly spaced sample times that skip the very start and end.

    Returns D*i/(N+1) for i = 1..N.

    Raises:
        ValueError: If duration is not positive or frame_count < 1
    """
    if not duration > 0:
        raise ValueError(f"Duration must be positive, got {duration}")
    if frame_count < 1:
        raise ValueError(f"frame_count must be at least 1, got {frame_count}")

    return [duration * i / (frame_count + 1) for i in range(1, frame_count + 1)]


def compute_verdict(patterns: PatternScores, weights: ScoreWeights) -> Verdict:
    """
    Weigh artifact scores against the smoothness score.

    The video is flagged only when the AI score is strictly greater than
    the natural score; a tie counts as natural.
    """
    ai_score = (
        patterns.grid_pattern * weights.grid
        + patterns.bright_dots * weights.dots
        + patterns.cross_shape * weights.cross
        + patterns.checkerboard * weights.checker
    )
    real_score = patterns.smooth_gradient

    is_ai = ai_score > real_score
    confidence = min(abs(ai_score - real_score) * 100, MAX_CONFIDENCE)

    return Verdict(
        is_ai_generated=is_ai,
        confidence=confidence,
        ai_score=ai_score,
        real_score=real_score,
    )


def build_details(
    patterns: PatternScores, is_ai_generated: bool, thresholds: ReportThresholds
) -> List[str]:
    """List the findings that explain a verdict."""
    if not is_ai_generated:
        return list(NATURAL_FINDINGS)

    details = []
    if patterns.grid_pattern > thresholds.grid:
        details.append(AI_FINDINGS["grid"])
    if patterns.bright_dots > thresholds.dots:
        details.append(AI_FINDINGS["dots"])
    if patterns.cross_shape > thresholds.cross:
        details.append(AI_FINDINGS["cross"])
    if patterns.checkerboard > thresholds.checker:
        details.append(AI_FINDINGS["checker"])
    return details


class _ProgressReporter:
    """Forwards non-decreasing progress values to an optional observer."""

    def __init__(self, callback: Optional[ProgressCallback]):
        self.callback = callback
        self.last = 0.0

    def report(self, percent: float) -> None:
        self.last = max(self.last, min(percent, 100.0))
        if self.callback is None:
            return
        try:
            self.callback(self.last)
        except Exception as e:
            # Observers are advisory and never fail a run
            logger.warning(f"Progress callback raised {type(e).__name__}: {e}")


def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelledError("Analysis cancelled by caller")


@dataclass
class FingerprintPipeline:
    """
    Spectral fingerprint detector for AI-generated video.

    Samples frames, computes a high-passed FFT spectrum of each, and scores
    the spectra for periodic upsampling artifacts.
    """

    config: FingerprintConfig = Field(default_factory=FingerprintConfig)

    def __post_init__(self):
        """Initialize sub-processors."""
        # Frames are processed in parallel when there is more than one;
        # a single frame gets the workers for its row/column passes instead.
        frame_parallel = self.config.frame_count > 1
        self.spectrum_processor = SpectrumProcessor(
            frame_size=self.config.frame_size,
            max_workers=1 if frame_parallel else self.config.max_workers,
        )
        self.classifier = PatternClassifier.from_config(self.config)

    def analyze_frame(self, frame: np.ndarray) -> Tuple[np.ndarray, PatternScores]:
        """
        Compute the spectrum of one frame and score it.

        Returns:
            Tuple of (log-magnitude spectrum, pattern scores)
        """
        spectrum = self.spectrum_processor.compute_spectrum(frame)
        scores = self.classifier.classify(to_uint8(normalize(spectrum)))
        return spectrum, scores

    def _acquire(
        self,
        source: FrameSource,
        timestamps: List[float],
        progress: _ProgressReporter,
        cancel_event: Optional[threading.Event],
    ) -> List[np.ndarray]:
        n = len(timestamps)
        frames: List[Optional[np.ndarray]] = [None] * n

        _check_cancelled(cancel_event)
        for result in acquire_frames(source, timestamps, self.config.frame_size):
            if result.error is not None:
                raise result.error
            frames[result.index] = self.spectrum_processor.validate_frame(result.frame)
            logger.debug(f"Acquired frame {result.index + 1}/{n} at t={result.timestamp:.3f}s")
            progress.report((result.index + 1) / n * ACQUISITION_SHARE)
            _check_cancelled(cancel_event)

        return frames

    def _process(
        self,
        frames: List[np.ndarray],
        progress: _ProgressReporter,
        cancel_event: Optional[threading.Event],
    ) -> List[Tuple[np.ndarray, PatternScores]]:
        n = len(frames)
        share = 100.0 - ACQUISITION_SHARE
        results: List[Optional[Tuple[np.ndarray, PatternScores]]] = [None] * n

        if self.config.max_workers > 1 and n > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                futures = {
                    executor.submit(self.analyze_frame, frame): index
                    for index, frame in enumerate(frames)
                }
                completed = 0
                try:
                    for future in as_completed(futures):
                        # Completion order is arbitrary, results are keyed by frame index
                        results[futures[future]] = future.result()
                        completed += 1
                        progress.report(ACQUISITION_SHARE + completed / n * share)
                        _check_cancelled(cancel_event)
                except BaseException:
                    for future in futures:
                        future.cancel()
                    raise
        else:
            for index, frame in enumerate(frames):
                _check_cancelled(cancel_event)
                results[index] = self.analyze_frame(frame)
                progress.report(ACQUISITION_SHARE + (index + 1) / n * share)

        return results

    def analyze(
        self,
        source: FrameSource,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> AnalysisResult:
        """
        Analyze a video for spectral artifacts of generative models.

        Args:
            source: Frame source exposing a duration and get_frame()
            on_progress: Optional observer called with percentages in [0, 100]
            cancel_event: Optional event; once set the run is abandoned

        Returns:
            AnalysisResult with verdict, confidence, scores and spectrum

        Raises:
            FrameUnavailableError: If any frame cannot be acquired
            AnalysisCancelledError: If cancel_event is set during the run
            ValueError: If the source duration or a frame shape is invalid
        """
        state = PipelineState.IDLE

        def transition(new_state: PipelineState) -> None:
            nonlocal state
            logger.debug(f"Pipeline state: {state.value} -> {new_state.value}")
            state = new_state

        progress = _ProgressReporter(on_progress)
        n = self.config.frame_count

        try:
            transition(PipelineState.SAMPLING)
            timestamps = sample_timestamps(source.duration, n)
            logger.info(
                f"Analyzing {n} frames of {self.config.frame_size}x{self.config.frame_size} "
                f"over {source.duration:.2f}s"
            )
            frames = self._acquire(source, timestamps, progress, cancel_event)

            transition(PipelineState.PER_FRAME)
            processed = self._process(frames, progress, cancel_event)
            del frames

            transition(PipelineState.AGGREGATING)
            frame_scores = [scores for _, scores in processed]
            patterns = average_scores(frame_scores)
            verdict = compute_verdict(patterns, self.config.weights)
            details = build_details(
                patterns, verdict.is_ai_generated, self.config.report_thresholds
            )

            transition(PipelineState.DONE)
        except Exception as e:
            logger.error(f"Analysis failed during {state.value}: {e}")
            transition(PipelineState.FAILED)
            raise

        result = AnalysisResult(
            is_ai_generated=verdict.is_ai_generated,
            confidence=verdict.confidence,
            patterns=patterns,
            spectrum=processed[0][0],
            details=details,
            frame_scores=frame_scores,
            timestamps=timestamps,
            ai_score=verdict.ai_score,
            real_score=verdict.real_score,
        )

        logger.info(
            f"Analysis complete: ai_generated={result.is_ai_generated}, "
            f"confidence={result.confidence:.1f}, ai_score={result.ai_score:.4f}, "
            f"real_score={result.real_score:.4f}"
        )

        return result


def analyze(
    frame_source: FrameSource,
    frame_count: int = 5,
    frame_size: int = 256,
    on_progress: Optional[ProgressCallback] = None,
    config: Optional[FingerprintConfig] = None,
    max_workers: int = 1,
    cancel_event: Optional[threading.Event] = None,
) -> AnalysisResult:
    """
    Analyze a frame source with a one-off pipeline.

    When config is given it takes precedence over frame_count, frame_size
    and max_workers.
    """
    if config is None:
        config = FingerprintConfig(
            frame_size=frame_size, frame_count=frame_count, max_workers=max_workers
        )
    pipeline = FingerprintPipeline(config=config)
    return pipeline.analyze(frame_source, on_progress=on_progress, cancel_event=cancel_event)
