"""Video Screener - AI Video Detection via spectral fingerprints"""

__version__ = "0.1.0"

from .config import FingerprintConfig, ReportThresholds, ScoreWeights
from .exceptions import (
    AnalysisCancelledError,
    FrameUnavailableError,
    InvalidLengthError,
    ScreenerError,
)
from .frame_source import ArrayFrameSource, FrameSource, VideoFileFrameSource
from .patterns import PatternClassifier, PatternScores
from .pipeline import AnalysisResult, FingerprintPipeline, analyze

__all__ = [
    "AnalysisCancelledError",
    "AnalysisResult",
    "ArrayFrameSource",
    "FingerprintConfig",
    "FingerprintPipeline",
    "FrameSource",
    "FrameUnavailableError",
    "InvalidLengthError",
    "PatternClassifier",
    "PatternScores",
    "ReportThresholds",
    "ScoreWeights",
    "ScreenerError",
    "VideoFileFrameSource",
    "analyze",
]
