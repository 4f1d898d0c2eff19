"""Frame sources: turn a video (or a stack of frames) into square RGBA samples."""

import logging
from pathlib import Path
from typing import Iterator, List, NamedTuple, Optional, Protocol, Sequence, Union, runtime_checkable

import cv2
import numpy as np
from PIL import Image

from video_screener.exceptions import FrameUnavailableError

logger = logging.getLogger(__name__)

__all__ = [
    'FrameSource',
    'FrameResult',
    'VideoFileFrameSource',
    'ArrayFrameSource',
    'acquire_frames',
    'validate_video_file',
]

SUPPORTED_VIDEO_EXTENSIONS = [".mp4", ".webm", ".mov", ".mkv", ".avi"]
SUPPORTED_IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".webp"]
MAX_VIDEO_FILE_SIZE = 3000 * 1024 * 1024  # 3000 MB


@runtime_checkable
class FrameSource(Protocol):
    """Anything that can produce a square RGBA frame for a timestamp."""

    duration: float

    def get_frame(self, timestamp: float, size: int) -> np.ndarray:
        """Return a (size, size, 4) uint8 frame or raise FrameUnavailableError."""
        ...


class FrameResult(NamedTuple):
    """One acquisition attempt: either a frame or the error that prevented it."""

    index: int
    timestamp: float
    frame: Optional[np.ndarray]
    error: Optional[FrameUnavailableError] = None


def acquire_frames(
    source: FrameSource, timestamps: Sequence[float], size: int
) -> Iterator[FrameResult]:
    """
    Request frames one at a time, in timestamp order.

    The next request is only issued after the previous one returned. The
    stream ends right after the first failed request.

    Args:
        source: Frame source to read from
        timestamps: Timestamps to sample, in request order
        size: Side length of the requested frames

    Yields:
        FrameResult for each request
    """
    for index, timestamp in enumerate(timestamps):
        try:
            frame = source.get_frame(timestamp, size)
        except FrameUnavailableError as e:
            logger.warning(f"Frame {index} unavailable: {e}")
            yield FrameResult(index=index, timestamp=timestamp, frame=None, error=e)
            return
        yield FrameResult(index=index, timestamp=timestamp, frame=frame)


def validate_video_file(video_path: Union[str, Path]) -> Path:
    """
    Check that a video file exists, is non-empty and has a supported format.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is empty, too large or of an unsupported format
    """
    path = Path(video_path)
    if not path.exists():
        raise FileNotFoundError(f"Video not found: {video_path}")

    if path.suffix.lower() not in SUPPORTED_VIDEO_EXTENSIONS:
        raise ValueError(
            f"Unsupported video format: {path.suffix} "
            f"(supported: {', '.join(SUPPORTED_VIDEO_EXTENSIONS)})"
        )

    file_size = path.stat().st_size
    if file_size == 0:
        raise ValueError(f"Video file is empty: {video_path}")
    if file_size > MAX_VIDEO_FILE_SIZE:
        raise ValueError(
            f"Video file is {file_size / (1024 * 1024):.2f} MB, "
            f"exceeds maximum of {MAX_VIDEO_FILE_SIZE / (1024 * 1024):.0f} MB"
        )

    return path


class VideoFileFrameSource:
    """
    Reads frames from a video file with OpenCV.

    Every frame is scaled to a square of the requested size (the aspect
    ratio is not preserved) and returned as RGBA with an opaque alpha
    channel. Use as a context manager, or call close() when done.
    """

    def __init__(self, video_path: Union[str, Path]):
        self.path = validate_video_file(video_path)

        self._capture = cv2.VideoCapture(str(self.path))
        if not self._capture.isOpened():
            raise ValueError(f"Cannot open video: {video_path}")

        self.fps = self._capture.get(cv2.CAP_PROP_FPS) or 0.0
        self.frame_count = int(self._capture.get(cv2.CAP_PROP_FRAME_COUNT))

        if self.fps <= 0 or self.frame_count <= 0:
            self.close()
            raise ValueError(f"Cannot determine duration of video: {video_path}")

        self.duration = self.frame_count / self.fps

        logger.debug(
            f"Opened video {self.path.name}: {self.frame_count} frames at "
            f"{self.fps:.2f} fps ({self.duration:.2f}s)"
        )

    def get_frame(self, timestamp: float, size: int) -> np.ndarray:
        """
        Seek to a timestamp and return the frame there.

        Args:
            timestamp: Time in seconds
            size: Output side length

        Returns:
            RGBA frame (size, size, 4), uint8

        Raises:
            FrameUnavailableError: If the source is closed, the timestamp is
                outside the video, or decoding fails
        """
        if self._capture is None:
            raise FrameUnavailableError(timestamp, "video source is closed")
        if timestamp < 0 or timestamp > self.duration:
            raise FrameUnavailableError(
                timestamp, f"outside video duration of {self.duration:.3f}s"
            )

        frame_index = min(int(timestamp * self.fps), self.frame_count - 1)
        self._capture.set(cv2.CAP_PROP_POS_FRAMES, frame_index)
        ret, frame = self._capture.read()
        if not ret or frame is None:
            raise FrameUnavailableError(timestamp, f"could not decode frame {frame_index}")

        resized = cv2.resize(frame, (size, size), interpolation=cv2.INTER_AREA)
        # OpenCV decodes BGR
        return cv2.cvtColor(resized, cv2.COLOR_BGR2RGBA)

    def close(self) -> None:
        """Release the underlying capture."""
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def __enter__(self) -> "VideoFileFrameSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _fit_frame(frame: np.ndarray, size: int) -> np.ndarray:
    """Scale a frame to size x size and convert it to RGBA uint8."""
    if frame.dtype != np.uint8:
        logger.warning(f"Converting frame from {frame.dtype} to uint8")
        frame = np.clip(frame, 0, 255).astype(np.uint8)

    img = Image.fromarray(frame)
    if img.size != (size, size):
        img = img.resize((size, size), Image.Resampling.BILINEAR)
    return np.array(img.convert("RGBA"), dtype=np.uint8)


class ArrayFrameSource:
    """
    Serves frames held in memory as if they were a video at a fixed rate.

    The frame shown at time t is frames[floor(t * fps)].
    """

    def __init__(self, frames: Sequence[np.ndarray], fps: float = 1.0):
        if len(frames) == 0:
            raise ValueError("At least one frame is required")
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")

        self.frames: List[np.ndarray] = [np.asarray(f) for f in frames]
        for i, frame in enumerate(self.frames):
            if frame.ndim not in (2, 3) or (frame.ndim == 3 and frame.shape[2] not in (3, 4)):
                raise ValueError(f"Frame {i} has unsupported shape {frame.shape}")

        self.fps = fps
        self.duration = len(self.frames) / fps

    @classmethod
    def from_images(
        cls, image_paths: Sequence[Union[str, Path]], fps: float = 1.0
    ) -> "ArrayFrameSource":
        """
        Load still images (e.g. frames exported from a video) in order.

        Raises:
            FileNotFoundError: If an image does not exist
            ValueError: If an image has an unsupported format or cannot be read
        """
        frames = []
        for image_path in image_paths:
            path = Path(image_path)
            if not path.exists():
                raise FileNotFoundError(f"Image not found: {image_path}")
            if path.suffix.lower() not in SUPPORTED_IMAGE_EXTENSIONS:
                raise ValueError(f"Unsupported image format: {path.suffix}")

            try:
                img = Image.open(path)
                img.verify()
                # verify() leaves the image unusable, reopen
                img = Image.open(path)
                frames.append(np.array(img.convert("RGB"), dtype=np.uint8))
            except Exception as e:
                raise ValueError(f"Failed to load image {image_path}: {e}") from e

        logger.debug(f"Loaded {len(frames)} still frames")
        return cls(frames, fps=fps)

    def get_frame(self, timestamp: float, size: int) -> np.ndarray:
        """Return the frame on screen at a timestamp, scaled to size x size RGBA."""
        if timestamp < 0 or timestamp > self.duration:
            raise FrameUnavailableError(
                timestamp, f"outside duration of {self.duration:.3f}s"
            )
        index = min(int(timestamp * self.fps), len(self.frames) - 1)
        return _fit_frame(self.frames[index], size)
