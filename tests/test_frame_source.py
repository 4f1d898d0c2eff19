"""Tests for frame sources."""

import cv2
import numpy as np
import pytest
from PIL import Image

from video_screener.config import FingerprintConfig
from video_screener.exceptions import FrameUnavailableError
from video_screener.frame_source import (
    ArrayFrameSource,
    FrameSource,
    VideoFileFrameSource,
    validate_video_file,
)
from video_screener.pipeline import FingerprintPipeline


@pytest.fixture
def sample_video(tmp_path):
    """Write a short MJPG video: 20 frames at 10 fps, each a flat gray level."""
    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")

    for i in range(20):
        frame = np.full((48, 64, 3), i * 10, dtype=np.uint8)
        frame[..., 0] = 0  # Blue channel off, checks BGR -> RGB
        writer.write(frame)
    writer.release()

    if not path.exists() or path.stat().st_size == 0:
        pytest.skip("OpenCV build did not produce a video file")
    return path


def test_validate_video_file_missing(tmp_path):
    """Test rejection of a missing file."""
    with pytest.raises(FileNotFoundError, match="Video not found"):
        validate_video_file(tmp_path / "missing.mp4")


def test_validate_video_file_format(tmp_path):
    """Test rejection of unsupported formats."""
    path = tmp_path / "clip.gif"
    path.write_bytes(b"GIF89a")

    with pytest.raises(ValueError, match="Unsupported video format"):
        validate_video_file(path)


def test_validate_video_file_empty(tmp_path):
    """Test rejection of empty files."""
    path = tmp_path / "clip.mp4"
    path.touch()

    with pytest.raises(ValueError, match="empty"):
        validate_video_file(path)


def test_validate_video_file_accepts_uppercase_extension(tmp_path):
    """Test that extensions are matched case-insensitively."""
    path = tmp_path / "CLIP.MOV"
    path.write_bytes(b"\x00" * 16)

    assert validate_video_file(path) == path


def test_array_source_duration():
    """Test duration from frame count and rate."""
    frames = [np.zeros((8, 8, 3), dtype=np.uint8)] * 6
    source = ArrayFrameSource(frames, fps=2.0)

    assert source.duration == pytest.approx(3.0)
    assert isinstance(source, FrameSource)


def test_array_source_get_frame():
    """Test frame selection, scaling and RGBA conversion."""
    frames = [np.full((20, 30, 3), value, dtype=np.uint8) for value in (10, 20, 30)]
    source = ArrayFrameSource(frames, fps=1.0)

    frame = source.get_frame(1.5, 16)

    assert frame.shape == (16, 16, 4)
    assert frame.dtype == np.uint8
    assert np.all(frame[..., :3] == 20)
    assert np.all(frame[..., 3] == 255)


def test_array_source_end_of_video():
    """Test that the last instant maps to the last frame."""
    frames = [np.full((8, 8, 3), value, dtype=np.uint8) for value in (10, 20)]
    source = ArrayFrameSource(frames, fps=1.0)

    assert np.all(source.get_frame(2.0, 8)[..., 0] == 20)


def test_array_source_grayscale_frames():
    """Test that single-channel frames are accepted."""
    source = ArrayFrameSource([np.full((8, 8), 77, dtype=np.uint8)])

    frame = source.get_frame(0.5, 8)

    assert frame.shape == (8, 8, 4)
    assert np.all(frame[..., :3] == 77)


def test_array_source_float_frames_are_clipped():
    """Test conversion of non-8-bit frames."""
    source = ArrayFrameSource([np.full((8, 8, 3), 300.0)])

    frame = source.get_frame(0.0, 8)

    assert np.all(frame[..., :3] == 255)


@pytest.mark.parametrize("timestamp", [-0.1, 3.5])
def test_array_source_out_of_range(timestamp):
    """Test that timestamps outside the video are unavailable."""
    source = ArrayFrameSource([np.zeros((8, 8, 3), dtype=np.uint8)] * 3)

    with pytest.raises(FrameUnavailableError, match="outside duration"):
        source.get_frame(timestamp, 8)


def test_array_source_validation():
    """Test constructor validation."""
    with pytest.raises(ValueError, match="At least one frame"):
        ArrayFrameSource([])

    with pytest.raises(ValueError, match="fps must be positive"):
        ArrayFrameSource([np.zeros((8, 8, 3), dtype=np.uint8)], fps=0)

    with pytest.raises(ValueError, match="unsupported shape"):
        ArrayFrameSource([np.zeros((8, 8, 2), dtype=np.uint8)])


def test_from_images(tmp_path):
    """Test loading still frames from image files."""
    paths = []
    for i, value in enumerate((0, 128, 255)):
        path = tmp_path / f"frame_{i:03d}.png"
        Image.fromarray(np.full((24, 24, 3), value, dtype=np.uint8)).save(path)
        paths.append(path)

    source = ArrayFrameSource.from_images(paths, fps=3.0)

    assert len(source.frames) == 3
    assert source.duration == pytest.approx(1.0)
    assert np.all(source.get_frame(0.5, 8)[..., :3] == 128)


def test_from_images_missing_file(tmp_path):
    """Test that a missing image raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError, match="Image not found"):
        ArrayFrameSource.from_images([tmp_path / "missing.png"])


def test_from_images_unsupported_format(tmp_path):
    """Test that unsupported image formats are rejected."""
    path = tmp_path / "frame.bmp"
    path.write_bytes(b"BM")

    with pytest.raises(ValueError, match="Unsupported image format"):
        ArrayFrameSource.from_images([path])


def test_from_images_corrupt_file(tmp_path):
    """Test that unreadable images are reported as ValueError."""
    path = tmp_path / "frame.png"
    path.write_bytes(b"not an image")

    with pytest.raises(ValueError, match="Failed to load image"):
        ArrayFrameSource.from_images([path])


def test_video_source_metadata(sample_video):
    """Test duration and rate of a video file."""
    with VideoFileFrameSource(sample_video) as source:
        assert source.fps == pytest.approx(10.0)
        assert source.frame_count == 20
        assert source.duration == pytest.approx(2.0)
        assert isinstance(source, FrameSource)


def test_video_source_get_frame(sample_video):
    """Test seeking, scaling and color conversion."""
    with VideoFileFrameSource(sample_video) as source:
        frame = source.get_frame(1.0, 32)

    assert frame.shape == (32, 32, 4)
    assert frame.dtype == np.uint8
    assert np.all(frame[..., 3] == 255)
    # Frame 10 has gray level 100 with the blue channel off (lossy codec)
    assert abs(int(frame[..., 0].mean()) - 100) <= 12
    assert frame[..., 2].mean() < 12


def test_video_source_out_of_range(sample_video):
    """Test timestamps past the end of the video."""
    with VideoFileFrameSource(sample_video) as source:
        with pytest.raises(FrameUnavailableError):
            source.get_frame(5.0, 32)


def test_video_source_closed(sample_video):
    """Test that a closed source no longer yields frames."""
    source = VideoFileFrameSource(sample_video)
    source.close()

    with pytest.raises(FrameUnavailableError, match="closed"):
        source.get_frame(0.5, 32)


def test_video_source_unreadable(tmp_path):
    """Test that a file OpenCV cannot decode is rejected."""
    path = tmp_path / "broken.mp4"
    path.write_bytes(b"\x00" * 1024)

    with pytest.raises(ValueError):
        VideoFileFrameSource(path)


def test_video_analysis_end_to_end(sample_video):
    """Test a complete analysis of a video file."""
    pipeline = FingerprintPipeline(config=FingerprintConfig(frame_size=32, frame_count=3))

    with VideoFileFrameSource(sample_video) as source:
        result = pipeline.analyze(source)

    assert result.timestamps == pytest.approx([0.5, 1.0, 1.5])
    assert len(result.frame_scores) == 3
    assert result.spectrum.shape == (32, 32)
    assert 0.0 <= result.confidence <= 99.0
