from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError
from pydub.utils import which

from .config import SpriteConfig
from .errors import DecodeFailure, InputNotFound, MissingDependency, returncode_from_message

logger = logging.getLogger(__name__)

__all__ = [
    "ClipDecoder",
    "FfmpegClipDecoder",
    "MockClipDecoder",
    "check_dependencies",
    "REQUIRED_TOOLS",
]

REQUIRED_TOOLS = ("ffmpeg", "ffprobe")


def check_dependencies(tools: Iterable[str] = REQUIRED_TOOLS) -> None:
    for tool in tools:
        if not which(tool):
            raise MissingDependency(tool)
        logger.debug("Found %s at %s", tool, which(tool))


class ClipDecoder(ABC):
    """
    Turns an input audio file into raw s16le PCM at the configured rate and channel count.
    """

    def __init__(self, config: SpriteConfig) -> None:
        self.config = config

    def decode(self, path: Union[str, Path]) -> bytes:
        source = Path(path)
        if not source.exists():
            raise InputNotFound(path)
        logger.debug("Start processing %s", source)
        data = self._decode(source)
        if len(data) % self.config.frame_width:
            raise DecodeFailure(
                path,
                detail=f"decoder returned {len(data)} bytes, not a multiple of the "
                f"{self.config.frame_width}-byte frame",
            )
        return data

    @abstractmethod
    def _decode(self, source: Path) -> bytes:
        """
        Produce PCM for an existing file, raising DecodeFailure on error.
        """


class FfmpegClipDecoder(ClipDecoder):
    """
    Decoder backed by pydub, which shells out to ffmpeg for anything but WAV.
    """

    def _decode(self, source: Path) -> bytes:
        config = self.config
        try:
            segment = AudioSegment.from_file(
                str(source),
                parameters=["-ar", str(config.sample_rate), "-ac", str(config.channels)],
            )
        except CouldntDecodeError as exc:
            raise DecodeFailure(
                source, returncode=returncode_from_message(str(exc)), detail=str(exc)
            ) from exc
        except OSError as exc:
            raise DecodeFailure(source, detail=str(exc)) from exc

        segment = (
            segment.set_frame_rate(config.sample_rate)
            .set_channels(config.channels)
            .set_sample_width(config.sample_width)
        )
        return segment.raw_data


class MockClipDecoder(ClipDecoder):
    """
    Lightweight mock for tests. Produces silent PCM of predictable lengths.

    Durations are looked up by file name, then by stem, then fall back to
    ``default_duration``. Names in ``failures`` raise DecodeFailure.
    """

    def __init__(
        self,
        config: SpriteConfig,
        durations: Optional[Dict[str, float]] = None,
        *,
        default_duration: float = 1.0,
        failures: Iterable[str] = (),
        check_exists: bool = False,
    ) -> None:
        super().__init__(config)
        self._durations = durations or {}
        self._default_duration = default_duration
        self._failures = set(failures)
        self._check_exists = check_exists
        self.decoded: List[str] = []

    def decode(self, path: Union[str, Path]) -> bytes:
        if self._check_exists:
            return super().decode(path)
        return self._decode(Path(path))

    def _decode(self, source: Path) -> bytes:
        if source.name in self._failures or source.stem in self._failures:
            raise DecodeFailure(source, returncode=1, detail="mock decode failure")
        duration = self._durations.get(
            source.name, self._durations.get(source.stem, self._default_duration)
        )
        frames = int(round(duration * self.config.sample_rate))
        self.decoded.append(str(source))
        return b"\0" * (frames * self.config.frame_width)
