from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import BinaryIO, Optional

from .config import SpriteConfig
from .errors import SpriteError

logger = logging.getLogger(__name__)

__all__ = ["PcmAccumulator", "generate_silence", "silence_frames"]

_COPY_BLOCK_SIZE = 1 << 16


def silence_frames(duration: float, sample_rate: int) -> int:
    if not math.isfinite(duration) or duration < 0:
        raise ValueError(f"Silence duration must be a non-negative number, got {duration}.")
    return int(round(sample_rate * duration))


def generate_silence(duration: float, config: SpriteConfig) -> bytes:
    """
    Return ``duration`` seconds of signed 16-bit silence in the configured layout.

    The length is rounded to whole frames; the rounding error is left for the
    caller's offset accounting to absorb.
    """
    return b"\0" * (silence_frames(duration, config.sample_rate) * config.frame_width)


class PcmAccumulator:
    """
    Append-only raw PCM sink backed by a file.

    Appends are written in the order they are requested; ``length`` only moves
    through :meth:`append` and :meth:`append_file`.
    """

    def __init__(self, path: Path, config: SpriteConfig) -> None:
        self.path = path
        self.config = config
        self.length = 0
        self._handle: Optional[BinaryIO] = None

    def __enter__(self) -> "PcmAccumulator":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def duration(self) -> float:
        return self.length / self.config.bytes_per_second

    def open(self) -> BinaryIO:
        if self._handle is None:
            try:
                self._handle = self.path.open("ab")
            except OSError as exc:
                raise SpriteError(f"Unable to open stream file {self.path}: {exc}") from exc
        return self._handle

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def append(self, data: bytes) -> int:
        handle = self.open()
        try:
            handle.write(data)
            handle.flush()
        except OSError as exc:
            raise SpriteError(f"Unable to write to stream file {self.path}: {exc}") from exc
        self.length += len(data)
        return len(data)

    def append_file(self, source: Path) -> int:
        """
        Stream the contents of ``source`` onto the end of the accumulated PCM.
        """
        appended = 0
        try:
            with source.open("rb") as reader:
                while True:
                    block = reader.read(_COPY_BLOCK_SIZE)
                    if not block:
                        break
                    appended += self.append(block)
        except OSError as exc:
            raise SpriteError(f"Unable to read decoded clip {source}: {exc}") from exc
        logger.debug("Appended %d bytes from %s (stream now %d bytes)", appended, source, self.length)
        return appended
