from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .config import SpriteConfig
from .pcm import PcmAccumulator, generate_silence

logger = logging.getLogger(__name__)

__all__ = ["SILENCE_NAME", "AssemblyState", "SpriteAssembler", "SpriteEntry", "SpriteMap"]

SILENCE_NAME = "silence"


@dataclass
class SpriteEntry:
    name: str
    start: float
    end: float
    loop: bool = False

    @property
    def duration(self) -> float:
        return self.end - self.start

    def as_dict(self) -> Dict[str, object]:
        return {"start": self.start, "end": self.end, "loop": self.loop}


SpriteMap = Dict[str, SpriteEntry]


@dataclass
class AssemblyState:
    """
    Running cursor of how many seconds of stream have been written.
    """

    offset: float = 0.0
    spritemap: SpriteMap = field(default_factory=dict)

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"Offset can only move forward, got {seconds}.")
        self.offset += seconds


class SpriteAssembler:
    """
    Appends decoded clips to the stream one at a time and records their ranges.

    Clips must be fed in input order and each call must finish before the next
    starts, since every entry's start is read from the shared offset.
    """

    def __init__(self, config: SpriteConfig, accumulator: PcmAccumulator) -> None:
        self.config = config
        self.accumulator = accumulator
        self.state = AssemblyState()
        self._has_silence_track = False

    @property
    def spritemap(self) -> SpriteMap:
        return self.state.spritemap

    @property
    def offset(self) -> float:
        return self.state.offset

    @property
    def autoplay(self) -> Optional[str]:
        if self.config.autoplay:
            return self.config.autoplay
        if self._has_silence_track:
            return SILENCE_NAME
        return None

    def is_looped(self, name: str) -> bool:
        return name == self.config.autoplay or name in self.config.loops

    def add_silence_track(self) -> Optional[SpriteEntry]:
        silence = self.config.silence_seconds
        if not silence:
            return None
        entry = SpriteEntry(name=SILENCE_NAME, start=0.0, end=silence, loop=True)
        self.spritemap[SILENCE_NAME] = entry
        self._has_silence_track = True
        self._append_silence(silence + self.config.gap_seconds)
        return entry

    def add_clip(self, name: str, pcm_path: Path) -> SpriteEntry:
        size = self.accumulator.append_file(pcm_path)
        original_duration = size / self.config.bytes_per_second
        logger.info("File added OK: %s (duration %.3fs)", name, original_duration)

        extra_duration = max(0.0, self.config.min_clip_seconds - original_duration)
        duration = original_duration + extra_duration
        start = self.state.offset
        entry = SpriteEntry(
            name=name,
            start=start,
            end=start + duration,
            loop=self.is_looped(name),
        )
        # Duplicate names overwrite the earlier entry but both keep their stream space.
        self.spritemap[name] = entry
        self.state.advance(original_duration)

        # Padding, alignment to the next whole second and the gap go out as one block.
        self._append_silence(
            extra_duration + math.ceil(duration) - duration + self.config.gap_seconds
        )
        return entry

    def _append_silence(self, duration: float) -> None:
        self.accumulator.append(generate_silence(duration, self.config))
        logger.info("Silence gap added (duration %.3fs)", duration)
        self.state.advance(duration)
