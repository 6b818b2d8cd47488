from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

__all__ = ["SpriteConfig", "OUTPUT_SCHEMA_NAMES", "SAMPLE_WIDTH"]

# The internal stream is always signed 16-bit little-endian PCM.
SAMPLE_WIDTH = 2

OUTPUT_SCHEMA_NAMES = ("default", "jukebox", "howler", "createjs")


@dataclass(frozen=True)
class SpriteConfig:
    """
    Immutable settings for one sprite build.
    """

    output: Path = Path("output")
    resource_path: str = ""
    export_formats: List[str] = field(default_factory=lambda: ["ogg", "m4a", "mp3", "ac3"])
    output_schema: str = "jukebox"
    autoplay: Optional[str] = None
    loops: List[str] = field(default_factory=list)
    silence_seconds: float = 0.0
    gap_seconds: float = 1.0
    min_clip_seconds: float = 0.0
    bitrate_kbps: int = 128
    vbr_quality: int = -1
    sample_rate: int = 44100
    channels: int = 1
    raw_part_formats: List[str] = field(default_factory=list)
    raw_part_names: bool = False

    @property
    def sample_width(self) -> int:
        return SAMPLE_WIDTH

    @property
    def frame_width(self) -> int:
        return self.channels * SAMPLE_WIDTH

    @property
    def bytes_per_second(self) -> int:
        return self.sample_rate * self.frame_width

    @property
    def vbr_enabled(self) -> bool:
        return 0 <= self.vbr_quality <= 9

    def validate(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}.")
        if self.channels not in (1, 2):
            raise ValueError(f"Channels must be 1 (mono) or 2 (stereo), got {self.channels}.")
        for label, value in (
            ("silence", self.silence_seconds),
            ("gap", self.gap_seconds),
            ("minlength", self.min_clip_seconds),
        ):
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"--{label} must be a non-negative number, got {value}.")
        if self.bitrate_kbps <= 0:
            raise ValueError(f"Bit rate must be positive, got {self.bitrate_kbps}.")
        if self.output_schema not in OUTPUT_SCHEMA_NAMES:
            raise ValueError(
                f"Unknown output format {self.output_schema!r}; "
                f"expected one of {', '.join(OUTPUT_SCHEMA_NAMES)}."
            )
