from __future__ import annotations

import logging
import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from pydub import AudioSegment
from pydub.exceptions import CouldntEncodeError
from pydub.utils import which

from .config import SpriteConfig
from .errors import (
    EncodeFailure,
    SpriteError,
    UnsupportedSecondaryConversion,
    returncode_from_message,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ExportFormat",
    "Encoder",
    "FfmpegEncoder",
    "MockEncoder",
    "CafConverter",
    "ExportOrchestrator",
    "build_export_formats",
    "select_formats",
]


@dataclass(frozen=True)
class ExportFormat:
    """
    How one output extension is encoded.

    ``container`` is the ffmpeg muxer name, which differs from the extension for m4a.
    """

    extension: str
    container: str
    codec: Optional[str] = None
    bitrate: Optional[str] = None
    parameters: List[str] = field(default_factory=list)


def build_export_formats(config: SpriteConfig) -> Dict[str, ExportFormat]:
    bitrate = f"{config.bitrate_kbps}k"
    mp3_parameters = ["-ar", str(config.sample_rate)]
    mp3_bitrate: Optional[str] = bitrate
    if config.vbr_enabled:
        mp3_parameters += ["-aq", str(config.vbr_quality)]
        mp3_bitrate = None

    return {
        "aiff": ExportFormat("aiff", "aiff"),
        "wav": ExportFormat("wav", "wav"),
        "ac3": ExportFormat("ac3", "ac3", codec="ac3", bitrate=bitrate),
        "mp3": ExportFormat("mp3", "mp3", bitrate=mp3_bitrate, parameters=mp3_parameters),
        "mp4": ExportFormat("mp4", "mp4", bitrate=bitrate),
        "m4a": ExportFormat("m4a", "ipod", bitrate=bitrate),
        "ogg": ExportFormat("ogg", "ogg", codec="libvorbis", bitrate=bitrate),
    }


def select_formats(
    names: Iterable[str], table: Dict[str, ExportFormat]
) -> Dict[str, ExportFormat]:
    """
    Keep the requested known formats, in request order.
    """
    selected: Dict[str, ExportFormat] = {}
    for name in names:
        name = name.strip().lower()
        if not name:
            continue
        if name not in table:
            logger.warning("Ignoring unsupported export format: %s", name)
            continue
        selected[name] = table[name]
    return selected


class Encoder(ABC):
    """
    Encodes a raw s16le PCM file into one output container.
    """

    def __init__(self, config: SpriteConfig) -> None:
        self.config = config

    @abstractmethod
    def encode(self, pcm_path: Path, dest: Path, fmt: ExportFormat) -> Path:
        """
        Write ``dest`` or raise EncodeFailure naming ``fmt``.
        """


class FfmpegEncoder(Encoder):
    def encode(self, pcm_path: Path, dest: Path, fmt: ExportFormat) -> Path:
        config = self.config
        segment = AudioSegment(
            data=pcm_path.read_bytes(),
            sample_width=config.sample_width,
            frame_rate=config.sample_rate,
            channels=config.channels,
        )
        logger.debug(
            "Encoding %s -> %s (container=%s codec=%s bitrate=%s params=%s)",
            pcm_path,
            dest,
            fmt.container,
            fmt.codec,
            fmt.bitrate,
            fmt.parameters,
        )
        try:
            handle = segment.export(
                str(dest),
                format=fmt.container,
                codec=fmt.codec,
                bitrate=fmt.bitrate,
                parameters=list(fmt.parameters) or None,
            )
            handle.close()
        except CouldntEncodeError as exc:
            raise EncodeFailure(
                fmt.extension, returncode=returncode_from_message(str(exc)), detail=str(exc)
            ) from exc
        except OSError as exc:
            raise EncodeFailure(fmt.extension, detail=str(exc)) from exc
        return dest


class MockEncoder(Encoder):
    """
    Lightweight mock for tests. Copies the PCM into ``dest`` and records each call.
    """

    def __init__(self, config: SpriteConfig, *, failures: Iterable[str] = ()) -> None:
        super().__init__(config)
        self._failures = set(failures)
        self.calls: List[Tuple[Path, Path, str]] = []

    def encode(self, pcm_path: Path, dest: Path, fmt: ExportFormat) -> Path:
        self.calls.append((pcm_path, dest, fmt.extension))
        if fmt.extension in self._failures:
            raise EncodeFailure(fmt.extension, returncode=1, detail="mock encode failure")
        dest.write_bytes(pcm_path.read_bytes())
        return dest


class CafConverter:
    """
    Derives a Core Audio container from an AIFF file with macOS ``afconvert``.
    """

    extension = "caf"

    def __init__(self, tool: str = "afconvert") -> None:
        self.tool = tool

    def available(self) -> bool:
        return sys.platform == "darwin" and which(self.tool) is not None

    def convert(self, source: Path, dest: Path) -> Path:
        if not self.available():
            raise UnsupportedSecondaryConversion(
                self.extension, f"{self.tool} is not available on {sys.platform}"
            )
        cmd = [self.tool, "-f", "caff", "-d", "ima4", str(source), str(dest)]
        logger.debug("Spawn %s", " ".join(cmd))
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            raise UnsupportedSecondaryConversion(
                self.extension,
                f"{self.tool} returned {result.returncode}: {result.stderr.strip()}",
            )
        return dest


class ExportOrchestrator:
    """
    Encodes the finished stream into every requested format, one after another.
    """

    def __init__(
        self,
        config: SpriteConfig,
        encoder: Encoder,
        *,
        converter: Optional[CafConverter] = None,
    ) -> None:
        self.config = config
        self.encoder = encoder
        self.converter = converter or CafConverter()
        table = build_export_formats(config)
        # An empty export list means every known format.
        if config.export_formats:
            self.formats = select_formats(config.export_formats, table)
        else:
            self.formats = dict(table)
        if not self.formats:
            raise SpriteError(
                f"None of the requested export formats are supported: {', '.join(config.export_formats)}"
            )
        self.raw_formats = select_formats(config.raw_part_formats, table)

    def export_sprite(self, stream_path: Path) -> List[str]:
        resources: List[str] = []
        output = self.config.output
        for ext, fmt in self.formats.items():
            logger.debug("Start export %s", ext)
            dest = self._encode(stream_path, _with_extension(output, ext), fmt)
            resources.append(str(dest))
            if ext == "aiff":
                derived = self._derive_secondary(dest, _with_extension(output, self.converter.extension))
                if derived is not None:
                    resources.append(str(derived))
        return resources

    def export_raw_part(self, pcm_path: Path, name: str, index: int) -> List[Path]:
        """
        Export one decoded clip on its own in every raw-part format.

        These files are side exports; they never join the sprite's resource list.
        """
        produced: List[Path] = []
        for ext, fmt in self.raw_formats.items():
            logger.debug("Start export slice %s (format=%s, index=%d)", name, ext, index)
            dest = _with_extension(self.raw_part_base(name, index), ext)
            produced.append(self._encode(pcm_path, dest, fmt))
        return produced

    def raw_part_base(self, name: str, index: int) -> Path:
        output = self.config.output
        if self.config.raw_part_names:
            return output.parent / name
        return output.parent / f"{output.name}_{index:03d}"

    def _encode(self, pcm_path: Path, dest: Path, fmt: ExportFormat) -> Path:
        result = self.encoder.encode(pcm_path, dest, fmt)
        logger.info("Exported %s OK: %s", fmt.extension, result)
        return result

    def _derive_secondary(self, source: Path, dest: Path) -> Optional[Path]:
        try:
            result = self.converter.convert(source, dest)
        except UnsupportedSecondaryConversion as exc:
            logger.info("Skipping %s export: %s", exc.format_name, exc.reason)
            return None
        logger.info("Exported %s OK: %s", self.converter.extension, result)
        return result


def _with_extension(base: Path, ext: str) -> Path:
    return base.with_name(f"{base.name}.{ext}")
