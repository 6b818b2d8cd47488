from __future__ import annotations

import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .assembler import SpriteAssembler, SpriteMap
from .config import SpriteConfig
from .decoder import ClipDecoder
from .exporter import CafConverter, Encoder, ExportOrchestrator
from .metadata import apply_resource_path, render_metadata, write_metadata
from .pcm import PcmAccumulator

logger = logging.getLogger(__name__)

__all__ = ["SpritePipeline", "SpriteResult", "clip_name", "unique_inputs"]

_EXTENSION_RE = re.compile(r"\.[a-zA-Z0-9]+$")


@dataclass
class SpriteResult:
    json_path: Path
    resources: List[str]
    spritemap: SpriteMap
    autoplay: Optional[str]
    payload: Dict[str, object]


def unique_inputs(files: Iterable[Union[str, Path]]) -> List[str]:
    """
    Drop repeated paths (exact string match), keeping first-seen order.
    """
    return list(dict.fromkeys(str(f) for f in files))


def clip_name(path: Union[str, Path]) -> str:
    return _EXTENSION_RE.sub("", os.path.basename(str(path)))


class SpritePipeline:
    """
    Runs one sprite build: assemble every clip, export the stream, write the JSON.

    Any SpriteError aborts the build. Temporary PCM files are removed either
    way; encoded artifacts that were already produced are left in place and
    no JSON is written.
    """

    def __init__(
        self,
        config: SpriteConfig,
        decoder: ClipDecoder,
        encoder: Encoder,
        *,
        converter: Optional[CafConverter] = None,
        temp_dir: Optional[Path] = None,
    ) -> None:
        self.config = config
        self.decoder = decoder
        self.exporter = ExportOrchestrator(config, encoder, converter=converter)
        self.temp_dir = temp_dir

    @property
    def json_path(self) -> Path:
        output = self.config.output
        return output.with_name(f"{output.name}.json")

    def build(self, files: Sequence[Union[str, Path]]) -> SpriteResult:
        inputs = unique_inputs(files)
        if not inputs:
            raise ValueError("No input files specified.")

        self.config.output.parent.mkdir(parents=True, exist_ok=True)
        stream_path = self._mktemp()
        logger.debug("Created temporary file %s", stream_path)
        try:
            with PcmAccumulator(stream_path, self.config) as accumulator:
                assembler = SpriteAssembler(self.config, accumulator)
                assembler.add_silence_track()
                for index, path in enumerate(inputs, start=1):
                    self._add_clip(assembler, path, index)
            logger.info(
                "Assembled %d clips into %.3fs of audio", len(inputs), accumulator.duration
            )

            resources = self.exporter.export_sprite(stream_path)
        finally:
            _cleanup_temp_files([stream_path])

        autoplay = assembler.autoplay
        payload = render_metadata(
            self.config.output_schema,
            resources=apply_resource_path(resources, self.config.resource_path),
            spritemap=assembler.spritemap,
            autoplay=autoplay,
        )
        write_metadata(self.json_path, payload)
        logger.info("Exported json OK: %s", self.json_path)
        logger.info("All done")
        return SpriteResult(
            json_path=self.json_path,
            resources=resources,
            spritemap=assembler.spritemap,
            autoplay=autoplay,
            payload=payload,
        )

    def _add_clip(self, assembler: SpriteAssembler, path: str, index: int) -> None:
        pcm = self.decoder.decode(path)
        clip_path = self._mktemp()
        try:
            clip_path.write_bytes(pcm)
            name = clip_name(path)
            assembler.add_clip(name, clip_path)
            self.exporter.export_raw_part(clip_path, name, index)
        finally:
            _cleanup_temp_files([clip_path])

    def _mktemp(self) -> Path:
        fd, name = tempfile.mkstemp(prefix="audiosprite.", dir=self.temp_dir)
        os.close(fd)
        return Path(name)


def _cleanup_temp_files(paths: Sequence[Path]) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:  # pragma: no cover - best effort
            logger.warning("Failed to delete temporary file %s: %s", path, exc)
