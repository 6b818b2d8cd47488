"""
Audio sprite assembly utilities.

This package exposes the main building blocks used by the CLI entry point:

- Run settings (`config`) and the error hierarchy (`errors`).
- Raw PCM accumulation and silence generation (`pcm`).
- Decoder abstractions and concrete implementations (`decoder`).
- Sprite assembly and offset accounting (`assembler`).
- Multi-format export (`exporter`).
- JSON sprite map schemas (`metadata`).
- The end-to-end build (`pipeline`).
"""

from .config import SpriteConfig
from .errors import (
    DecodeFailure,
    EncodeFailure,
    InputNotFound,
    MissingDependency,
    SpriteError,
    UnsupportedSecondaryConversion,
)
from .pcm import PcmAccumulator, generate_silence
from .decoder import ClipDecoder, FfmpegClipDecoder, MockClipDecoder, check_dependencies
from .assembler import AssemblyState, SpriteAssembler, SpriteEntry
from .exporter import (
    CafConverter,
    Encoder,
    ExportFormat,
    ExportOrchestrator,
    FfmpegEncoder,
    MockEncoder,
)
from .metadata import OUTPUT_SCHEMAS, render_metadata, write_metadata
from .pipeline import SpritePipeline, SpriteResult

__all__ = [
    "SpriteConfig",
    "SpriteError",
    "MissingDependency",
    "InputNotFound",
    "DecodeFailure",
    "EncodeFailure",
    "UnsupportedSecondaryConversion",
    "PcmAccumulator",
    "generate_silence",
    "ClipDecoder",
    "FfmpegClipDecoder",
    "MockClipDecoder",
    "check_dependencies",
    "AssemblyState",
    "SpriteAssembler",
    "SpriteEntry",
    "Encoder",
    "FfmpegEncoder",
    "MockEncoder",
    "ExportFormat",
    "ExportOrchestrator",
    "CafConverter",
    "OUTPUT_SCHEMAS",
    "render_metadata",
    "write_metadata",
    "SpritePipeline",
    "SpriteResult",
]
