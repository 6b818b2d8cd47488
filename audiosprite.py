#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Sequence

from audio_sprite.config import OUTPUT_SCHEMA_NAMES, SpriteConfig
from audio_sprite.decoder import FfmpegClipDecoder, check_dependencies
from audio_sprite.errors import SpriteError
from audio_sprite.exporter import FfmpegEncoder
from audio_sprite.pipeline import SpritePipeline

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="audiosprite",
        description="Concatenate audio clips into one sprite plus a JSON map of their ranges.",
    )
    parser.add_argument("files", nargs="*", help="Input audio files, in sprite order.")
    parser.add_argument("-o", "--output", default="output", help="Name for the output files.")
    parser.add_argument("-u", "--path", default="", help="Path for files to be used on final JSON.")
    parser.add_argument(
        "-e",
        "--export",
        default="ogg,m4a,mp3,ac3",
        help="Limit exported file types. Comma separated extension list.",
    )
    parser.add_argument(
        "-f",
        "--format",
        default="jukebox",
        choices=OUTPUT_SCHEMA_NAMES,
        help="Format of the output JSON file (jukebox, howler, createjs).",
    )
    parser.add_argument(
        "-l",
        "--log",
        default="info",
        choices=sorted(LOG_LEVELS),
        help="Log level (debug, info, notice, warning, error).",
    )
    parser.add_argument("-a", "--autoplay", default=None, help="Autoplay sprite name.")
    parser.add_argument(
        "--loop",
        action="append",
        default=[],
        help="Loop sprite name, can be passed multiple times.",
    )
    parser.add_argument(
        "-s",
        "--silence",
        type=float,
        default=0,
        help='Add special "silence" track with specified duration.',
    )
    parser.add_argument("-g", "--gap", type=float, default=1, help="Silence gap between sounds (in seconds).")
    parser.add_argument("-m", "--minlength", type=float, default=0, help="Minimum sound duration (in seconds).")
    parser.add_argument("-b", "--bitrate", type=int, default=128, help="Bit rate. Works for: ac3, mp3, mp4, m4a, ogg.")
    parser.add_argument("-v", "--vbr", type=int, default=-1, help="VBR [0-9]. Works for: mp3. -1 disables VBR.")
    parser.add_argument("-r", "--samplerate", type=int, default=44100, help="Sample rate.")
    parser.add_argument("-c", "--channels", type=int, default=1, help="Number of channels (1=mono, 2=stereo).")
    parser.add_argument(
        "-p",
        "--rawparts",
        default="",
        help="Include raw slices (for Web Audio API) in specified formats.",
    )
    parser.add_argument(
        "-n",
        "--rawpartnames",
        action="store_true",
        help="Maintain original file names for raw files.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging.")
    return parser


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def configure_logging(level_name: str, debug: bool = False) -> None:
    level = logging.DEBUG if debug else LOG_LEVELS.get(level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def build_config(args: argparse.Namespace) -> SpriteConfig:
    config = SpriteConfig(
        output=Path(args.output),
        resource_path=args.path,
        export_formats=_split_list(args.export),
        output_schema=args.format,
        autoplay=args.autoplay or None,
        loops=list(args.loop),
        silence_seconds=args.silence,
        gap_seconds=args.gap,
        min_clip_seconds=args.minlength,
        bitrate_kbps=args.bitrate,
        vbr_quality=args.vbr,
        sample_rate=args.samplerate,
        channels=args.channels,
        raw_part_formats=_split_list(args.rawparts),
        raw_part_names=args.rawpartnames,
    )
    config.validate()
    return config


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log, args.debug)
    logger.debug("Parsed arguments: %s", vars(args))

    if not args.files:
        logger.error("No input files specified.")
        parser.print_help(sys.stderr)
        return 1

    try:
        config = build_config(args)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    try:
        check_dependencies()
        pipeline = SpritePipeline(config, FfmpegClipDecoder(config), FfmpegEncoder(config))
        pipeline.build(args.files)
    except SpriteError as exc:
        logger.error("%s", exc)
        return 1
    return 0


def run() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.error("Interrupted by user.")
        sys.exit(1)
    except Exception as exc:
        logger.exception("Fatal error: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    run()
