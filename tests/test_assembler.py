import math

import pytest

from audio_sprite.assembler import SILENCE_NAME, SpriteAssembler
from audio_sprite.config import SpriteConfig
from audio_sprite.pcm import PcmAccumulator

RATE = 1000


def _clip(tmp_path, name, seconds, config):
    path = tmp_path / f"{name}.pcm"
    path.write_bytes(b"\0" * (int(round(seconds * config.sample_rate)) * config.frame_width))
    return path


def _assembler(tmp_path, **overrides):
    config = SpriteConfig(sample_rate=RATE, channels=1, **overrides)
    accumulator = PcmAccumulator(tmp_path / "stream.pcm", config)
    return config, accumulator, SpriteAssembler(config, accumulator)


def test_single_clip_with_gap(tmp_path):
    config, accumulator, assembler = _assembler(tmp_path, gap_seconds=1, min_clip_seconds=0)

    entry = assembler.add_clip("a", _clip(tmp_path, "a", 2.0, config))
    accumulator.close()

    assert assembler.spritemap == {"a": entry}
    assert entry.as_dict() == {"start": 0.0, "end": 2.0, "loop": False}
    assert accumulator.duration == pytest.approx(3.0)
    assert assembler.offset == pytest.approx(3.0)
    assert assembler.autoplay is None


def test_short_clip_is_padded_to_minimum_length(tmp_path):
    config, accumulator, assembler = _assembler(tmp_path, gap_seconds=0, min_clip_seconds=3)

    entry = assembler.add_clip("short", _clip(tmp_path, "short", 1.3, config))
    accumulator.close()

    assert entry.start == 0
    assert entry.end == pytest.approx(3.0)
    assert entry.duration == pytest.approx(3.0)
    # 1.3s of audio followed by 1.7s of padding and no gap.
    assert accumulator.length == 3000 * config.frame_width
    assert assembler.offset == pytest.approx(3.0)


def test_silence_track_becomes_autoplay(tmp_path):
    config, accumulator, assembler = _assembler(tmp_path, silence_seconds=5, gap_seconds=1)

    assembler.add_silence_track()
    entry = assembler.add_clip("a", _clip(tmp_path, "a", 2.0, config))
    accumulator.close()

    assert list(assembler.spritemap) == [SILENCE_NAME, "a"]
    assert assembler.spritemap[SILENCE_NAME].as_dict() == {"start": 0.0, "end": 5, "loop": True}
    assert entry.start == pytest.approx(6.0)
    assert entry.loop is False
    assert assembler.autoplay == SILENCE_NAME


def test_no_silence_track_when_not_configured(tmp_path):
    _, accumulator, assembler = _assembler(tmp_path)

    assert assembler.add_silence_track() is None
    assert assembler.spritemap == {}
    assert accumulator.length == 0


def test_configured_autoplay_wins_and_loops(tmp_path):
    config, accumulator, assembler = _assembler(
        tmp_path, silence_seconds=1, autoplay="music", loops=["wind"]
    )

    assembler.add_silence_track()
    music = assembler.add_clip("music", _clip(tmp_path, "music", 1.0, config))
    wind = assembler.add_clip("wind", _clip(tmp_path, "wind", 1.0, config))
    click = assembler.add_clip("click", _clip(tmp_path, "click", 0.2, config))
    accumulator.close()

    assert assembler.autoplay == "music"
    assert (music.loop, wind.loop, click.loop) == (True, True, False)


def test_clip_starts_land_on_whole_seconds_plus_gaps(tmp_path):
    durations = [0.25, 1.3, 2.0, 0.7, 4.125]
    minimum, gap = 0.5, 0.5
    config, accumulator, assembler = _assembler(
        tmp_path, gap_seconds=gap, min_clip_seconds=minimum
    )

    entries = [
        assembler.add_clip(f"c{i}", _clip(tmp_path, f"c{i}", d, config))
        for i, d in enumerate(durations)
    ]
    accumulator.close()

    expected_start = 0.0
    for entry, duration in zip(entries, durations):
        occupied = max(duration, minimum)
        assert entry.start == pytest.approx(expected_start)
        assert entry.end - entry.start == pytest.approx(occupied)
        expected_start += math.ceil(occupied) + gap

    assert assembler.offset == pytest.approx(expected_start)
    frame = 1 / config.sample_rate
    assert abs(accumulator.duration - assembler.offset) <= frame * len(durations)


def test_offset_never_decreases(tmp_path):
    config, accumulator, assembler = _assembler(tmp_path, gap_seconds=0)

    offsets = [assembler.offset]
    for i, seconds in enumerate([0.0, 0.5, 1.0, 0.0]):
        assembler.add_clip(f"c{i}", _clip(tmp_path, f"c{i}", seconds, config))
        offsets.append(assembler.offset)
    accumulator.close()

    assert offsets == sorted(offsets)
    for name, entry in assembler.spritemap.items():
        assert entry.end <= assembler.offset


def test_duplicate_names_keep_last_entry_but_consume_space(tmp_path):
    config, accumulator, assembler = _assembler(tmp_path, gap_seconds=1)

    assembler.add_clip("boom", _clip(tmp_path, "boom1", 1.0, config))
    second = assembler.add_clip("boom", _clip(tmp_path, "boom2", 1.0, config))
    accumulator.close()

    assert list(assembler.spritemap) == ["boom"]
    assert assembler.spritemap["boom"] is second
    assert second.start == pytest.approx(2.0)
    assert accumulator.duration == pytest.approx(4.0)
