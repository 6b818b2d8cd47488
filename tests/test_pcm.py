import pytest

from audio_sprite.config import SpriteConfig
from audio_sprite.errors import SpriteError
from audio_sprite.pcm import PcmAccumulator, generate_silence


def test_generate_silence_is_exact_frame_count_of_zeros():
    config = SpriteConfig(sample_rate=44100, channels=2)

    silence = generate_silence(1.5, config)

    assert len(silence) == 66150 * 4
    assert silence.count(0) == len(silence)


def test_generate_silence_rounds_to_nearest_frame():
    config = SpriteConfig(sample_rate=1000, channels=1)

    assert len(generate_silence(0.0004, config)) == 0
    assert len(generate_silence(0.0006, config)) == 2
    assert generate_silence(0, config) == b""


def test_generate_silence_rejects_negative_duration():
    with pytest.raises(ValueError):
        generate_silence(-0.1, SpriteConfig())


def test_accumulator_appends_in_order_and_tracks_length(tmp_path):
    config = SpriteConfig(sample_rate=1000, channels=1)
    clip = tmp_path / "clip.pcm"
    clip.write_bytes(b"\x01\x02" * 500)
    stream = tmp_path / "stream.pcm"

    with PcmAccumulator(stream, config) as accumulator:
        accumulator.append(b"\x03\x04")
        appended = accumulator.append_file(clip)
        accumulator.append(generate_silence(0.5, config))

    assert appended == 1000
    assert accumulator.length == 2 + 1000 + 1000
    assert accumulator.duration == pytest.approx(1.001)
    data = stream.read_bytes()
    assert data[:2] == b"\x03\x04"
    assert data[2:1002] == b"\x01\x02" * 500
    assert data[1002:] == b"\0" * 1000


def test_accumulator_write_failure_is_fatal(tmp_path):
    config = SpriteConfig(sample_rate=1000)
    accumulator = PcmAccumulator(tmp_path / "missing-dir" / "stream.pcm", config)

    with pytest.raises(SpriteError, match="stream.pcm"):
        accumulator.append(b"\0\0")
