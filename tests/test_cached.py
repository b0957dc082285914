import io
import math
import struct
from datetime import timedelta

import pytest

from voicegate.media.cached import (
    CacheConfig,
    LengthHint,
    Memory,
    apply_length_hint,
    compressed_cost_per_sec,
    default_config,
    raw_cost_per_sec,
)
from voicegate.media.codec import CodecType
from voicegate.media.container import Container
from voicegate.media.metadata import Metadata
from voicegate.media.reader import Reader
from voicegate.media.source import Input
from voicegate.media.utils import MONO_FRAME_SIZE, timestamp_to_byte_count


def make_sine(float_len, stereo):
    samples = []
    for i in range(float_len):
        value = math.sin(i / 10.0)
        samples.extend([value, value] if stereo else [value])
    return struct.pack(f"<{len(samples)}f", *samples)


def _input(data, stereo=True, metadata=None):
    return Input(stereo, Reader.from_memory(data), CodecType.FLOAT_PCM, Container.raw(), metadata)


def test_cache_preserves_file():
    data = make_sine(50 * MONO_FRAME_SIZE, True)
    memory = Memory(_input(data), default_config(raw_cost_per_sec(True)))
    out = memory.read()
    assert len(out) == len(data)
    assert out == data


def test_small_chunks_preserve_file():
    data = make_sine(1000, False)
    memory = Memory(_input(data, stereo=False), CacheConfig(chunk_size=7))
    out = b""
    while chunk := memory.read(13):
        out += chunk
    assert out == data


def test_into_input_reads_everything():
    data = make_sine(2 * MONO_FRAME_SIZE, True)
    inp = Memory(_input(data)).into_input()
    assert inp.is_seekable()
    assert inp.read_all() == data


def test_new_handle_starts_from_beginning():
    data = make_sine(500, True)
    memory = Memory(_input(data), CacheConfig(chunk_size=64))
    first = memory.read(100)
    handle = memory.new_handle()
    assert handle.read(100) == first
    assert memory.read() == data[100:]
    assert handle.read() == data[100:]


def test_seek_positions():
    data = make_sine(100, False)
    memory = Memory(_input(data, stereo=False))
    assert memory.seek(0, io.SEEK_END) == len(data)
    assert memory.read() == b""
    assert memory.seek(8) == 8
    assert memory.seek(4, io.SEEK_CUR) == 12
    assert memory.read(4) == data[12:16]
    assert memory.seek(len(data) + 50) == len(data)
    with pytest.raises(ValueError):
        memory.seek(-1)


def test_seek_time_through_input():
    data = make_sine(4 * MONO_FRAME_SIZE, True)
    inp = Memory(_input(data)).into_input()
    reached = inp.seek_time(timedelta(milliseconds=10))
    assert reached == timedelta(milliseconds=10)
    offset = timestamp_to_byte_count(timedelta(milliseconds=10), True)
    assert inp.read_all() == data[offset:]


def test_metadata_moved_out_of_source():
    source = _input(b"", metadata=Metadata(title="Clip"))
    memory = Memory(source)
    assert memory.metadata.title == "Clip"
    assert source.metadata.title is None


def test_kind_and_container_kept():
    raw = struct.pack("<4h", 1, -1, 2, -2)
    source = Input(False, Reader.from_memory(raw), CodecType.PCM, Container.raw())
    inp = Memory(source).into_input()
    assert inp.kind is CodecType.PCM
    assert inp.read_all() == struct.pack("<4f", *(v / 32768.0 for v in (1, -1, 2, -2)))


def test_length_hint_from_duration():
    source = _input(b"", stereo=False, metadata=Metadata(duration=timedelta(seconds=2)))
    memory = Memory(source)
    assert memory.config.length_hint == 2 * raw_cost_per_sec(False)


def test_given_config_not_mutated():
    config = CacheConfig(chunk_size=10)
    Memory(_input(b"", metadata=Metadata(duration=timedelta(seconds=1))), config)
    assert config.length_hint is None


def test_apply_length_hint():
    config = CacheConfig()
    apply_length_hint(config, timedelta(seconds=1, milliseconds=500), 10)
    assert config.length_hint == 20
    apply_length_hint(config, timedelta(seconds=1, microseconds=500), 10)
    assert config.length_hint == 10
    apply_length_hint(config, 123, 10)
    assert config.length_hint == 123
    apply_length_hint(config, LengthHint.from_bytes(7), 10)
    assert config.length_hint == 7


def test_length_hint_needs_one_value():
    with pytest.raises(ValueError):
        LengthHint()
    assert LengthHint.from_time(timedelta(seconds=3)).to_bytes(5) == 15


def test_compressed_cost_per_sec():
    assert compressed_cost_per_sec(128_000) == 16_100
    assert compressed_cost_per_sec("auto") == 8_100
    assert compressed_cost_per_sec("max") == 64_100
    with pytest.raises(ValueError):
        compressed_cost_per_sec("loud")


def test_raw_cost_per_sec():
    assert raw_cost_per_sec(True) == 2 * raw_cost_per_sec(False)
    assert raw_cost_per_sec(True) == timestamp_to_byte_count(timedelta(seconds=1), True)


def test_default_config():
    assert default_config(100).chunk_size == 500
    assert default_config(100).length_hint is None


def test_config_rejects_zero_chunk():
    with pytest.raises(ValueError):
        CacheConfig(chunk_size=0)