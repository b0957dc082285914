import io
import subprocess
import sys

import pytest

from voicegate.media.reader import Reader


class _Stream:
    def __init__(self, data):
        self._data = data

    def read(self, size=-1):
        if size < 0:
            size = len(self._data)
        out, self._data = self._data[:size], self._data[size:]
        return out


def test_memory_round_trip():
    data = bytes(range(32))
    reader = Reader.from_memory(data)
    assert reader.is_seekable()
    assert reader.read() == data
    assert reader.read() == b""


def test_memory_seek_and_read_exact():
    data = bytes(range(32))
    reader = Reader.from_memory(data)
    assert reader.seek(8) == 8
    assert reader.read_exact(4) == data[8:12]
    assert reader.seek(-4, io.SEEK_END) == len(data) - 4
    assert reader.read() == data[-4:]


def test_read_exact_raises_at_end():
    reader = Reader.from_memory(b"abc")
    with pytest.raises(EOFError):
        reader.read_exact(4)


def test_source_without_seekable_is_not_seekable():
    reader = Reader(_Stream(b"hello"))
    assert not reader.is_seekable()
    with pytest.raises(io.UnsupportedOperation):
        reader.seek(0)
    assert reader.read_exact(5) == b"hello"


def test_from_file(tmp_path):
    path = tmp_path / "audio.bin"
    path.write_bytes(b"\x01\x02\x03\x04")
    with path.open("rb") as handle:
        reader = Reader.from_file(handle)
        assert reader.is_seekable()
        reader.seek(2)
        assert reader.read() == b"\x03\x04"


def test_from_children_reads_pipe_and_refuses_seek():
    child = subprocess.Popen(
        [sys.executable, "-c", "import sys; sys.stdout.buffer.write(b'pcm-bytes')"],
        stdout=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
    )
    with Reader.from_children([child]) as reader:
        assert not reader.is_seekable()
        assert reader.read_exact(9) == b"pcm-bytes"
        with pytest.raises(io.UnsupportedOperation):
            reader.seek(0)
    assert child.returncode is not None
    assert reader.read() == b""


def test_explicit_seekable_override():
    reader = Reader(io.BytesIO(b"abc"), seekable=False)
    with pytest.raises(io.UnsupportedOperation):
        reader.seek(1)
    assert reader.read() == b"abc"