from __future__ import annotations

import pytest

from common.errors import ErrorCode, StreamReadError
from core.splitting import BytesInputStream, ChunkReader, FileInputStream


class BrokenStream:
    name = "broken.csv"
    size = 100

    def __init__(self) -> None:
        self.calls = 0

    def read(self, size: int) -> bytes:
        self.calls += 1
        if self.calls > 1:
            raise OSError("device went away")
        return b"h\n1\n"


def test_chunks_cover_stream_in_order() -> None:
    data = b"header\nrow1\nrow2\n"
    reader = ChunkReader(BytesInputStream(data), chunk_size=5)
    chunks = list(reader)
    assert "".join(chunk.text for chunk in chunks) == data.decode()
    assert [chunk.byte_count for chunk in chunks] == [5, 5, 5, 2]
    assert reader.bytes_read == len(data)


def test_chunk_size_is_clamped_to_one() -> None:
    reader = ChunkReader(BytesInputStream(b"ab"), chunk_size=0)
    assert reader.chunk_size == 1
    assert [chunk.text for chunk in reader] == ["a", "b"]


def test_multibyte_character_split_across_reads_is_decoded_whole() -> None:
    data = "h\né\n".encode("utf-8")
    chunks = list(ChunkReader(BytesInputStream(data), chunk_size=3))
    assert [chunk.text for chunk in chunks] == ["h\n", "é\n"]


def test_decode_failure_raises_stream_read_error() -> None:
    reader = ChunkReader(BytesInputStream(b"h\n\xff\n"), chunk_size=64)
    with pytest.raises(StreamReadError) as exc:
        list(reader)
    assert exc.value.code == ErrorCode.IO_ERROR
    assert isinstance(exc.value.__cause__, UnicodeDecodeError)


def test_replace_policy_substitutes_undecodable_bytes() -> None:
    reader = ChunkReader(BytesInputStream(b"h\n\xff\n"), errors="replace")
    assert "".join(chunk.text for chunk in reader) == "h\n�\n"


def test_io_failure_raises_stream_read_error() -> None:
    reader = ChunkReader(BrokenStream(), chunk_size=4)
    iterator = iter(reader)
    assert next(iterator).text == "h\n1\n"
    with pytest.raises(StreamReadError) as exc:
        next(iterator)
    assert isinstance(exc.value.__cause__, OSError)
    assert exc.value.context["offset"] == 4


def test_file_input_stream_reports_size(tmp_path) -> None:
    path = tmp_path / "data.csv"
    path.write_bytes(b"a,b\n1,2\n")
    with FileInputStream(path) as stream:
        assert stream.size == 8
        assert stream.name == "data.csv"
        assert stream.read(4) == b"a,b\n"
        assert stream.read(100) == b"1,2\n"


def test_missing_file_raises_stream_read_error(tmp_path) -> None:
    with pytest.raises(StreamReadError):
        FileInputStream(tmp_path / "missing.csv")


class RewindingStream(BytesInputStream):
    """Starts over from the first byte once exhausted."""

    def read(self, size: int) -> bytes:
        chunk = super().read(size)
        if not chunk:
            self._offset = 0
        return chunk


def test_bytes_read_restarts_on_each_iteration() -> None:
    data = b"h\n1\n2\n"
    reader = ChunkReader(RewindingStream(data), chunk_size=4)
    first = list(reader)
    assert reader.bytes_read == len(data)
    second = list(reader)
    assert [chunk.text for chunk in second] == [chunk.text for chunk in first]
    assert reader.bytes_read == len(data)
