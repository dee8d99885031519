"""Chunked, forward-only reading of the input stream with bounded memory usage."""
from __future__ import annotations

import codecs
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Protocol

from common.errors import StreamReadError
from common.models import DEFAULT_CHUNK_SIZE, Chunk


class InputStream(Protocol):
    """Byte source owned by the caller: a known total size and forward reads."""

    name: str
    size: int

    def read(self, size: int) -> bytes:  # pragma: no cover - protocol
        ...


class FileInputStream:
    """File-backed input stream; the file is opened lazily in binary mode."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.name = self.path.name
        try:
            self.size = self.path.stat().st_size
        except OSError as exc:
            raise StreamReadError(
                f"Cannot stat input '{self.path}': {exc}",
                context={"path": str(self.path)},
            ) from exc
        self._handle: Optional[BinaryIO] = None

    def read(self, size: int) -> bytes:
        if self._handle is None:
            self._handle = self.path.open("rb")
        return self._handle.read(size)

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "FileInputStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()


class BytesInputStream:
    """In-memory input stream, mostly useful for tests and small payloads."""

    def __init__(self, data: bytes, *, name: str = "input.csv") -> None:
        self.name = name
        self.size = len(data)
        self._data = data
        self._offset = 0

    def read(self, size: int) -> bytes:
        chunk = self._data[self._offset : self._offset + size]
        self._offset += len(chunk)
        return chunk


class ChunkReader:
    """Yields decoded chunks covering the stream exactly once, in order."""

    def __init__(
        self,
        stream: InputStream,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        encoding: str = "utf-8",
        errors: str = "strict",
    ) -> None:
        self.stream = stream
        self.chunk_size = max(1, int(chunk_size))
        self.encoding = encoding
        self.errors = errors
        self.bytes_read = 0

    def __iter__(self) -> Iterator[Chunk]:
        self.bytes_read = 0
        # Multi-byte characters cut at a byte boundary are held back by the decoder.
        decoder = codecs.getincrementaldecoder(self.encoding)(errors=self.errors)
        while True:
            raw = self._read_raw()
            final = not raw
            try:
                text = decoder.decode(raw, final=final)
            except UnicodeDecodeError as exc:
                raise StreamReadError(
                    f"Cannot decode '{self.stream.name}' as {self.encoding} near byte {self.bytes_read}: {exc.reason}",
                    context={"name": self.stream.name, "offset": self.bytes_read, "encoding": self.encoding},
                ) from exc
            if final:
                if text:
                    yield Chunk(text=text, byte_count=0)
                return
            self.bytes_read += len(raw)
            yield Chunk(text=text, byte_count=len(raw))

    def _read_raw(self) -> bytes:
        try:
            return self.stream.read(self.chunk_size)
        except OSError as exc:
            raise StreamReadError(
                f"Failed reading '{self.stream.name}' at byte {self.bytes_read}: {exc}",
                context={"name": self.stream.name, "offset": self.bytes_read},
            ) from exc
