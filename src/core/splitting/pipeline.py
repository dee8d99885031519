"""Streaming split pipeline: ChunkReader -> LineReassembler -> SegmentEmitter."""
from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Callable, Optional

from common.errors import RunCancelledError
from common.models import DEFAULT_CHUNK_SIZE, DEFAULT_OUTPUT_TEMPLATE, RunState, SplitResult, SplitSummary

from .emitter import SegmentEmitter, SegmentSink, normalize_rows_per_file
from .reader import ChunkReader, FileInputStream, InputStream
from .reassembler import LineReassembler
from .sinks import DirectorySegmentWriter

ProgressCallback = Callable[[float], None]
CancelCheck = Callable[[], bool]

PROGRESS_CEILING = 99.0
PROGRESS_COMPLETE = 100.0


def process_stream(
    stream: InputStream,
    rows_per_file: Any,
    on_progress: Optional[ProgressCallback] = None,
    on_segment_ready: Optional[SegmentSink] = None,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    encoding: str = "utf-8",
    errors: str = "strict",
    should_cancel: Optional[CancelCheck] = None,
) -> SplitResult:
    """Split ``stream`` into header-prefixed segments of at most ``rows_per_file`` rows.

    Segments are handed to ``on_segment_ready(content, index)`` synchronously
    as soon as they fill up. ``on_progress`` receives non-decreasing
    percentages that stay below 100 until the final flush, then exactly 100.
    ``should_cancel`` is polled before every chunk read; a true result raises
    ``RunCancelledError``. Read failures raise ``StreamReadError``. On any
    failure pending rows are dropped rather than emitted.
    """

    state = RunState()
    reader = ChunkReader(stream, chunk_size=chunk_size, encoding=encoding, errors=errors)
    reassembler = LineReassembler(state)
    emitter = SegmentEmitter(rows_per_file, on_segment_ready, state=state)
    tracker = _ProgressTracker(stream.size, on_progress)

    chunks = iter(reader)
    try:
        while True:
            if should_cancel is not None and should_cancel():
                raise RunCancelledError(
                    f"run over '{stream.name}' cancelled after {reader.bytes_read} bytes",
                    context={"name": stream.name, "offset": reader.bytes_read},
                )
            chunk = next(chunks, None)
            if chunk is None:
                break
            emitter.accept_all(reassembler.feed(chunk.text))
            tracker.update(reader.bytes_read)
        emitter.finish(reassembler.flush())
    except BaseException:
        emitter.discard()
        raise
    tracker.complete()

    return SplitResult(
        total_segments=state.segment_index,
        header=emitter.header,
        total_rows=state.total_data_lines_seen,
        bytes_read=reader.bytes_read,
    )


def split_file(
    source: Path,
    dest_dir: Path,
    rows_per_file: Any,
    *,
    on_progress: Optional[ProgressCallback] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    encoding: str = "utf-8",
    errors: str = "strict",
    template: str = DEFAULT_OUTPUT_TEMPLATE,
    should_cancel: Optional[CancelCheck] = None,
) -> SplitSummary:
    """Split a file on disk into ``dest_dir`` using ``DirectorySegmentWriter``."""

    source = Path(source)
    writer = DirectorySegmentWriter(dest_dir, source.name, template=template)
    start = time.perf_counter()
    with FileInputStream(source) as stream:
        result = process_stream(
            stream,
            rows_per_file,
            on_progress,
            writer,
            chunk_size=chunk_size,
            encoding=encoding,
            errors=errors,
            should_cancel=should_cancel,
        )
    return SplitSummary(
        source=source,
        dest_dir=Path(dest_dir),
        rows_per_file=normalize_rows_per_file(rows_per_file),
        result=result,
        segments=list(writer.records),
        duration_seconds=time.perf_counter() - start,
    )


def deadline_check(timeout_seconds: Optional[float]) -> Optional[CancelCheck]:
    """Build a cancel check that trips once ``timeout_seconds`` have elapsed."""

    if timeout_seconds is None:
        return None
    deadline = time.monotonic() + max(0.0, timeout_seconds)
    return lambda: time.monotonic() >= deadline


class _ProgressTracker:
    """Cumulative bytes / total size, clamped and kept non-decreasing."""

    def __init__(self, total_bytes: int, callback: Optional[ProgressCallback]) -> None:
        self.total_bytes = total_bytes
        self.callback = callback
        self.last = 0.0

    def update(self, bytes_read: int) -> None:
        if self.total_bytes <= 0:
            return
        percent = min(PROGRESS_CEILING, max(0.0, bytes_read / self.total_bytes * 100))
        self._report(max(self.last, percent))

    def complete(self) -> None:
        self._report(PROGRESS_COMPLETE)

    def _report(self, percent: float) -> None:
        self.last = percent
        if self.callback is not None:
            self.callback(percent)
