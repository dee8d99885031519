"""Segment emission: header capture, row accumulation, threshold flushes."""
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Optional

from common.errors import BackendError, ErrorCode
from common.models import RunState
from common.text import is_blank

from .reassembler import LINE_SEPARATOR

SegmentSink = Callable[[str, int], Any]


class EmitterState(str, Enum):
    """Lifecycle of one emitter; FLUSHED is terminal."""

    AWAITING_HEADER = "AWAITING_HEADER"
    ACCUMULATING = "ACCUMULATING"
    FLUSHED = "FLUSHED"


def normalize_rows_per_file(value: Any) -> int:
    """Clamp a caller-supplied threshold to a positive integer.

    Non-numeric and non-positive values become 1 instead of failing.
    """

    if isinstance(value, bool):
        return 1
    try:
        rows = int(value)
    except (TypeError, ValueError, OverflowError):
        return 1
    return max(1, rows)


class SegmentEmitter:
    """Turns complete lines into header-prefixed segments of ``rows_per_file`` rows."""

    def __init__(
        self,
        rows_per_file: Any,
        sink: Optional[SegmentSink] = None,
        *,
        state: Optional[RunState] = None,
    ) -> None:
        self.rows_per_file = normalize_rows_per_file(rows_per_file)
        self.sink = sink
        self.state = state or RunState()
        self._status = EmitterState.AWAITING_HEADER

    @property
    def status(self) -> EmitterState:
        return self._status

    @property
    def header(self) -> str:
        return self.state.header or ""

    @property
    def segments_emitted(self) -> int:
        return self.state.segment_index

    def accept(self, line: str) -> None:
        if self._status == EmitterState.FLUSHED:
            raise BackendError(ErrorCode.STATE_ERROR, "emitter already flushed; no more lines accepted")
        if self._status == EmitterState.AWAITING_HEADER:
            self.state.header = line
            self._status = EmitterState.ACCUMULATING
            return
        if is_blank(line):
            return
        self.state.accumulator.append(line)
        self.state.total_data_lines_seen += 1
        if len(self.state.accumulator) >= self.rows_per_file:
            self._emit()

    def accept_all(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.accept(line)

    def finish(self, carry_over: str = "") -> None:
        """Flush the final fragment and any short trailing segment."""

        if self._status == EmitterState.FLUSHED:
            return
        if not is_blank(carry_over):
            # The only line accepted without a trailing newline.
            self.accept(carry_over)
        if self.state.accumulator:
            self._emit()
        self._status = EmitterState.FLUSHED

    def discard(self) -> None:
        """Drop pending rows after a failed run; nothing is emitted."""

        self.state.accumulator.clear()
        self._status = EmitterState.FLUSHED

    def _emit(self) -> None:
        content = LINE_SEPARATOR.join([self.header, *self.state.accumulator])
        index = self.state.segment_index
        self.state.accumulator = []
        self.state.segment_index += 1
        if self.sink is not None:
            self.sink(content, index)
