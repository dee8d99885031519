from __future__ import annotations

import pytest

from common.errors import BackendError, ErrorCode
from core.splitting import EmitterState, SegmentEmitter, normalize_rows_per_file


def collect(rows_per_file, lines, carry_over=""):
    emitted: list[tuple[str, int]] = []
    emitter = SegmentEmitter(rows_per_file, lambda content, index: emitted.append((content, index)))
    emitter.accept_all(lines)
    emitter.finish(carry_over)
    return emitter, emitted


def test_first_line_becomes_header_and_is_not_counted() -> None:
    emitter, emitted = collect(10, ["a,b", "1,2", "3,4"])
    assert emitter.header == "a,b"
    assert emitter.state.total_data_lines_seen == 2
    assert emitted == [("a,b\n1,2\n3,4", 0)]


def test_segments_emitted_exactly_at_threshold() -> None:
    emitted: list[tuple[str, int]] = []
    emitter = SegmentEmitter(2, lambda content, index: emitted.append((content, index)))
    emitter.accept_all(["h", "1", "2"])
    assert emitted == [("h\n1\n2", 0)]
    assert emitter.state.accumulator == []
    emitter.accept("3")
    assert len(emitted) == 1
    emitter.finish()
    assert emitted[-1] == ("h\n3", 1)


def test_exact_multiple_does_not_emit_empty_tail() -> None:
    _, emitted = collect(2, ["h", "1", "2", "3", "4"])
    assert [index for _, index in emitted] == [0, 1]


def test_blank_lines_are_skipped() -> None:
    emitter, emitted = collect(5, ["h", "1", "", "   ", "\t", "2"])
    assert emitted == [("h\n1\n2", 0)]
    assert emitter.state.total_data_lines_seen == 2


def test_non_blank_carry_over_becomes_last_row() -> None:
    _, emitted = collect(1, ["h", "1"], carry_over="2")
    assert emitted == [("h\n1", 0), ("h\n2", 1)]


def test_blank_carry_over_is_dropped() -> None:
    _, emitted = collect(5, ["h", "1"], carry_over="  ")
    assert emitted == [("h\n1", 0)]


def test_carry_over_becomes_header_when_no_complete_line_seen() -> None:
    emitter, emitted = collect(5, [], carry_over="a,b")
    assert emitter.header == "a,b"
    assert emitted == []


def test_state_transitions_and_flushed_is_terminal() -> None:
    emitter = SegmentEmitter(3)
    assert emitter.status == EmitterState.AWAITING_HEADER
    emitter.accept("h")
    assert emitter.status == EmitterState.ACCUMULATING
    emitter.finish()
    assert emitter.status == EmitterState.FLUSHED
    with pytest.raises(BackendError) as exc:
        emitter.accept("late")
    assert exc.value.code == ErrorCode.STATE_ERROR


def test_discard_drops_pending_rows() -> None:
    emitted: list[tuple[str, int]] = []
    emitter = SegmentEmitter(10, lambda content, index: emitted.append((content, index)))
    emitter.accept_all(["h", "1", "2"])
    emitter.discard()
    emitter.finish()
    assert emitted == []
    assert emitter.status == EmitterState.FLUSHED


@pytest.mark.parametrize(
    "value, expected",
    [(1000, 1000), (1, 1), (0, 1), (-5, 1), ("25", 25), ("abc", 1), (None, 1), (2.9, 2), (True, 1)],
)
def test_rows_per_file_is_clamped(value, expected) -> None:
    assert normalize_rows_per_file(value) == expected
    assert SegmentEmitter(value).rows_per_file == expected
