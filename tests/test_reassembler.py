from __future__ import annotations

from common.models import RunState
from core.splitting import LineReassembler


def test_line_straddling_chunks_is_rejoined() -> None:
    reassembler = LineReassembler()
    assert reassembler.feed("h\nro") == ["h"]
    assert reassembler.carry_over == "ro"
    assert reassembler.feed("w1\nrow2\n") == ["row1", "row2"]
    assert reassembler.carry_over == ""


def test_chunk_without_newline_only_extends_carry_over() -> None:
    reassembler = LineReassembler()
    assert reassembler.feed("abc") == []
    assert reassembler.feed("def") == []
    assert reassembler.carry_over == "abcdef"
    assert reassembler.feed("\n") == ["abcdef"]


def test_blank_lines_are_passed_through() -> None:
    reassembler = LineReassembler()
    assert reassembler.feed("a\n\n  \nb\n") == ["a", "", "  ", "b"]


def test_flush_returns_and_clears_remainder() -> None:
    state = RunState()
    reassembler = LineReassembler(state)
    reassembler.feed("a\ntail")
    assert state.carry_over == "tail"
    assert reassembler.flush() == "tail"
    assert state.carry_over == ""
    assert reassembler.flush() == ""


def test_carriage_returns_stay_in_line_text() -> None:
    reassembler = LineReassembler()
    assert reassembler.feed("h\r\nrow\r\n") == ["h\r", "row\r"]
