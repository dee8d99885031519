"""Re-joins lines that straddle chunk boundaries."""
from __future__ import annotations

from typing import List, Optional

from common.models import RunState

LINE_SEPARATOR = "\n"


class LineReassembler:
    """Holds the trailing partial line of the previous chunk in ``RunState.carry_over``.

    Only ``\\n`` delimits lines; quoted fields spanning lines are not
    recognised, and any ``\\r`` stays part of the line text.
    """

    def __init__(self, state: Optional[RunState] = None) -> None:
        self.state = state or RunState()

    @property
    def carry_over(self) -> str:
        return self.state.carry_over

    def feed(self, text: str) -> List[str]:
        """Return the complete lines made available by ``text``."""

        if LINE_SEPARATOR not in text:
            self.state.carry_over += text
            return []
        candidates = (self.state.carry_over + text).split(LINE_SEPARATOR)
        self.state.carry_over = candidates.pop()
        return candidates

    def flush(self) -> str:
        """Return the final unterminated fragment and reset the buffer."""

        remainder, self.state.carry_over = self.state.carry_over, ""
        return remainder
