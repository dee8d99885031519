"""Run orchestration utilities (state machine)."""

from .state_machine import JobState, JobStateMachine

__all__ = ["JobState", "JobStateMachine"]
