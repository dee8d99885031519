"""Data models shared across UI, core splitter, and storage layers."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_ROWS_PER_FILE = 1000
DEFAULT_OUTPUT_TEMPLATE = "{stem}_part{index}{suffix}"


@dataclass(slots=True)
class Chunk:
    """Decoded slice of the input stream plus the raw bytes it consumed."""

    text: str
    byte_count: int


@dataclass(slots=True)
class RunState:
    """Mutable state of one processing run; never shared between runs."""

    header: Optional[str] = None
    carry_over: str = ""
    accumulator: List[str] = field(default_factory=list)
    segment_index: int = 0
    total_data_lines_seen: int = 0


@dataclass(slots=True, frozen=True)
class SplitResult:
    """Plain result value returned by the core operation."""

    total_segments: int
    header: str
    total_rows: int = 0
    bytes_read: int = 0


@dataclass(slots=True)
class SegmentRecord:
    """A segment persisted by an output collaborator."""

    index: int
    path: Path
    rows: int
    bytes_written: int


@dataclass(slots=True)
class SplitSummary:
    """Outcome of splitting one input file onto disk."""

    source: Path
    dest_dir: Path
    rows_per_file: int
    result: SplitResult
    segments: List[SegmentRecord] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def rows_per_second(self) -> float:
        if not self.duration_seconds:
            return float(self.result.total_rows)
        return self.result.total_rows / self.duration_seconds


@dataclass(slots=True)
class BenchmarkMetrics:
    """Throughput of one benchmark pass over a set of inputs."""

    seconds: float
    rows: int
    segments: int
    rows_per_second: float
    chunk_size: int


@dataclass(slots=True)
class SplitProgress:
    """Progress payload reported back to UI during a run."""

    file_path: Path
    percent: float
    bytes_read: int
    total_bytes: int
    segments_emitted: int = 0
    current_phase: str = "split"


@dataclass(slots=True)
class GlobalSettings:
    """Global knobs that apply across profiles."""

    encoding: str = "utf-8"
    error_policy: str = "fail-fast"  # fail-fast | replace
    output_template: str = DEFAULT_OUTPUT_TEMPLATE


@dataclass(slots=True)
class ProfileSettings:
    """Profile-specific chunking and segmentation sizes."""

    description: str
    chunk_size: int = DEFAULT_CHUNK_SIZE
    rows_per_file: int = DEFAULT_ROWS_PER_FILE


@dataclass(slots=True)
class RuntimeConfig:
    """Resolved configuration for a single run."""

    global_settings: GlobalSettings
    profile: ProfileSettings


@dataclass(slots=True)
class SplitRunRecord:
    """Row from the split_runs audit table."""

    run_id: str
    source_path: str
    status: str
    rows_per_file: int
    total_segments: int
    total_rows: int
    header: str
    detail: Optional[str]
    updated_at: float
