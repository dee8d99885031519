"""JSONL writers for split progress events and benchmark metrics."""
from __future__ import annotations

import json
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

from .models import BenchmarkMetrics, SplitProgress


def _append_jsonl(path: Path, payload: Dict[str, Any]) -> None:
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(payload, ensure_ascii=False))
        handle.write("\n")


class ProgressLogger:
    """Appends one line per SplitProgress event; a no-op without a path."""

    def __init__(self, path: Optional[Path]) -> None:
        self.path = path
        if path:
            path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, progress: SplitProgress) -> None:
        if not self.path:
            return
        payload = asdict(progress)
        payload["file_path"] = str(progress.file_path)
        payload["timestamp"] = time.time()
        _append_jsonl(self.path, payload)


class BenchmarkRecorder:
    """Stores split throughput measurements, one line per benchmark run."""

    def __init__(self, path: Path) -> None:
        self.path = path
        path.parent.mkdir(parents=True, exist_ok=True)

    def record(self, dataset: str, metrics: BenchmarkMetrics) -> None:
        payload = {"dataset": dataset, **asdict(metrics), "timestamp": time.time()}
        _append_jsonl(self.path, payload)
