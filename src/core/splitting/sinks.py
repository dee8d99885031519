"""Output collaborators that persist finished segments."""
from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

from common.errors import BackendError, ErrorCode
from common.models import DEFAULT_OUTPUT_TEMPLATE, SegmentRecord, SplitSummary
from common.text import split_source_name


def part_filename(source_name: str, index: int, template: str = DEFAULT_OUTPUT_TEMPLATE) -> str:
    """Name of the file holding segment ``index`` (zero-based, rendered one-based)."""

    stem, suffix = split_source_name(source_name)
    return template.format(stem=stem, index=index + 1, suffix=suffix)


class DirectorySegmentWriter:
    """Callable sink writing each segment to its own file under ``dest_dir``."""

    def __init__(
        self,
        dest_dir: Path,
        source_name: str,
        *,
        template: str = DEFAULT_OUTPUT_TEMPLATE,
        encoding: str = "utf-8",
    ) -> None:
        self.dest_dir = Path(dest_dir)
        self.source_name = source_name
        self.template = template
        self.encoding = encoding
        self.records: List[SegmentRecord] = []
        self.dest_dir.mkdir(parents=True, exist_ok=True)

    def __call__(self, content: str, index: int) -> None:
        path = self.dest_dir / part_filename(self.source_name, index, self.template)
        data = content.encode(self.encoding)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise BackendError(
                ErrorCode.IO_ERROR,
                f"Failed writing segment {index} to '{path}': {exc}",
                context={"path": str(path), "index": index},
            ) from exc
        # Segment = header + rows joined by newlines, so rows == separators.
        rows = content.count("\n")
        self.records.append(SegmentRecord(index=index, path=path, rows=rows, bytes_written=len(data)))

    @property
    def output_files(self) -> List[str]:
        return [str(record.path) for record in self.records]


def build_manifest(summary: SplitSummary) -> Dict[str, object]:
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "source": str(summary.source),
        "dest_dir": str(summary.dest_dir),
        "rows_per_file": summary.rows_per_file,
        "header": summary.result.header,
        "total_segments": summary.result.total_segments,
        "total_rows": summary.result.total_rows,
        "bytes_read": summary.result.bytes_read,
        "duration_seconds": summary.duration_seconds,
        "segments": [
            {**asdict(record), "path": str(record.path)} for record in summary.segments
        ],
    }


def write_manifest(summaries: List[SplitSummary], path: Path) -> None:
    payload = [build_manifest(summary) for summary in summaries]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
