"""CLI shell for splitting large CSV files into header-preserving parts."""
from __future__ import annotations

import argparse
import time
from dataclasses import replace
from pathlib import Path
from typing import Callable, Iterable, List, Optional
from uuid import uuid4

from common.config import error_mode_from_policy, load_runtime_config
from common.errors import BackendError, RunCancelledError, StreamReadError
from common.models import BenchmarkMetrics, GlobalSettings, RuntimeConfig, SplitProgress, SplitSummary
from common.progress import BenchmarkRecorder, ProgressLogger
from core.jobs import JobState, JobStateMachine
from core.splitting import (
    FileInputStream,
    deadline_check,
    normalize_rows_per_file,
    process_stream,
    split_file,
    write_manifest,
)
from storage import (
    fetch_split_runs,
    init_sqlite,
    record_audit_event,
    record_segment,
    record_split_result,
)

SUPPORTED_EXTENSIONS = {".csv", ".tsv", ".txt"}
FALLBACK_ENCODING = "cp1251"
PROGRESS_PRINT_STEP = 10.0


def collect_input_files(targets: Iterable[Path]) -> List[Path]:
    files: List[Path] = []
    for target in targets:
        if target.is_dir():
            files.extend(
                sorted(
                    p
                    for p in target.rglob("*")
                    if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
                )
            )
        elif target.is_file():
            files.append(target)
    deduped = []
    seen = set()
    for path in files:
        if path in seen:
            continue
        seen.add(path)
        deduped.append(path)
    return deduped


def render_progress(progress: SplitProgress) -> None:
    print(
        f"[split/progress] {progress.file_path.name} {progress.percent:.0f}%"
        f" bytes={progress.bytes_read}/{progress.total_bytes}"
    )


def build_progress_callback(
    path: Path,
    total_bytes: int,
    *,
    render: Callable[[SplitProgress], None] = render_progress,
    listeners: Iterable[Callable[[SplitProgress], None]] = (),
) -> Callable[[float], None]:
    """Adapt the core's percentage callback to SplitProgress events.

    Console output is throttled to PROGRESS_PRINT_STEP increments; listeners
    (e.g. the JSONL logger) receive every event. Events below the highest
    percent already reported are dropped, so a retried file never reports
    going backwards.
    """

    next_print = [0.0]
    highest = [0.0]

    def on_progress(percent: float) -> None:
        if percent < highest[0]:
            return
        highest[0] = percent
        progress = SplitProgress(
            file_path=path,
            percent=percent,
            bytes_read=int(total_bytes * percent / 100),
            total_bytes=total_bytes,
        )
        for listener in listeners:
            listener(progress)
        if percent >= next_print[0]:
            render(progress)
            next_print[0] = (percent // PROGRESS_PRINT_STEP + 1) * PROGRESS_PRINT_STEP

    return on_progress


def resolve_runtime(args: argparse.Namespace) -> RuntimeConfig:
    overrides: dict = {"global": {}, "profile": {}}
    if getattr(args, "encoding", None):
        overrides["global"]["encoding"] = args.encoding
    if getattr(args, "chunk_size", None) is not None:
        overrides["profile"]["chunk_size"] = max(1, args.chunk_size)
    runtime = load_runtime_config(
        profile=args.profile,
        config_path=Path(args.config) if getattr(args, "config", None) else None,
        overrides=overrides,
    )
    if getattr(args, "rows_per_file", None) is not None:
        runtime.profile.rows_per_file = normalize_rows_per_file(args.rows_per_file)
    return runtime


def split_with_fallback(
    path: Path,
    dest_dir: Path,
    runtime: RuntimeConfig,
    *,
    on_progress: Callable[[float], None],
    should_cancel: Optional[Callable[[], bool]] = None,
) -> SplitSummary:
    settings = runtime.global_settings

    def attempt(settings: GlobalSettings) -> SplitSummary:
        return split_file(
            path,
            dest_dir,
            runtime.profile.rows_per_file,
            on_progress=on_progress,
            chunk_size=runtime.profile.chunk_size,
            encoding=settings.encoding,
            errors=error_mode_from_policy(settings.error_policy),
            template=settings.output_template,
            should_cancel=should_cancel,
        )

    try:
        return attempt(settings)
    except StreamReadError as exc:
        if not isinstance(exc.__cause__, UnicodeDecodeError) or settings.encoding.lower() == FALLBACK_ENCODING:
            raise
        print(f"UnicodeDecodeError: retrying {path.name} with {FALLBACK_ENCODING} encoding...")
        print(f"[split] Fallback encoding: {FALLBACK_ENCODING}")
        return attempt(replace(settings, encoding=FALLBACK_ENCODING))


def command_split(args: argparse.Namespace) -> None:
    files = collect_input_files(Path(p) for p in args.inputs)
    if not files:
        raise SystemExit("No input files found. Provide files or directories containing CSV/TSV data.")

    runtime = resolve_runtime(args)
    dest_dir = Path(args.dest)
    sqlite_path: Path | None = Path(args.sqlite_db) if args.sqlite_db else None
    progress_logger = ProgressLogger(Path(args.progress_log) if args.progress_log else None)
    print(
        f"Splitting {len(files)} file(s) using profile '{args.profile}' "
        f"(rows_per_file={runtime.profile.rows_per_file}, chunk_size={runtime.profile.chunk_size})"
    )
    print(f"[split] Using encoding: {runtime.global_settings.encoding}")

    summaries: List[SplitSummary] = []
    for path in files:
        run_id = f"split-{uuid4().hex}"
        tracker = JobStateMachine(
            run_id,
            sqlite_path,
            source_path=str(path),
            rows_per_file=runtime.profile.rows_per_file,
        )
        on_progress = build_progress_callback(
            path, path.stat().st_size, listeners=[progress_logger.emit]
        )
        tracker.transition(JobState.SPLITTING, detail=str(path))
        try:
            summary = split_with_fallback(
                path,
                dest_dir,
                runtime,
                on_progress=on_progress,
                should_cancel=deadline_check(args.timeout),
            )
        except RunCancelledError as exc:
            tracker.mark_cancelled(str(exc))
            raise SystemExit(f"[split] {path.name}: timed out after {args.timeout}s") from exc
        except BackendError as exc:
            tracker.mark_failed(str(exc))
            raise SystemExit(f"[split] {path.name}: {exc}") from exc

        result = summary.result
        if sqlite_path:
            for record in summary.segments:
                record_segment(sqlite_path, run_id, record)
            record_split_result(sqlite_path, run_id, result)
            record_audit_event(
                sqlite_path,
                entity="split",
                action="split",
                detail=f"source={path} segments={result.total_segments} rows={result.total_rows}",
            )
        tracker.transition(JobState.DONE, detail=f"segments={result.total_segments}")
        summaries.append(summary)
        if result.total_segments == 0:
            print(f"[split] {path.name}: no data rows after header; nothing written")
        else:
            print(
                f"[split] {path.name}: {result.total_rows} rows -> {result.total_segments} file(s)"
                f" rows/s={summary.rows_per_second:,.0f}"
            )
            for record in summary.segments:
                print(f"[split]   {record.path} rows={record.rows}")

    if args.manifest:
        manifest_path = Path(args.manifest)
        write_manifest(summaries, manifest_path)
        print(f"[split] Manifest saved to {manifest_path}")
    total_segments = sum(summary.result.total_segments for summary in summaries)
    print(f"Successfully split {len(summaries)} file(s) into {total_segments} part(s) → {dest_dir}")


def command_benchmark(args: argparse.Namespace) -> None:
    files = collect_input_files(Path(p) for p in args.inputs)
    if not files:
        raise SystemExit("No input files found for benchmark.")

    runtime = resolve_runtime(args)
    recorder = BenchmarkRecorder(Path(args.log))
    errors = error_mode_from_policy(runtime.global_settings.error_policy)

    start = time.perf_counter()
    total_rows = 0
    total_segments = 0
    for path in files:
        with FileInputStream(path) as stream:
            result = process_stream(
                stream,
                runtime.profile.rows_per_file,
                chunk_size=runtime.profile.chunk_size,
                encoding=runtime.global_settings.encoding,
                errors=errors,
            )
        total_rows += result.total_rows
        total_segments += result.total_segments
    duration = time.perf_counter() - start
    throughput = total_rows / duration if duration else 0.0
    recorder.record(
        dataset=",".join(args.inputs),
        metrics=BenchmarkMetrics(
            seconds=duration,
            rows=total_rows,
            segments=total_segments,
            rows_per_second=throughput,
            chunk_size=runtime.profile.chunk_size,
        ),
    )
    print(
        f"Benchmark complete: {len(files)} file(s) in {duration:.2f}s, throughput {throughput:,.0f} rows/s"
    )


def command_history(args: argparse.Namespace) -> None:
    runs = fetch_split_runs(Path(args.sqlite_db), limit=args.limit)
    if not runs:
        print("[history] No split runs recorded.")
        return
    for run in runs:
        print(
            f"[history] {run.run_id} {run.status} source={run.source_path}"
            f" segments={run.total_segments} rows={run.total_rows}"
        )


def _add_profile_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--profile",
        default="default",
        help="Profile from config/defaults.json (e.g., default, low_memory, workstation)",
    )
    parser.add_argument("--config", help="Alternate configuration JSON")
    parser.add_argument(
        "--rows-per-file",
        type=int,
        help="Data rows per output file, header excluded (values below 1 become 1)",
    )
    parser.add_argument("--chunk-size", type=int, help="Bytes read per chunk")
    parser.add_argument("--encoding", help="Input encoding (defaults to profile global settings)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csvsplit", description="Split large CSV files into parts that keep the header row"
    )
    subparsers = parser.add_subparsers(dest="command")

    split = subparsers.add_parser("split", help="Split files into header-preserving parts")
    split.add_argument("inputs", nargs="+", help="Files or directories to process")
    _add_profile_arguments(split)
    split.add_argument(
        "--dest",
        default="output_data/",
        help="Directory where <name>_partN files are written",
    )
    split.add_argument(
        "--progress-log",
        help="Path to JSONL file for structured progress events",
    )
    split.add_argument(
        "--sqlite-db",
        help="Optional SQLite file to record runs, segments and audit log",
    )
    split.add_argument(
        "--manifest",
        help="Optional JSON manifest listing produced files",
    )
    split.add_argument(
        "--timeout",
        type=float,
        help="Abort a file's run after this many seconds",
    )
    split.set_defaults(func=command_split)

    benchmark = subparsers.add_parser("benchmark", help="Measure split throughput without writing files")
    benchmark.add_argument("inputs", nargs="+", help="Files or directories to process")
    _add_profile_arguments(benchmark)
    benchmark.add_argument(
        "--log",
        default="artifacts/benchmarks.jsonl",
        help="Where to append benchmark metrics",
    )
    benchmark.set_defaults(func=command_benchmark)

    history = subparsers.add_parser("history", help="List recorded split runs")
    history.add_argument("--sqlite-db", required=True, help="SQLite file written by split --sqlite-db")
    history.add_argument("--limit", type=int, default=20, help="Maximum runs to list")
    history.set_defaults(func=command_history)

    return parser


def maybe_initialize_sqlite(sqlite_arg: str | None) -> None:
    if not sqlite_arg:
        return
    init_sqlite(Path(sqlite_arg))


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    maybe_initialize_sqlite(getattr(args, "sqlite_db", None))
    args.func(args)


if __name__ == "__main__":
    main()
