"""Storage providers (SQLite audit trail for split runs)."""

from .sqlite_store import initialize as init_sqlite
from .sqlite_store import (
	fetch_job_events,
	fetch_segments,
	fetch_split_run,
	fetch_split_runs,
	record_audit_event,
	record_job_event,
	record_segment,
	record_split_result,
	upsert_split_run,
)

__all__ = [
	"init_sqlite",
	"fetch_job_events",
	"fetch_segments",
	"fetch_split_run",
	"fetch_split_runs",
	"record_audit_event",
	"record_job_event",
	"record_segment",
	"record_split_result",
	"upsert_split_run",
]
