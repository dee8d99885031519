"""Backend workflow for the GUI: split one file and report status text."""
from pathlib import Path
from typing import Callable, Optional

from common.config import error_mode_from_policy, load_runtime_config
from common.models import SplitSummary
from core.splitting import normalize_rows_per_file, split_file

StatusCallback = Callable[[str], None]
ProgressCallback = Callable[[float], None]

# Mirrors the GUI progress bar: stays at 99% until the final flush.
DISPLAY_CEILING = 99.0


def run_split_workflow(
    input_file: str,
    output_folder: str,
    rows_per_file: object,
    *,
    profile: str = "default",
    config_path: Optional[Path] = None,
    on_progress: Optional[ProgressCallback] = None,
    on_status: Optional[StatusCallback] = None,
) -> SplitSummary:
    """Split ``input_file`` into ``output_folder`` and narrate it through ``on_status``.

    ``on_progress`` receives fractions in [0, 1] as DearPyGui progress bars expect.
    """

    status = on_status or print
    source = Path(input_file)
    if not source.is_file():
        raise FileNotFoundError(f"Input file not found: {source}")

    runtime = load_runtime_config(profile=profile, config_path=config_path)
    rows = normalize_rows_per_file(rows_per_file)
    dest_dir = Path(output_folder or "output_data/")

    last_shown = [-1]

    def report(percent: float) -> None:
        if percent < 100:
            percent = min(DISPLAY_CEILING, percent)
            if round(percent) != last_shown[0]:
                last_shown[0] = round(percent)
                status(f"Processing: {last_shown[0]}%")
        if on_progress:
            on_progress(percent / 100)

    status("Processing CSV file...")
    summary = split_file(
        source,
        dest_dir,
        rows,
        on_progress=report,
        chunk_size=runtime.profile.chunk_size,
        encoding=runtime.global_settings.encoding,
        errors=error_mode_from_policy(runtime.global_settings.error_policy),
        template=runtime.global_settings.output_template,
    )
    for record in summary.segments:
        status(f"Saved part {record.index + 1}: {record.path.name}")
    status(f"Successfully split into {summary.result.total_segments} files!")
    return summary
