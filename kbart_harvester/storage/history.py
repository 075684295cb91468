"""
Appends a summary of each harvest run to a JSON Lines history file.
"""

import json
import logging
import time
from pathlib import Path

from kbart_harvester.models.config import HarvestConfig
from kbart_harvester.models.stats import HarvestReport

log = logging.getLogger(__name__)

HISTORY_FILE_NAME = "session_history.jsonl"


def save_session_stats(config: HarvestConfig, report: HarvestReport) -> None:
    """Saves the run's counts to the history file in the config directory."""
    if not config.config_path:
        return
    stats_file = Path(config.config_path) / HISTORY_FILE_NAME
    session_data = {
        "timestamp": int(time.time()),
        "output_dir": str(config.output_dir),
        "max_workers": config.max_workers,
        "check_validity": config.check_validity,
        **report.counts(),
        "total_bytes": report.total_bytes,
        "duration_seconds": round(report.duration_s, 2),
    }
    try:
        stats_file.parent.mkdir(parents=True, exist_ok=True)
        with open(stats_file, "a", encoding="utf-8") as f:
            json.dump(session_data, f)
            f.write("\n")
    except OSError as e:
        log.warning(f"[yellow]Could not save session stats:[/] {e}")
