"""
Event logging utilities for NDJSON format.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

EVENTS_FILE = "events.ndjson"


def emit_event(run_dir: Path, event_type: str, data: Dict[str, Any]) -> None:
    """
    Append an event to the run's events.ndjson file.

    Args:
        run_dir: Run directory
        event_type: Event type (e.g., "RENDERED", "TF_PLAN", "ERROR")
        data: Event data; never include credential or env-var values
    """
    event = {
        "ts": datetime.now().isoformat(),
        "type": event_type,
        "data": data,
    }

    with open(Path(run_dir) / EVENTS_FILE, "a") as f:
        f.write(json.dumps(event) + "\n")
        f.flush()  # Ensure immediate write


def read_events(run_dir: Path) -> List[Dict[str, Any]]:
    """
    Read all events from a run's events.ndjson file.

    Returns:
        List of events, skipping malformed lines
    """
    logs_file = Path(run_dir) / EVENTS_FILE
    if not logs_file.exists():
        return []

    events = []
    with open(logs_file, "r") as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    events.append(json.loads(line))
                except json.JSONDecodeError:
                    continue  # Skip malformed lines
    return events


# Predefined event types for consistency
class EventTypes:
    RENDERED = "RENDERED"
    DRY_RUN = "DRY_RUN"
    BINARY_CHECKED = "BINARY_CHECKED"
    CREDENTIALS_LOADED = "CREDENTIALS_LOADED"
    TF_INIT = "TF_INIT"
    TF_PLAN = "TF_PLAN"
    TF_APPLY = "TF_APPLY"
    TF_OUTPUT = "TF_OUTPUT"
    OUTPUTS_READ = "OUTPUTS_READ"
    DONE = "DONE"
    ERROR = "ERROR"
