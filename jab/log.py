"""Audit log and console logging.

Appends structured JSON entries to <jab_dir>/logs.jsonl. Each entry records a
project event (create, save, restore) with timestamp, project name and the
revision involved.
"""

import json
import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGS_FILENAME = "logs.jsonl"


def get_logs_path(jab_dir):
    return Path(jab_dir) / LOGS_FILENAME


def write_log(jab_dir, entry):
    """Append an audit log entry."""
    logs_file = get_logs_path(jab_dir)
    logs_file.parent.mkdir(parents=True, exist_ok=True)
    entry["timestamp"] = datetime.now().isoformat()
    with open(logs_file, "a") as f:
        f.write(json.dumps(entry) + "\n")


def read_logs(jab_dir, project=None):
    """Return audit entries oldest first, optionally for one project."""
    logs_file = get_logs_path(jab_dir)
    if not logs_file.exists():
        return []

    entries = []
    for line in logs_file.read_text().splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            continue
        if project and entry.get("project") != project:
            continue
        entries.append(entry)
    return entries


def setup_logging(verbose=False):
    """Route jab's loggers to stderr through rich."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    logger = logging.getLogger("jab")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
    return logger
