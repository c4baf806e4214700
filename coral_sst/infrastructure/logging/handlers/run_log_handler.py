"""Rotating JSON-lines log shared by pipeline runs."""

import json
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List

from ..formatters import JsonFormatter


class RunLogHandler(RotatingFileHandler):
    """One JSON record per line, so a single run can be pulled back out by ``run_id``.

    Several runs append to the same file; rotation keeps ``backup_count``
    older files next to it.
    """

    def __init__(self, filename: str, max_bytes: int = 50 * 1024 * 1024, backup_count: int = 5):
        log_path = Path(filename)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(filename=str(log_path), maxBytes=max_bytes,
                         backupCount=backup_count, encoding='utf-8')
        self.setFormatter(JsonFormatter())

    def run_records(self, run_id: str) -> List[Dict[str, Any]]:
        """Records of one run from the current log file (rotated files are not read)."""
        self.flush()
        path = Path(self.baseFilename)
        if not path.exists():
            return []
        records = []
        with path.open(encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                record = json.loads(line)
                if record.get('context', {}).get('run_id') == run_id:
                    records.append(record)
        return records
