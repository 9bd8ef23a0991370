# ABOUTME: Appends provider misses to monthly JSON-lines files (YYYY-MM.log).
# ABOUTME: Writing is best-effort: a failure to log never interrupts resolution.

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


def log_path_for(log_dir: Path, when: datetime) -> Path:
    """Monthly rotation: one file per calendar month."""
    return log_dir / f"{when:%Y-%m}.log"


class FailureLog:
    """Record of titles the provider could not find, for later curation."""

    def __init__(self, log_dir: Path) -> None:
        self._log_dir = log_dir

    def record(self, title: str, author: str | None, when: datetime | None = None) -> None:
        when = when or datetime.now(timezone.utc)
        entry = {"timestamp": when.isoformat(), "title": title, "author": author}
        try:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            with open(log_path_for(self._log_dir, when), "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as exc:
            logger.error("Could not write provider failure log: %s", exc)

    def read(self, when: datetime) -> list[dict[str, str | None]]:
        """Entries logged in the month containing ``when``."""
        path = log_path_for(self._log_dir, when)
        if not path.exists():
            return []
        with open(path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
