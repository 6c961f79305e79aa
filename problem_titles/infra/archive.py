"""Move processed input reports into the archive directory."""

from __future__ import annotations

import shutil
from datetime import datetime, timezone
from pathlib import Path

import structlog


class FileArchiver:
    """Archive processed files under a timestamped name."""

    def __init__(self, archive_dir: Path | None, logger: structlog.BoundLogger | None = None) -> None:
        self.archive_dir = archive_dir
        self.logger = logger or structlog.get_logger("problem_titles.archive")

    def archive(self, path: Path, stamp: str | None = None) -> Path | None:
        """Move ``path`` into the archive; return the new location or None.

        A missing archive directory is logged and the file stays where it is.
        """

        if self.archive_dir is None:
            return None
        if not path.exists():
            self.logger.warning("archive_source_missing", path=str(path))
            return None
        if not self.archive_dir.is_dir():
            self.logger.warning("archive_missing", archive_dir=str(self.archive_dir))
            return None
        stamp = stamp or datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        target = self.archive_dir / f"{stamp}-{path.name}"
        shutil.move(str(path), str(target))
        self.logger.info("input_archived", source=str(path), target=str(target))
        return target


__all__ = ["FileArchiver"]
