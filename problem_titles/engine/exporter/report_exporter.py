"""Plain-text problem-title report written atomically."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

from ...config import ExtractorConfig
from ..records import (
    FIELD_SEPARATOR,
    DiscoveredProblemTitle,
    TitleGroups,
    UndiscoveredProblemTitle,
)
from .base import BaseExporter, ProblemTitle

REPORT_SUFFIX = "titles-to-add.txt"
SIDE_LOADED_HEADER = "h5. Side-loaded Titles"
_TRIM_CHARS = " |"


def run_tag_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")


class ReportRenderer:
    """Render records as single report lines using the configured link templates."""

    def __init__(self, config: ExtractorConfig) -> None:
        self.config = config

    def title_url(self, record: DiscoveredProblemTitle) -> str:
        return self.config.title_url_template.format(title_id=record.title_id)

    def marketplace_link(self, record: DiscoveredProblemTitle) -> str:
        url = self.config.marketplace_url_template.format(reserve_id=record.reserve_id)
        return f"[Marketplace|{url}]"

    def library_link(self, record: DiscoveredProblemTitle) -> str:
        url = self.config.library_url_template.format(reserve_id=record.reserve_id)
        return f"[My Digital Library|{url}]"

    def render(self, record: ProblemTitle) -> str:
        if isinstance(record, DiscoveredProblemTitle):
            parts = [
                f"- [{record.title}|{self.title_url(record)}]",
                record.reserve_id,
                record.title_id,
                record.format_type.value,
                record.publisher,
                record.base.render(),
                self.marketplace_link(record),
                self.library_link(record),
            ]
        elif isinstance(record, UndiscoveredProblemTitle):
            parts = [f"- {record.data}", record.base.render()]
        else:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")
        return FIELD_SEPARATOR.join(parts).rstrip(_TRIM_CHARS)

    def separator(self) -> str:
        return f"\n\n----\n{SIDE_LOADED_HEADER}"


class ReportExporter(BaseExporter):
    """Write a report to a temporary sibling and rename it into place on commit.

    Used as a context manager: leaving the block without :meth:`commit` (or on
    an exception) discards the temporary file so no half-written report remains.
    """

    def __init__(self, output_dir: Path, renderer: ReportRenderer, run_tag: str | None = None) -> None:
        self.output_dir = output_dir
        self.renderer = renderer
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.run_tag = run_tag or run_tag_now()
        self.path = self.output_dir / f"{self.run_tag}-{REPORT_SUFFIX}"
        self._tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        self._file = self._tmp_path.open("w", encoding="utf-8", newline="\n")
        self._committed = False
        self._counter = 0

    def __enter__(self) -> "ReportExporter":
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    @property
    def count(self) -> int:
        return self._counter

    def export(self, record: ProblemTitle) -> None:
        self._file.write(self.renderer.render(record) + "\n")
        self._counter += 1

    def export_groups(self, groups: TitleGroups) -> None:
        self.export_many(groups.adobe.values())
        self.export_many(groups.open.values())
        self._file.write(self.renderer.separator() + "\n")
        self.export_many(groups.side_loaded)

    def flush(self) -> None:
        if not self._file.closed:
            self._file.flush()

    def commit(self) -> Path:
        """Finalise the report and return its path."""

        self.flush()
        self._file.close()
        os.replace(self._tmp_path, self.path)
        self._committed = True
        return self.path

    def discard(self) -> None:
        self._file.close()
        self._tmp_path.unlink(missing_ok=True)

    def close(self) -> None:
        if not self._committed:
            self.discard()


__all__ = ["REPORT_SUFFIX", "ReportExporter", "ReportRenderer", "SIDE_LOADED_HEADER", "run_tag_now"]
