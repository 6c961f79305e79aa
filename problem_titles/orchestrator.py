"""Run orchestration: one pass over a crash report producing a titles report."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

import structlog

from .config import ExtractorConfig
from .engine import (
    DiscoveredProblemTitle,
    KnownTitlesStore,
    MetadataFetcher,
    ReportLineParser,
    TitleGroups,
)
from .engine.exporter import ReportExporter, ReportRenderer
from .engine.exporter.report_exporter import run_tag_now
from .engine.parser import SOURCE_URL_LABEL
from .errors import InputDecodeError, InputNotFoundError, MalformedFieldError
from .infra import FileArchiver


@dataclass(slots=True)
class RunSummary:
    """Counters and artefacts produced by a run."""

    lines: int = 0
    adobe: int = 0
    open: int = 0
    side_loaded: int = 0
    no_source: int = 0
    pdf: int = 0
    version_filtered: int = 0
    known: int = 0
    duplicate: int = 0
    malformed: int = 0
    new_tokens: list[str] = field(default_factory=list)
    report_path: Path | None = None
    archived_path: Path | None = None

    @property
    def skipped(self) -> int:
        return self.no_source + self.pdf + self.version_filtered + self.known + self.duplicate

    def as_dict(self) -> dict[str, int]:
        return {
            "lines": self.lines,
            "adobe": self.adobe,
            "open": self.open,
            "side_loaded": self.side_loaded,
            "known": self.known,
            "duplicate": self.duplicate,
            "pdf": self.pdf,
            "version_filtered": self.version_filtered,
            "no_source": self.no_source,
            "malformed": self.malformed,
        }


def _numbered_lines(path: Path) -> Iterator[tuple[int, str]]:
    """Yield 1-based line numbers and lines; bad UTF-8 raises InputDecodeError."""

    try:
        with path.open("r", encoding="utf-8") as stream:
            yield from enumerate(stream, start=1)
    except UnicodeDecodeError as exc:
        raise InputDecodeError(path, exc.reason) from exc


class Orchestrator:
    """Coordinate classification, dedup, enrichment, export and archiving."""

    def __init__(
        self,
        config: ExtractorConfig,
        base_dir: Path,
        fetcher: MetadataFetcher | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.base_dir = base_dir
        self.parser = ReportLineParser(config)
        self.renderer = ReportRenderer(config)
        self._fetcher = fetcher
        self.logger = logger or structlog.get_logger("problem_titles").bind(component="orchestrator")

    @property
    def output_dir(self) -> Path:
        return self.config.resolve_dir(self.config.output_dir, self.base_dir)

    @property
    def archive_dir(self) -> Path | None:
        if self.config.archive_dir is None:
            return None
        return self.config.resolve_dir(self.config.archive_dir, self.base_dir)

    def known_store(self) -> KnownTitlesStore:
        return KnownTitlesStore(self.config.known_titles_path(self.base_dir))

    # ------------------------------------------------------------------
    def run(
        self,
        report_path: Path,
        ignore_previous_versions: bool = False,
        archive: bool = True,
        run_tag: str | None = None,
    ) -> RunSummary:
        if not report_path.is_file():
            raise InputNotFoundError(report_path)

        run_tag = run_tag or run_tag_now()
        store = self.known_store()
        groups = TitleGroups()
        summary = RunSummary()
        self.logger.info(
            "run_started",
            report=str(report_path),
            known_titles=len(store.tokens()),
            ignore_previous_versions=ignore_previous_versions,
        )

        fetcher = self._fetcher or MetadataFetcher(self.config.metadata_endpoint_url, logger=self.logger)
        try:
            for line_no, raw in _numbered_lines(report_path):
                line = raw.rstrip("\r\n")
                if not line.strip():
                    continue
                summary.lines += 1
                self._process_line(
                    line, line_no, groups, store, fetcher, summary, ignore_previous_versions
                )
        finally:
            if self._fetcher is None:
                fetcher.close()

        summary.adobe = len(groups.adobe)
        summary.open = len(groups.open)
        summary.side_loaded = len(groups.side_loaded)

        if groups.is_empty():
            self.logger.info("no_new_titles", report=str(report_path))
        else:
            with ReportExporter(self.output_dir, self.renderer, run_tag=run_tag) as exporter:
                exporter.export_groups(groups)
                summary.report_path = exporter.commit()
            self.logger.info("report_written", path=str(summary.report_path), records=exporter.count)

        summary.new_tokens = store.pending
        appended = store.flush()
        if appended:
            self.logger.info("known_titles_updated", appended=appended, path=str(store.path))

        if archive:
            summary.archived_path = FileArchiver(self.archive_dir, logger=self.logger).archive(
                report_path, stamp=run_tag
            )
        self.logger.info("run_finished", **summary.as_dict())
        return summary

    def _process_line(
        self,
        line: str,
        line_no: int,
        groups: TitleGroups,
        store: KnownTitlesStore,
        fetcher: MetadataFetcher,
        summary: RunSummary,
        ignore_previous_versions: bool,
    ) -> None:
        fields = self.parser.fields(line)
        if SOURCE_URL_LABEL not in fields:
            summary.no_source += 1
            return
        if ignore_previous_versions and self.parser.is_ignored_version(fields):
            summary.version_filtered += 1
            self.logger.debug("line_skipped", line_no=line_no, reason="version_filtered")
            return
        if ".pdf" in line.lower():
            summary.pdf += 1
            self.logger.debug("line_skipped", line_no=line_no, reason="pdf")
            return

        classification = self.parser.classify(line)
        try:
            if not classification.discoverable:
                groups.side_loaded.append(self.parser.undiscovered(line, classification))
                return

            token = classification.reserve_id
            if groups.has_token(token):
                summary.duplicate += 1
                return
            if store.contains(token):
                summary.known += 1
                self.logger.debug("line_skipped", line_no=line_no, reason="known", reserve_id=token)
                return
            base = self.parser.base_fields(fields)
        except MalformedFieldError as exc:
            summary.malformed += 1
            self.logger.warning(
                "malformed_line_skipped", line_no=line_no, field=exc.label, value=exc.value
            )
            return

        payload = fetcher.fetch(token)
        record = DiscoveredProblemTitle.from_metadata(
            payload, base, classification.format_type, reserve_id=token
        )
        groups.add_discovered(record)
        store.mark_seen(token)
        self.logger.info(
            "title_discovered",
            reserve_id=token,
            title_id=record.title_id,
            format=record.format_type.value,
        )

    # ------------------------------------------------------------------
    def import_known(self, report_path: Path) -> list[str]:
        """Mark the discovered titles of a previously rendered report as known."""

        if not report_path.is_file():
            raise InputNotFoundError(report_path)
        store = self.known_store()
        for line_no, raw in _numbered_lines(report_path):
            line = raw.strip()
            if not line.startswith("- ["):
                continue
            try:
                record = DiscoveredProblemTitle.from_report_line(line)
            except ValueError as exc:
                self.logger.warning("report_line_unparsed", line_no=line_no, error=str(exc))
                continue
            store.mark_seen(record.reserve_id)
        imported = store.pending
        store.flush()
        self.logger.info("known_titles_imported", report=str(report_path), imported=len(imported))
        return imported


__all__ = ["Orchestrator", "RunSummary"]
