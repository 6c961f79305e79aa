from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

from typer.testing import CliRunner

from problem_titles.app import AppState, app
from problem_titles.engine.dedup import KnownTitlesStore
from problem_titles.errors import InputDecodeError, InputNotFoundError, MetadataLookupError
from problem_titles.orchestrator import RunSummary


class StubOrchestrator:
    def __init__(self, summary: RunSummary | None = None, error: Exception | None = None, store=None) -> None:
        self.summary = summary or RunSummary()
        self.error = error
        self.store = store
        self.calls: list[tuple] = []

    def run(self, report: Path, ignore_previous_versions: bool = False, archive: bool = True) -> RunSummary:
        self.calls.append(("run", report, ignore_previous_versions, archive))
        if self.error is not None:
            raise self.error
        return self.summary

    def import_known(self, report: Path) -> list[str]:
        self.calls.append(("import", report))
        if self.error is not None:
            raise self.error
        return ["AAA", "BBB"]

    def known_store(self) -> KnownTitlesStore:
        return self.store


def make_state(orchestrator: StubOrchestrator) -> AppState:
    return AppState(repository=SimpleNamespace(), config=SimpleNamespace(), orchestrator=orchestrator)


def _patch(monkeypatch, orchestrator: StubOrchestrator) -> None:
    state = make_state(orchestrator)
    monkeypatch.setattr("problem_titles.app.build_state", lambda *args, **kwargs: state)


def test_cli_discover_prints_summary(monkeypatch, tmp_path: Path) -> None:
    summary = RunSummary(lines=3, adobe=1, open=1, side_loaded=1, report_path=tmp_path / "out.txt")
    orchestrator = StubOrchestrator(summary)
    _patch(monkeypatch, orchestrator)

    result = CliRunner().invoke(app, ["discover", "report.csv", "-i", "--no-archive"])

    assert result.exit_code == 0, result.stdout
    assert orchestrator.calls == [("run", Path("report.csv"), True, False)]
    assert "Run summary" in result.stdout
    assert "Adobe titles" in result.stdout
    assert "Output generated" in result.stdout


def test_cli_discover_without_new_titles(monkeypatch) -> None:
    orchestrator = StubOrchestrator(RunSummary(lines=1, known=1))
    _patch(monkeypatch, orchestrator)
    result = CliRunner().invoke(app, ["discover", "report.csv"])
    assert result.exit_code == 0, result.stdout
    assert orchestrator.calls[0][3] is True
    assert "There were no new titles to add." in result.stdout


def test_cli_discover_reports_errors(monkeypatch) -> None:
    _patch(monkeypatch, StubOrchestrator(error=MetadataLookupError("AAA", "HTTP 500")))
    result = CliRunner().invoke(app, ["discover", "report.csv"])
    assert result.exit_code == 1
    assert "Metadata lookup failed for AAA" in result.stdout


def test_cli_known_list(monkeypatch, tmp_path: Path) -> None:
    path = tmp_path / "known.txt"
    path.write_text("AAA|BBB", encoding="utf-8")
    _patch(monkeypatch, StubOrchestrator(store=KnownTitlesStore(path)))
    result = CliRunner().invoke(app, ["known", "list"])
    assert result.exit_code == 0, result.stdout
    assert "Known titles" in result.stdout
    assert "AAA" in result.stdout and "BBB" in result.stdout


def test_cli_known_list_empty(monkeypatch, tmp_path: Path) -> None:
    _patch(monkeypatch, StubOrchestrator(store=KnownTitlesStore(tmp_path / "known.txt")))
    result = CliRunner().invoke(app, ["known", "list"])
    assert result.exit_code == 0
    assert "No known titles" in result.stdout


def test_cli_known_import(monkeypatch) -> None:
    orchestrator = StubOrchestrator()
    _patch(monkeypatch, orchestrator)
    result = CliRunner().invoke(app, ["known", "import", "old-report.txt"])
    assert result.exit_code == 0, result.stdout
    assert orchestrator.calls == [("import", Path("old-report.txt"))]
    assert "Imported 2 new known titles." in result.stdout


def test_cli_known_import_missing(monkeypatch) -> None:
    _patch(monkeypatch, StubOrchestrator(error=InputNotFoundError("old-report.txt")))
    result = CliRunner().invoke(app, ["known", "import", "old-report.txt"])
    assert result.exit_code == 1
    assert "does not exist" in result.stdout


def test_cli_log_show(monkeypatch, tmp_path: Path) -> None:
    log_path = tmp_path / "extractor.log"
    log_path.write_text("first\nsecond\nthird\n", encoding="utf-8")
    _patch(monkeypatch, StubOrchestrator())
    monkeypatch.setattr("problem_titles.app.application_log_path", lambda: log_path)
    result = CliRunner().invoke(app, ["log", "show", "--tail", "2"])
    assert result.exit_code == 0, result.stdout
    assert "last 2 lines" in result.stdout
    assert "first" not in result.stdout
    assert "third" in result.stdout


def test_cli_discover_reports_undecodable_input(monkeypatch) -> None:
    _patch(monkeypatch, StubOrchestrator(error=InputDecodeError("report.csv", "invalid start byte")))
    result = CliRunner().invoke(app, ["discover", "report.csv"])
    assert result.exit_code == 1
    assert "Could not decode report.csv" in result.stdout
