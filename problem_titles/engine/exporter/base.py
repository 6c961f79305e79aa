"""Exporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..records import DiscoveredProblemTitle, UndiscoveredProblemTitle

ProblemTitle = DiscoveredProblemTitle | UndiscoveredProblemTitle


class BaseExporter(ABC):
    """Uniform exporter contract for problem-title reports."""

    @abstractmethod
    def export(self, record: ProblemTitle) -> None:
        """Persist a single record."""

    def export_many(self, records: Iterable[ProblemTitle]) -> None:
        for record in records:
            self.export(record)

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data to destination."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseExporter", "ProblemTitle"]
