"""Exporter SPI and implementations."""

from .base import BaseExporter, ProblemTitle
from .report_exporter import ReportExporter, ReportRenderer

__all__ = ["BaseExporter", "ProblemTitle", "ReportExporter", "ReportRenderer"]
