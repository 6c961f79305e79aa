"""Infra layer utilities (input archiving)."""

from .archive import FileArchiver

__all__ = ["FileArchiver"]
