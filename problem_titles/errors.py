"""Exception hierarchy shared by the extraction pipeline."""

from __future__ import annotations


class ProblemTitlesError(Exception):
    """Base class for all errors raised by problem_titles."""


class InputNotFoundError(ProblemTitlesError, FileNotFoundError):
    """The report or comparison file does not exist."""

    def __init__(self, path) -> None:
        super().__init__(f"The specified file does not exist: {path}")
        self.path = path


class InputDecodeError(ProblemTitlesError, ValueError):
    """The report is not valid UTF-8 text."""

    def __init__(self, path, reason: str) -> None:
        super().__init__(f"Could not decode {path} as UTF-8: {reason}")
        self.path = path


class MalformedFieldError(ProblemTitlesError, ValueError):
    """A version-like field could not be parsed."""

    def __init__(self, label: str, value: str) -> None:
        super().__init__(f"Malformed {label} value: {value!r}")
        self.label = label
        self.value = value


class MetadataLookupError(ProblemTitlesError):
    """Remote metadata lookup failed for a reservation token."""

    def __init__(self, reserve_id: str, reason: str) -> None:
        super().__init__(f"Metadata lookup failed for {reserve_id}: {reason}")
        self.reserve_id = reserve_id
        self.reason = reason


class ConfigurationError(ProblemTitlesError):
    """Configuration is missing or inconsistent."""


__all__ = [
    "ConfigurationError",
    "InputDecodeError",
    "InputNotFoundError",
    "MalformedFieldError",
    "MetadataLookupError",
    "ProblemTitlesError",
]
