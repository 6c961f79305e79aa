"""Problem-title extraction for e-reader crash reports."""

__version__ = "0.1.0"
