"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import ExtractorConfig

__all__ = ["ConfigLocator", "ConfigRepository", "ExtractorConfig"]
