"""Provider connectors that fetch raw records and normalize them to Jobs."""

from .base import JobSource, ProviderError
from .vast import VastSource

__all__ = ["JobSource", "ProviderError", "VastSource"]
