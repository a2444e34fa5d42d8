"""Base classes for provider connectors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..models import Job


class ProviderError(RuntimeError):
    """The provider could not be queried or returned something unusable."""


class JobSource(ABC):
    """Abstract base class for a job source connector."""

    name: str

    @abstractmethod
    def fetch(self) -> List[Job]:
        """Fetch instances and return normalized jobs."""
        raise NotImplementedError
