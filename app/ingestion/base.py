"""Abstract source interface for ingestion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List


class BaseSource(ABC):
    """Abstract base class for data sources."""

    name: str

    @abstractmethod
    def fetch(self) -> List[Any]:
        """Read the source and return its records."""
