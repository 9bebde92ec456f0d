"""Data folder access: dataset CSV files and monthly feed files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional

from app.core.config import settings
from app.core.logging import get_logger

log = get_logger("ingestion.folder")

CSV_EXTENSION = ".csv"
FEED_EXTENSION = ".xml"


def to_csv_file_name(dataset_name: str) -> str:
    return f"{dataset_name}{CSV_EXTENSION}".lower()


def remove_csv_extension(file_name: str) -> str:
    return re.sub(r"\.csv$", "", file_name, flags=re.IGNORECASE)


class DataFolder:
    """Enumerates the files the API serves from one directory."""

    def __init__(self, path: str | Path, feed_prefix: Optional[str] = None):
        self.path = Path(path)
        prefix = settings.FEED_FILE_PREFIX if feed_prefix is None else feed_prefix
        self._feed_pattern = re.compile(rf"^{re.escape(prefix)}(\d{{6}}){re.escape(FEED_EXTENSION)}$", re.ASCII)

    def exists(self) -> bool:
        return self.path.is_dir()

    def _files(self) -> List[Path]:
        if not self.exists():
            log.warning(f"Data folder not found: {self.path}")
            return []
        return sorted(p for p in self.path.iterdir() if p.is_file())

    def csv_files(self) -> List[Path]:
        """CSV files, one per case-insensitive name; the first in sorted order wins."""
        files: Dict[str, Path] = {}
        for path in self._files():
            if path.suffix.lower() != CSV_EXTENSION:
                continue
            if path.name.lower() in files:
                log.warning(f"Ignoring {path.name}: same dataset name as {files[path.name.lower()].name}")
                continue
            files[path.name.lower()] = path
        return list(files.values())

    def dataset_names(self) -> List[str]:
        return [remove_csv_extension(p.name) for p in self.csv_files()]

    def find_csv(self, dataset_name: str) -> Optional[Path]:
        """Case-insensitive lookup of ``<dataset_name>.csv``."""
        target = to_csv_file_name(dataset_name)
        for path in self.csv_files():
            if path.name.lower() == target:
                return path
        return None

    def feed_files(self) -> Dict[str, Path]:
        """Map of period key (YYYYMM) to feed file; other files are ignored."""
        periods: Dict[str, Path] = {}
        for path in self._files():
            match = self._feed_pattern.match(path.name)
            if match:
                periods[match.group(1)] = path
        return periods
