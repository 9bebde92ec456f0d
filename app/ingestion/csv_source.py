"""CSV dataset source."""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Dict, List

from app.core.logging import get_logger
from app.ingestion.folder import remove_csv_extension
from .base import BaseSource

log = get_logger("ingestion.csv")


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Map every data row onto the header row; fewer than two rows yields []."""
    rows = [row for row in csv.reader(io.StringIO(text.lstrip("\ufeff"))) if row]
    if len(rows) < 2:
        return []

    headers, *body = rows
    return [
        {header: row[index] if index < len(row) else "" for index, header in enumerate(headers)}
        for row in body
    ]


class CSVSource(BaseSource):
    """Reads one dataset CSV; the dataset name is the file stem."""

    def __init__(self, file_path: str | Path):
        self.file_path = Path(file_path)
        self.name = remove_csv_extension(self.file_path.name)

    def fetch(self) -> List[Dict[str, str]]:
        if not self.file_path.exists():
            log.warning(f"CSV file not found: {self.file_path}")
            return []

        records = parse_csv(self.file_path.read_text(encoding="utf-8"))
        log.debug(f"Loaded {len(records)} rows from {self.file_path.name}")
        return records
