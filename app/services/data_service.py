"""Data Service - serves datasets and feed transactions, cache first."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from app.core.cache import (
    DATASETS_FAMILY,
    FEED_FAMILY,
    CacheBackend,
    Partition,
    PartitionedCacheManager,
    dataset_key,
    period_key,
)
from app.core.config import settings
from app.core.logging import get_logger
from app.ingestion.csv_source import CSVSource
from app.ingestion.feed_source import FeedSource
from app.ingestion.folder import DataFolder
from app.ingestion.normalizer import normalize
from app.ingestion.runner import aggregate

log = get_logger("data_service")


class DataService:
    """Read-side orchestration over the data folder and the partitioned cache.

    Responsibilities:
    - Compute normalized datasets and feed transactions live from the folder
    - Serve them from cache when every required partition is present
    - Rebuild both cache families on demand (``pre_cache_all``)
    """

    def __init__(
        self,
        folder: DataFolder,
        cache: Optional[CacheBackend] = None,
        feed_field: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ):
        self.folder = folder
        self.feed_field = feed_field or settings.FEED_FIELD_NAME
        self.datasets_cache = PartitionedCacheManager(cache, DATASETS_FAMILY, ttl_seconds)
        self.feed_cache = PartitionedCacheManager(cache, FEED_FAMILY, ttl_seconds)

    # -------------------------------------------------------------------------
    # Live computation
    # -------------------------------------------------------------------------
    def list_datasets(self) -> List[str]:
        return self.folder.dataset_names()

    def live_datasets(self) -> Dict[str, List[Dict[str, Any]]]:
        datasets: Dict[str, List[Dict[str, Any]]] = {}
        for path in self.folder.csv_files():
            source = CSVSource(path)
            datasets[source.name] = normalize(source.fetch(), source.name)
        return datasets

    def live_transaction_periods(self) -> Dict[str, List[Dict[str, Any]]]:
        periods = FeedSource(self.folder).fetch_periods()
        return {period: [record.model_dump() for record in records] for period, records in periods.items()}

    def live_transactions(self) -> List[Dict[str, Any]]:
        return aggregate(self.live_transaction_periods())

    # -------------------------------------------------------------------------
    # Request operations
    # -------------------------------------------------------------------------
    def get_dataset(self, name: str) -> Any:
        """Normalized records of one dataset, or an error body when unknown."""
        cached = self.datasets_cache.read_partition(dataset_key(name))
        if cached is not None:
            log.debug(f"Cache hit for dataset={name}")
            return cached

        path = self.folder.find_csv(name)
        if path is None:
            log.info(f"Dataset not found: {name}")
            return {"error": f"File not found: {name}"}

        source = CSVSource(path)
        return normalize(source.fetch(), source.name)

    def get_all(self) -> Dict[str, Any]:
        """Every dataset keyed by name, plus the feed under ``feed_field``."""
        datasets = self.datasets_cache.read()
        if datasets is None:
            log.info("Datasets cache miss; computing live")
            datasets = self.live_datasets()

        transactions = self.feed_cache.read()
        if transactions is None:
            log.info("Feed cache miss; computing live")
            transactions = self.live_transactions()

        return {**datasets, self.feed_field: transactions}

    def pre_cache_all(self) -> List[str]:
        """Rebuild both cache families from the folder; returns the keys written."""
        dataset_partitions = [
            Partition(key=dataset_key(name), field=name, records=records)
            for name, records in self.live_datasets().items()
        ]
        feed_partitions = [
            Partition(key=period_key(period), field=period, records=records)
            for period, records in self.live_transaction_periods().items()
        ]

        cached_keys = self.datasets_cache.rebuild(dataset_partitions)
        cached_keys += self.feed_cache.rebuild(feed_partitions)
        log.info(f"Pre-cache complete: {len(cached_keys)} keys written")
        return cached_keys
