"""Shared fixtures: a populated data folder and cache helpers."""

from pathlib import Path

import pytest

from app.core.cache import InMemoryCache
from app.ingestion.folder import DataFolder
from app.services.data_service import DataService

CSV_FILES = {
    "assetClassRatio.csv": "timestamp,y,other\n2023-01-01,20,val\n",
    "breakdown-liability.csv": "timestamp,amount_text_num,percentage_text_num,other\n2023-01-01,100,10,val\n",
    "details__liability_123.csv": "timestamp,detail_id,table_index,残高_yen,other\n2023-01-01,id1,0,500,val\n",
    "other.CSV": "header1,header2\nval3,val4\n",
}

FEED_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>transactions</title>{items}</channel></rss>
"""

ITEM_TEMPLATE = "<item><title>{title}</title><pubDate>{date}</pubDate><description>{description}</description></item>"


def feed_xml(*items):
    return FEED_TEMPLATE.format(
        items="".join(ITEM_TEMPLATE.format(title=t, date=d, description=desc) for t, d, desc in items)
    )


FEED_FILES = {
    "transactions_202601.xml": feed_xml(
        ("01/25(日) ¥250,000 給与", "01/25", "category: 収入/給与 is_transfer: false"),
    ),
    "transactions_202602.xml": feed_xml(
        ("02/12(木) -¥3,000 DF.トウキユウカ-ド", "02/12", " category: 食費/その他食費 is_transfer: false "),
        ("02/14(土) -¥10,000 口座振替", "02/14", "category:  is_transfer: true"),
    ),
    "transactions_202512.xml": "<rss><channel><item><title>broken",
    "transactions_notes.xml": feed_xml(("12/01(月) -¥1 ignored", "12/01", "")),
    "README.txt": "not a dataset",
}


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def data_dir(tmp_path) -> Path:
    for name, content in {**CSV_FILES, **FEED_FILES}.items():
        (tmp_path / name).write_text(content, encoding="utf-8")
    return tmp_path


@pytest.fixture
def folder(data_dir) -> DataFolder:
    return DataFolder(data_dir, feed_prefix="transactions_")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> InMemoryCache:
    return InMemoryCache(clock=clock)


@pytest.fixture
def service(folder, cache) -> DataService:
    return DataService(folder, cache, feed_field="transactions", ttl_seconds=21600)
