"""
Item extraction and delivery.
"""

from src.scraping.models import (
    ScrapeStatus,
    ScrapeResult,
    ItemScraper,
    CandidateRecord,
    CandidateSink,
)
from src.scraping.extractor import SelectorFieldExtractor
from src.scraping.scraper import DeliveringItemScraper

__all__ = [
    "ScrapeStatus",
    "ScrapeResult",
    "ItemScraper",
    "CandidateRecord",
    "CandidateSink",
    "SelectorFieldExtractor",
    "DeliveringItemScraper",
]
