"""
Item Scraper: extract the current item and deliver it to a sink.
"""

from typing import Callable, Optional
from pydantic import ValidationError

from src.core.error_logger import get_error_logger
from src.core.error_models import ErrorComponent, ErrorStage, ErrorType
from src.core.exceptions import DeliveryFailure, ElementNotFound, ScopeMissing
from src.core.logging import get_logger
from src.scraping.extractor import SelectorFieldExtractor
from src.scraping.models import CandidateSink, ScrapeResult
from src.traversal.state import SourceTag

logger = get_logger(__name__)


class DeliveringItemScraper:
    """
    Extractor + sink, invoked once per item page.

    Page-level and delivery failures become `error` results; a sink that
    reports rejected credentials becomes `login_required`, which ends the
    traversal.

    Args:
        extractor: Reads the record from the current page
        sink: Receives the record
        current_url: Callable returning the identifier of the current item
        site: Site name for error records
    """

    def __init__(self, extractor: SelectorFieldExtractor, sink: CandidateSink,
                 current_url: Callable[[], str], site: str):
        self.extractor = extractor
        self.sink = sink
        self.current_url = current_url
        self.site = site

    async def scrape(self, source_tag: Optional[SourceTag]) -> ScrapeResult:
        url = self.current_url()
        error_logger = get_error_logger()

        try:
            record = await self.extractor.extract(source_tag, url)
        except (ElementNotFound, ScopeMissing) as e:
            error_logger.log_exception(e, component=ErrorComponent.SCRAPER,
                                       stage=ErrorStage.EXTRACT_FIELDS, site=self.site, url=url)
            return ScrapeResult.failed(str(e))
        except ValidationError as e:
            error_logger.log_exception(e, component=ErrorComponent.SCRAPER,
                                       stage=ErrorStage.EXTRACT_FIELDS, site=self.site, url=url,
                                       error_type=ErrorType.VALIDATION_ERROR)
            return ScrapeResult.failed(f"Invalid candidate record: {e.error_count()} error(s)")

        try:
            self.sink.deliver(record)
        except DeliveryFailure as e:
            error_logger.log_exception(e, component=ErrorComponent.DELIVERY,
                                       stage=ErrorStage.DELIVER_ITEM, site=self.site, url=url,
                                       error_type=ErrorType.LOGIN_REQUIRED if e.login_required else None)
            if e.login_required:
                return ScrapeResult.login_required(str(e))
            return ScrapeResult.failed(str(e))

        logger.info(f"[{self.site}] Delivered {record.first_name} {record.last_name} ({url})")
        return ScrapeResult.success(record.to_row())
