"""
Vancouver Open Data Client

Fetches property tax report records from the City of Vancouver open data
portal (Explore API v2.1). Records are returned as the raw dicts the API
sends; reshaping happens in the importer.
"""
import time
from typing import Any, Dict, List, Optional

import requests

from config.settings import settings
from src.vanproperty.utils.logger import get_logger

logger = get_logger(__name__)


class VancouverPropertyClient:
    """
    Paged reader for the ``property-tax-report`` dataset.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        delay_seconds: Optional[float] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Override the default dataset URL (for testing)
            timeout: Request timeout in seconds
            delay_seconds: Pause between consecutive pages
        """
        self.base_url = base_url or settings.vancouver_api_url
        self.timeout = timeout or settings.import_request_timeout
        self.delay_seconds = settings.import_request_delay_seconds if delay_seconds is None else delay_seconds
        self.session = requests.Session()
        logger.info("vancouver_client_initialized", base_url=self.base_url)

    def fetch_page(self, offset: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Fetch one page of records.

        Args:
            offset: Index of the first record
            limit: Page size

        Returns:
            The page's ``results`` list; empty once the dataset is exhausted

        Raises:
            requests.RequestException: network failure or non-2xx status
        """
        logger.debug("fetching_page", offset=offset, limit=limit)
        try:
            response = self.session.get(
                self.base_url,
                params={"limit": limit, "offset": offset},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(
                "api_request_failed",
                offset=offset,
                error=str(e),
                error_type=type(e).__name__
            )
            raise

        results = response.json().get("results") or []
        logger.info(
            "api_request_successful",
            status_code=response.status_code,
            offset=offset,
            records=len(results)
        )
        return results

    def fetch_all(
        self,
        max_records: Optional[int] = None,
        batch_size: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Page through the dataset until it runs out or ``max_records`` is reached.

        Args:
            max_records: Upper bound on records fetched
            batch_size: Records per request

        Returns:
            All fetched records, at most ``max_records``
        """
        max_records = max_records or settings.import_max_records
        batch_size = batch_size or settings.import_batch_size

        records: List[Dict[str, Any]] = []
        offset = 0
        while offset < max_records:
            page = self.fetch_page(offset, min(batch_size, max_records - offset))
            if not page:
                break
            records.extend(page)
            offset += len(page)
            if len(page) < batch_size:
                break
            time.sleep(self.delay_seconds)

        logger.info("fetch_complete", total_records=len(records), max_records=max_records)
        return records[:max_records]
