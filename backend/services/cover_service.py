import logging
from itertools import islice
from typing import Iterable, Optional

import requests

from models.schemas import CoverResult

logger = logging.getLogger(__name__)


class CoverFetcher:
    """
    Downloads cover images from a URL template keyed by ISBN.
    Blocking; call through run_in_threadpool from async code.
    """

    def __init__(self, url_template: str, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        self.url_template = url_template
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent} if user_agent else {}

    def cover_url(self, identifier: str) -> str:
        return self.url_template.format(identifier=identifier)

    def fetch_url(self, url: str) -> CoverResult:
        """Fetch a single image; any non-2xx status or transport error is 'not found'."""
        try:
            res = requests.get(url, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Cover fetch failed for {url}: {e}")
            return CoverResult.not_found()

        logger.info(f"Cover fetch {url} -> {res.status_code}")
        if not res.ok:
            return CoverResult.not_found()

        return CoverResult(
            found=True,
            url=url,
            content=res.content,
            content_type=res.headers.get("Content-Type"),
        )

    def fetch_first(self, candidates: Iterable[str], limit: int) -> CoverResult:
        """
        Try candidates in order, at most `limit` of them, and return the
        first cover that loads.
        """
        for identifier in islice(candidates, limit):
            result = self.fetch_url(self.cover_url(identifier))
            if result.found:
                logger.info(f"Cover image found for ISBN {identifier}")
                return result
            logger.info(f"No cover found for ISBN {identifier}")

        return CoverResult.not_found()
