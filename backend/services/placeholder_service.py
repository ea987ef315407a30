import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class PlaceholderError(Exception):
    """The placeholder service could not produce an image. There is no further fallback."""


class PlaceholderGenerator:
    """Renders a title/author placeholder through placehold.co."""

    def __init__(self, base_url: str, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent} if user_agent else {}

    @staticmethod
    def placeholder_text(title: str, author: str) -> str:
        return f"{title}\n{author}"

    def generate(self, title: str, author: str) -> bytes:
        params = {"text": self.placeholder_text(title, author)}
        logger.info(f"Requesting placeholder for '{title}' by '{author}'")

        try:
            res = requests.get(self.base_url, params=params, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Placeholder request failed: {e}")
            raise PlaceholderError(str(e)) from e

        if not res.ok:
            logger.error(f"Placeholder service returned {res.status_code}")
            raise PlaceholderError(f"Placeholder service returned {res.status_code}")

        return res.content
