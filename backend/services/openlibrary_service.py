import logging
from typing import Optional

import requests

from models.schemas import CoverQuery, SearchOutcome, SearchStatus

logger = logging.getLogger(__name__)


def clean_identifiers(raw) -> list[str]:
    """Strip hyphens/spaces from ISBNs, dropping blanks but keeping upstream order."""
    if not isinstance(raw, list):
        return []
    identifiers = []
    for value in raw:
        if not isinstance(value, str):
            continue
        clean = value.replace('-', '').replace(' ', '')
        if clean:
            identifiers.append(clean)
    return identifiers


class OpenLibraryResolver:
    """
    Looks up candidate ISBNs for a title/author pair via Open Library search.
    Blocking; call through run_in_threadpool from async code.
    """

    def __init__(self, search_url: str, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        self.search_url = search_url
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent} if user_agent else {}

    def search(self, query: CoverQuery) -> SearchOutcome:
        """
        Query the search service and report what happened.

        Only the first result record's ISBN list is used. Transport errors,
        non-success statuses and malformed payloads come back as
        SearchStatus.ERROR instead of being raised.
        """
        params = {"title": query.title, "author": query.author, "fields": "isbn"}
        logger.info(f"Searching Open Library for '{query.title}' by '{query.author}'")

        try:
            res = requests.get(self.search_url, params=params, headers=self.headers, timeout=self.timeout)
            res.raise_for_status()
            data = res.json()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Open Library search failed for '{query.title}' by '{query.author}': {e}")
            return SearchOutcome(status=SearchStatus.ERROR, detail=str(e))
        except ValueError as e:
            logger.warning(f"Open Library returned invalid JSON for '{query.title}': {e}")
            return SearchOutcome(status=SearchStatus.ERROR, detail=f"Invalid JSON: {e}")

        docs = data.get("docs") if isinstance(data, dict) else None
        if not isinstance(docs, list):
            return SearchOutcome(status=SearchStatus.ERROR, detail="Response has no 'docs' list")
        if not docs or not isinstance(docs[0], dict):
            return SearchOutcome(status=SearchStatus.NOT_FOUND)

        identifiers = clean_identifiers(docs[0].get("isbn"))
        if not identifiers:
            return SearchOutcome(status=SearchStatus.NOT_FOUND)

        logger.info(f"Found {len(identifiers)} ISBNs for '{query.title}'")
        return SearchOutcome(status=SearchStatus.FOUND, identifiers=identifiers)

    def resolve(self, query: CoverQuery) -> list[str]:
        # "Service down" and "no match" both mean no candidates to the caller.
        return self.search(query).identifiers
