"""
Cover resolution pipeline.

    cache hit (placeholder marker) -> placeholder
    cache hit (resolved url)       -> re-fetch url; on failure evict and resolve
    miss                           -> Open Library ISBNs -> first loadable cover
                                      -> cache for RESOLVED_TTL_SECONDS
    nothing loadable               -> placeholder, marker cached for PLACEHOLDER_TTL_SECONDS

Concurrent misses on one key may both resolve and both write; the last write
wins and all writes for the same outcome are equivalent.
"""

import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from config import Settings
from models.schemas import (
    JPEG_CONTENT_TYPE,
    SVG_CONTENT_TYPE,
    CoverQuery,
    CoverResult,
    CoverSource,
    ImageResponse,
    PlaceholderMarker,
    ResolvedCover,
)
from services.cache_service import CacheStore
from services.cover_service import CoverFetcher
from services.openlibrary_service import OpenLibraryResolver
from services.placeholder_service import PlaceholderGenerator

logger = logging.getLogger(__name__)


class CoverOrchestrator:
    def __init__(
        self,
        cache: CacheStore,
        resolver: OpenLibraryResolver,
        fetcher: CoverFetcher,
        placeholder: PlaceholderGenerator,
        candidate_limit: int = 10,
        resolved_ttl: int = 30 * 24 * 60 * 60,
        placeholder_ttl: int = 7 * 24 * 60 * 60,
    ):
        self.cache = cache
        self.resolver = resolver
        self.fetcher = fetcher
        self.placeholder = placeholder
        self.candidate_limit = candidate_limit
        self.resolved_ttl = resolved_ttl
        self.placeholder_ttl = placeholder_ttl

    async def resolve_cover(self, query: CoverQuery) -> ImageResponse:
        key = query.cache_key
        entry = await self.cache.get(key)

        if isinstance(entry, PlaceholderMarker):
            logger.info(f"Cache hit for {key}: placeholder marker")
            return await self._placeholder(query)

        if isinstance(entry, ResolvedCover):
            logger.info(f"Cache hit for {key}: revalidating {entry.url}")
            cover = await run_in_threadpool(self.fetcher.fetch_url, entry.url)
            if cover.found:
                return self._cover_image(cover, CoverSource.CACHE)
            logger.warning(f"Cached cover for {key} no longer resolves, evicting {entry.url}")
            await self.cache.delete(key)
        else:
            logger.info(f"Cache miss for {key}")

        return await self._resolve(query, key)

    async def _resolve(self, query: CoverQuery, key: str) -> ImageResponse:
        identifiers = await run_in_threadpool(self.resolver.resolve, query)
        if not identifiers:
            logger.info(f"No ISBNs for {key}, using placeholder")
            return await self._placeholder(query, cache_key=key)

        cover = await run_in_threadpool(self.fetcher.fetch_first, identifiers, self.candidate_limit)
        if not cover.found:
            logger.info(f"No valid covers for {key}, using placeholder")
            return await self._placeholder(query, cache_key=key)

        await self.cache.put(key, ResolvedCover(url=cover.url), self.resolved_ttl)
        return self._cover_image(cover, CoverSource.RESOLVED)

    def _cover_image(self, cover: CoverResult, source: CoverSource) -> ImageResponse:
        # Covers are always served as JPEG; only note when upstream says otherwise.
        upstream_type = (cover.content_type or "").split(";")[0].strip().lower()
        if upstream_type and upstream_type != JPEG_CONTENT_TYPE:
            logger.warning(f"Cover {cover.url} reported {cover.content_type}, serving as {JPEG_CONTENT_TYPE}")
        return ImageResponse(content=cover.content, content_type=JPEG_CONTENT_TYPE, source=source)

    async def _placeholder(self, query: CoverQuery, cache_key: Optional[str] = None) -> ImageResponse:
        # Generated before the marker is written so a failure leaves the cache untouched.
        content = await run_in_threadpool(self.placeholder.generate, query.title, query.author)
        if cache_key is not None:
            await self.cache.put(cache_key, PlaceholderMarker(), self.placeholder_ttl)
        return ImageResponse(content=content, content_type=SVG_CONTENT_TYPE, source=CoverSource.PLACEHOLDER)


def build_orchestrator(settings: Settings, cache: CacheStore) -> CoverOrchestrator:
    return CoverOrchestrator(
        cache=cache,
        resolver=OpenLibraryResolver(
            settings.OPENLIBRARY_SEARCH_URL, timeout=settings.HTTP_TIMEOUT, user_agent=settings.USER_AGENT
        ),
        fetcher=CoverFetcher(settings.COVER_URL_TEMPLATE, timeout=settings.HTTP_TIMEOUT, user_agent=settings.USER_AGENT),
        placeholder=PlaceholderGenerator(
            settings.PLACEHOLDER_URL, timeout=settings.HTTP_TIMEOUT, user_agent=settings.USER_AGENT
        ),
        candidate_limit=settings.COVER_CANDIDATE_LIMIT,
        resolved_ttl=settings.RESOLVED_TTL_SECONDS,
        placeholder_ttl=settings.PLACEHOLDER_TTL_SECONDS,
    )
