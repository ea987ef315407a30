from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from models.schemas import CoverQuery, HealthStatus
from services.cache_service import CacheStore
from services.orchestrator_service import CoverOrchestrator

IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"

router = APIRouter(tags=["Covers"])


def get_orchestrator(request: Request) -> CoverOrchestrator:
    return request.app.state.orchestrator


def get_cache(request: Request) -> CacheStore:
    return request.app.state.cache


@router.get("/", response_class=Response)
async def get_cover(
    book_title: Optional[str] = Query(None, examples=["The Hobbit"]),
    author_name: Optional[str] = Query(None, examples=["Tolkien"]),
    orchestrator: CoverOrchestrator = Depends(get_orchestrator),
):
    """
    Return the cover image for a book, or a generated placeholder when no
    cover exists.
    """
    query = CoverQuery.from_params(book_title, author_name)
    image = await orchestrator.resolve_cover(query)
    return Response(
        content=image.content,
        media_type=image.content_type,
        headers={"Cache-Control": IMMUTABLE_CACHE_CONTROL},
    )


@router.get("/health", response_model=HealthStatus)
async def health(cache: CacheStore = Depends(get_cache)):
    cache_ok = await cache.ping()
    return HealthStatus(cache="ok" if cache_ok else "unavailable")
