import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from config import settings
from routers.covers import router as covers_router
from services.cache_service import build_cache_store
from services.orchestrator_service import build_orchestrator
from services.placeholder_service import PlaceholderError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cache = build_cache_store(settings.CACHE_URL)
    app.state.cache = cache
    app.state.orchestrator = build_orchestrator(settings, cache)
    logger.info(f"{settings.APP_NAME} started")
    try:
        yield
    finally:
        await cache.close()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PlaceholderError)
async def placeholder_error_handler(request: Request, exc: PlaceholderError):
    # Terminal fallback failed; nothing left to serve but the error.
    return PlainTextResponse(f"Failed to fetch placeholder: {exc}", status_code=500)


app.include_router(covers_router)
