from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

DEFAULT_TITLE = "Unknown Title"
DEFAULT_AUTHOR = "Unknown Author"

JPEG_CONTENT_TYPE = "image/jpeg"
SVG_CONTENT_TYPE = "image/svg+xml"


# --- Request Models ---
class CoverQuery(BaseModel):
    title: str = Field(DEFAULT_TITLE, description="Free-text book title.")
    author: str = Field(DEFAULT_AUTHOR, description="Free-text author name.")

    @classmethod
    def from_params(cls, book_title: Optional[str], author_name: Optional[str]) -> "CoverQuery":
        """Build a query from raw request parameters; empty values count as missing."""
        return cls(title=book_title or DEFAULT_TITLE, author=author_name or DEFAULT_AUTHOR)

    @property
    def cache_key(self) -> str:
        # Lowercased only; surrounding whitespace is significant.
        return f"cover:{self.title.lower()}:{self.author.lower()}"


# --- Cache Entries ---
class ResolvedCover(BaseModel):
    kind: Literal["resolved"] = "resolved"
    url: str = Field(description="Cover image URL that served an image when it was cached.")


class PlaceholderMarker(BaseModel):
    kind: Literal["placeholder"] = "placeholder"


CacheEntry = Annotated[Union[ResolvedCover, PlaceholderMarker], Field(discriminator="kind")]
cache_entry_adapter: TypeAdapter[CacheEntry] = TypeAdapter(CacheEntry)


# --- Upstream Results ---
class SearchStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


class SearchOutcome(BaseModel):
    status: SearchStatus
    identifiers: list[str] = Field(default_factory=list, description="Candidate ISBNs in upstream order.")
    detail: Optional[str] = None


class CoverResult(BaseModel):
    found: bool
    url: Optional[str] = None
    content: bytes = b""
    content_type: Optional[str] = None

    @classmethod
    def not_found(cls) -> "CoverResult":
        return cls(found=False)


# --- API Response Models ---
class CoverSource(str, Enum):
    CACHE = "cache"
    RESOLVED = "resolved"
    PLACEHOLDER = "placeholder"


class ImageResponse(BaseModel):
    content: bytes
    content_type: str
    source: CoverSource


class HealthStatus(BaseModel):
    status: str = "ok"
    cache: str = Field(description="'ok' when the cache store answered a ping, otherwise 'unavailable'.")
