"""Intercepted request model."""

from __future__ import annotations

from typing import Literal
from urllib.parse import urldefrag, urljoin, urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pyflkrd.models._http import normalize_method

RequestMode = Literal["navigate", "same-origin", "cors", "no-cors"]


class FetchRequest(BaseModel):
    """A request as seen by the worker's fetch handler.

    ``url`` must be absolute; use :meth:`resolve` to build one from a
    page-relative path.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes | None = None
    mode: RequestMode = "cors"

    @field_validator("method")
    @classmethod
    def _normalize_method(cls, value: str) -> str:
        return normalize_method(value)

    @field_validator("url")
    @classmethod
    def _require_absolute(cls, value: str) -> str:
        url = value.strip()
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"url must be absolute, got {value!r}")
        return url

    @classmethod
    def resolve(cls, origin: str, url: str, **kwargs: object) -> FetchRequest:
        """Build a request, resolving *url* against *origin* when relative."""
        return cls(url=urljoin(f"{origin}/", url), **kwargs)  # type: ignore[arg-type]

    @property
    def cache_key(self) -> str:
        """Key used by cache stores: the URL without its fragment."""
        return urldefrag(self.url).url

    @property
    def hostname(self) -> str:
        return urlsplit(self.url).hostname or ""

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or "/"

    @property
    def origin(self) -> str:
        parts = urlsplit(self.url)
        return f"{parts.scheme}://{parts.netloc}".lower()

    @property
    def is_cacheable(self) -> bool:
        """Only GET requests may be stored in or served from a cache."""
        return self.method == "GET"
