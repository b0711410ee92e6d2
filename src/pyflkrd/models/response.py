"""Response model stored in and served from cache stores."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ResponseType = Literal["basic", "cors", "opaque"]


class CachedResponse(BaseModel):
    """A fully buffered HTTP response.

    ``type`` follows the browser's classification: ``basic`` for the
    worker's own origin, ``cors`` for readable cross-origin responses and
    ``opaque`` for cross-origin ``no-cors`` responses.

    ``headers`` is a list of ``(name, value)`` pairs in wire order so
    repeated fields such as ``Set-Cookie`` survive a round trip through a
    store.  A mapping is accepted on construction.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    status: int
    status_text: str = ""
    headers: list[tuple[str, str]] = Field(default_factory=list)
    body: bytes = b""
    type: ResponseType = "basic"

    @field_validator("headers", mode="before")
    @classmethod
    def _header_pairs(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return list(value.items())
        return value

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive)."""
        values = self.header_values(name)
        return values[0] if values else None

    def header_values(self, name: str) -> list[str]:
        wanted = name.lower()
        return [value for key, value in self.headers if key.lower() == wanted]

    def clone(self) -> CachedResponse:
        """Return an independent copy suitable for storing."""
        return self.model_copy(deep=True)

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding)

    def json_body(self) -> Any:
        return json.loads(self.body)
