"""Pending-change queue record."""

from __future__ import annotations

import time
import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pyflkrd.models._http import normalize_method


class PendingChange(BaseModel):
    """An offline mutation waiting to be replayed against the write endpoint.

    Parameters
    ----------
    id : str
        Identity used to remove the record after a confirmed replay.
    method : str
        HTTP method to replay with.
    data : Any
        JSON-serialisable payload sent as the request body.
    created_at : float
        Epoch seconds when the change was recorded.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    method: str
    data: Any = None
    created_at: float = Field(default_factory=time.time)

    @field_validator("method")
    @classmethod
    def _normalize_method(cls, value: str) -> str:
        return normalize_method(value)

    def to_record(self) -> dict[str, Any]:
        """Wire shape consumed by the sync drain."""
        return {"id": self.id, "method": self.method, "data": self.data}
