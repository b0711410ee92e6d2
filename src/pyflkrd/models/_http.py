"""Validators shared by the request and pending-change models."""

from __future__ import annotations

import re

# RFC 9110 token characters.
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def normalize_method(value: str) -> str:
    method = value.strip().upper()
    if not _TOKEN_RE.match(method):
        raise ValueError(f"method must be an HTTP token, got {value!r}")
    return method
