#!/usr/bin/env python3
"""Warm and inspect the pyflkrd cache stores against a live origin.

This script registers a worker (install + activate), optionally routes
extra URLs through the fetch strategies, and prints every cache store
with its entries so you can check what the app would have offline.

Usage
-----
Point it at a running app and run::

    export FLKRD_ORIGIN="http://localhost:3000"
    export FLKRD_CACHE_PATH="./.flkrd/stores"
    python scripts/warm_cache.py /api/trending https://image.tmdb.org/t/p/w500/abc.jpg

Options::

    URL ...              Extra URLs to fetch through the worker after activation
    --json               Output as machine-readable JSON
    --output FILE        Write output to FILE instead of stdout
    --sync               Drain the pending-change queue after warming
    --clear              Delete every cache store before registering
    --verbose            Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyflkrd import FlkrdError, OfflineConfig, OfflineWorker  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


async def _describe_stores(worker: OfflineWorker) -> list[dict[str, Any]]:
    storage = worker.cache.storage
    stores: list[dict[str, Any]] = []
    for name in await storage.keys():
        store = await storage.open(name)
        entries = []
        for key in await store.keys():
            cached = await store.match(key)
            if cached is None:
                continue
            entries.append({"key": key, "status": cached.status, "type": cached.type, "bytes": len(cached.body)})
        stores.append({"name": name, "entries": entries})
    return stores


# ── main ─────────────────────────────────────────────────────


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Register a pyflkrd worker and dump its cache stores.",
    )
    parser.add_argument("urls", nargs="*", help="Extra URLs to fetch after activation")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--sync", action="store_true", help="Drain the pending-change queue after warming")
    parser.add_argument("--clear", action="store_true", help="Delete every cache store before registering")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = OfflineConfig.from_env()
    result: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "origin": config.origin,
        "cache_version": config.cache_version,
        "fetched": [],
    }

    async with OfflineWorker(config) as worker:
        if args.clear:
            result["cleared"] = await worker.clear_caches()

        try:
            result["state"] = str(await worker.register())
        except FlkrdError as exc:
            result["state"] = str(worker.state)
            result["error"] = str(exc)

        for url in args.urls:
            try:
                response = await worker.handle_fetch(url)
                result["fetched"].append({"url": url, "status": response.status, "type": response.type})
            except FlkrdError as exc:
                result["fetched"].append({"url": url, "error": str(exc)})
        await worker.flush()

        if args.sync:
            sync = await worker.handle_sync(config.sync_tag, force=True)
            if sync is not None:
                result["sync"] = {"delivered": sync.delivered, "failed": sync.failed}

        result["stores"] = await _describe_stores(worker)
        result["usage_bytes"] = await worker.cache_usage()

    payload = json.dumps(result, indent=2, ensure_ascii=False)
    if args.json_mode:
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"JSON written to {args.output}", file=sys.stderr)
        else:
            print(payload)
        return

    out: list[str] = [_section("pyflkrd warm_cache")]
    out.append(f"  time      : {result['timestamp']}")
    out.append(f"  origin    : {result['origin']}")
    out.append(f"  version   : {result['cache_version']}")
    out.append(f"  state     : {result['state']}")
    if "error" in result:
        out.append(f"  !! {result['error']}")
    for item in result["fetched"]:
        out.append(f"  fetch {item['url']}: {item.get('status', item.get('error'))}")
    for store in result["stores"]:
        out.append(_section(f"STORE {store['name']}"))
        for entry in store["entries"]:
            out.append(f"  {entry['status']} {entry['type']:<6} {entry['bytes']:>8}b  {entry['key']}")
    out.append(f"\n  total: {result['usage_bytes']} bytes")

    text = "\n".join(out)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Output written to {args.output}")
    else:
        print(text)


if __name__ == "__main__":
    asyncio.run(main())
