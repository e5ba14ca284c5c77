"""Downloading tiles over HTTP in the background, with an optional disk cache."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import queue
import threading
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Any, Optional, Union

import aiohttp

from .sources import TileSource
from .tiles import Texture, TileId, decode_texture

log = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "tilewalk/0.39.0"

# How often the download loop looks for new requests while waiting.
_POLL_INTERVAL = 0.01


class DownloadError(Exception):
    """A tile could not be downloaded or decoded."""


@dataclass(frozen=True)
class MaxParallelDownloads:
    """Maximum number of parallel downloads; the default follows modern browsers."""

    value: int = 6

    def __post_init__(self) -> None:
        if self.value < 1:
            raise ValueError("at least one parallel download is required")

    @classmethod
    def value_manually_confirmed_with_provider_limits(cls, value: int) -> MaxParallelDownloads:
        """Use a custom value, after checking the provider's terms of use."""
        return cls(value)


@dataclass
class HttpOptions:
    """How tiles are fetched over HTTP.

    `cache` is a directory for the HTTP cache, `user_agent` the header sent to
    tile servers (None sends none).
    """

    cache: Optional[Path] = None
    user_agent: Optional[str] = DEFAULT_USER_AGENT
    max_parallel_downloads: MaxParallelDownloads = field(default_factory=MaxParallelDownloads)


@dataclass
class HttpStats:
    """Statistics of the HTTP downloads."""

    in_progress: int = 0


class Runtime:
    """Runs a coroutine on its own event loop in a background thread until closed."""

    def __init__(self, coroutine: Coroutine[Any, Any, Any]) -> None:
        self._loop = asyncio.new_event_loop()
        self._closed = False
        self._thread = threading.Thread(
            target=self._run, args=(coroutine,), name="tilewalk-io", daemon=True
        )
        self._thread.start()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def _run(self, coroutine: Coroutine[Any, Any, Any]) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.create_task(coroutine)
        self._loop.run_forever()
        pending = asyncio.all_tasks(self._loop)
        for task in pending:
            task.cancel()
        self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        self._loop.run_until_complete(self._loop.shutdown_asyncgens())
        self._loop.close()

    def close(self) -> None:
        """Stop the coroutine and wait for the thread to exit."""
        if self._closed:
            return
        self._closed = True
        self._loop.call_soon_threadsafe(self._loop.stop)
        log.debug("Waiting for the IO thread to exit.")
        self._thread.join()
        log.debug("IO thread is down.")

    def __enter__(self) -> Runtime:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass
class _CacheEntry:
    body: bytes
    expires: float
    etag: Optional[str] = None
    last_modified: Optional[str] = None


def _expiry(headers: Any, now: float) -> Optional[float]:
    """When a response stops being fresh; None if it must not be stored."""
    directives: dict[str, str] = {}
    for part in headers.get("Cache-Control", "").split(","):
        name, _, value = part.strip().partition("=")
        if name:
            directives[name.lower()] = value.strip().strip('"')
    if "no-store" in directives:
        return None
    if "no-cache" in directives:
        return now
    if "max-age" in directives:
        try:
            return now + max(0, int(directives["max-age"]))
        except ValueError:
            return now
    expires = headers.get("Expires")
    if expires:
        try:
            return parsedate_to_datetime(expires).timestamp()
        except (TypeError, ValueError, IndexError):
            return now
    return now


class _HttpCache:
    """Stores response bodies on disk, keyed by URL, honouring expiry and validators."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def _paths(self, url: str) -> tuple[Path, Path]:
        key = hashlib.sha256(url.encode("utf-8")).hexdigest()
        return self.directory / f"{key}.body", self.directory / f"{key}.json"

    def load(self, url: str) -> Optional[_CacheEntry]:
        body_path, meta_path = self._paths(url)
        try:
            meta = json.loads(meta_path.read_text("utf-8"))
            body = body_path.read_bytes()
        except (OSError, ValueError):
            return None
        if meta.get("url") != url:
            return None
        return _CacheEntry(
            body=body,
            expires=float(meta.get("expires", 0.0)),
            etag=meta.get("etag"),
            last_modified=meta.get("last_modified"),
        )

    def store(self, url: str, entry: _CacheEntry) -> None:
        body_path, meta_path = self._paths(url)
        meta = {
            "url": url,
            "expires": entry.expires,
            "etag": entry.etag,
            "last_modified": entry.last_modified,
        }
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            body_path.write_bytes(entry.body)
            meta_path.write_text(json.dumps(meta), "utf-8")
        except OSError as error:
            log.debug("Could not write HTTP cache entry for '%s': %s", url, error)


@dataclass
class _TileClient:
    session: aiohttp.ClientSession
    cache: Optional[_HttpCache] = None

    async def fetch(self, url: str, user_agent: Optional[str]) -> bytes:
        headers: dict[str, str] = {}
        if user_agent is not None:
            headers["User-Agent"] = user_agent
        skip = () if user_agent is not None else ("User-Agent",)

        entry = self.cache.load(url) if self.cache is not None else None
        if entry is not None:
            if entry.expires > time.time():
                return entry.body
            if entry.etag:
                headers["If-None-Match"] = entry.etag
            if entry.last_modified:
                headers["If-Modified-Since"] = entry.last_modified

        async with self.session.get(url, headers=headers, skip_auto_headers=skip) as response:
            log.debug("Downloaded '%s': %s.", url, response.status)
            if response.status == 304 and entry is not None and self.cache is not None:
                expires = _expiry(response.headers, time.time())
                if expires is not None:
                    entry.expires = expires
                    self.cache.store(url, entry)
                return entry.body
            response.raise_for_status()
            body = await response.read()
            if self.cache is not None and response.status == 200:
                expires = _expiry(response.headers, time.time())
                if expires is not None:
                    self.cache.store(
                        url,
                        _CacheEntry(
                            body=body,
                            expires=expires,
                            etag=response.headers.get("ETag"),
                            last_modified=response.headers.get("Last-Modified"),
                        ),
                    )
            return body


async def download_and_decode(
    session: Union[aiohttp.ClientSession, _TileClient],
    tile_id: TileId,
    url: str,
    user_agent: Optional[str],
) -> tuple[TileId, Texture]:
    """Download and decode one tile; raise DownloadError on any failure."""
    log.debug("Downloading '%s'.", url)
    client = session if isinstance(session, _TileClient) else _TileClient(session)
    try:
        body = await client.fetch(url, user_agent)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as error:
        raise DownloadError(f"could not download '{url}': {error}") from error
    try:
        texture = decode_texture(body)
    except ValueError as error:
        raise DownloadError(f"could not decode '{url}': {error}") from error
    return tile_id, texture


async def _deliver(tile_queue: queue.Queue, item: tuple[TileId, Texture]) -> None:
    while True:
        try:
            tile_queue.put_nowait(item)
            return
        except queue.Full:
            await asyncio.sleep(_POLL_INTERVAL)


async def _download_loop(
    source: TileSource,
    http_options: HttpOptions,
    http_stats: HttpStats,
    request_queue: queue.Queue,
    tile_queue: queue.Queue,
    on_tile: Optional[Callable[[], None]],
) -> None:
    limit = http_options.max_parallel_downloads.value
    user_agent = http_options.user_agent
    cache = _HttpCache(http_options.cache) if http_options.cache is not None else None
    active: set[asyncio.Task] = set()

    async with aiohttp.ClientSession() as session:
        client = _TileClient(session, cache)
        try:
            while True:
                if len(active) < limit:
                    try:
                        tile_id = request_queue.get_nowait()
                    except queue.Empty:
                        pass
                    else:
                        if tile_id is None:
                            return
                        url = source.tile_url(tile_id)
                        active.add(
                            asyncio.ensure_future(
                                download_and_decode(client, tile_id, url, user_agent)
                            )
                        )
                        http_stats.in_progress = len(active)
                        continue

                if active:
                    timeout = _POLL_INTERVAL if len(active) < limit else None
                    done, _ = await asyncio.wait(
                        active, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
                    )
                    for task in done:
                        active.discard(task)
                        try:
                            item = task.result()
                        except DownloadError as error:
                            log.warning("%s", error)
                            continue
                        await _deliver(tile_queue, item)
                        if on_tile is not None:
                            on_tile()
                else:
                    await asyncio.sleep(_POLL_INTERVAL)

                http_stats.in_progress = len(active)
        finally:
            for task in active:
                task.cancel()
            if active:
                await asyncio.gather(*active, return_exceptions=True)
            http_stats.in_progress = 0


async def download_continuously(
    source: TileSource,
    http_options: HttpOptions,
    http_stats: HttpStats,
    request_queue: queue.Queue,
    tile_queue: queue.Queue,
    on_tile: Optional[Callable[[], None]] = None,
) -> None:
    """Download tiles requested through `request_queue` into `tile_queue`.

    Tile ids are taken from `request_queue`; a None stops the loop. Each
    downloaded `(tile_id, texture)` is put in `tile_queue`, then `on_tile` is
    called. Failed downloads are logged and dropped.
    """
    try:
        await _download_loop(
            source, http_options, http_stats, request_queue, tile_queue, on_tile
        )
    except asyncio.CancelledError:
        log.debug("Tile download loop cancelled.")
        raise
    except Exception:
        log.exception("Tile download loop failed.")
    else:
        log.debug("Tile download loop finished.")