"""Tiles downloaded over HTTP and kept in a small in-memory cache."""

from __future__ import annotations

import logging
import queue
from collections import OrderedDict
from collections.abc import Callable, Iterator
from typing import Optional

from .download import HttpOptions, HttpStats, Runtime, download_continuously
from .position import Vec2
from .sources import Attribution, TileSource
from .tiles import Rect, Texture, TextureWithUv, TileId, Tiles

log = logging.getLogger(__name__)

# Number of tiles kept in memory; an arbitrary value which seemed right.
CACHE_SIZE = 256


def interpolate_from_lower_zoom(tile_id: TileId, available_zoom: int) -> tuple[TileId, Rect]:
    """Tile at `available_zoom` containing `tile_id`, and the part of it that covers it."""
    if tile_id.zoom < available_zoom:
        raise ValueError("available zoom must not exceed the tile's zoom")

    dzoom = 2 ** (tile_id.zoom - available_zoom)
    x, x_rest = divmod(tile_id.x, dzoom)
    y, y_rest = divmod(tile_id.y, dzoom)

    z = 1.0 / dzoom
    uv = Rect.from_min_max(
        Vec2(x_rest * z, y_rest * z),
        Vec2(x_rest * z + z, y_rest * z + z),
    )
    return TileId(x=x, y=y, zoom=available_zoom), uv


class HttpTiles(Tiles):
    """Downloads tiles via HTTP in the background. It must persist between frames.

    `on_tile` is called from the download thread each time a tile arrives,
    e.g. to request a repaint.
    """

    def __init__(
        self,
        source: TileSource,
        http_options: Optional[HttpOptions] = None,
        on_tile: Optional[Callable[[], None]] = None,
    ) -> None:
        if http_options is None:
            http_options = HttpOptions()

        self._attribution = source.attribution()
        self._tile_size = source.tile_size()
        self._max_zoom = source.max_zoom()
        self._http_stats = HttpStats()
        self._cache: OrderedDict[TileId, Optional[Texture]] = OrderedDict()

        # A small request queue makes sure that newer requests are prioritised.
        channel_size = http_options.max_parallel_downloads.value
        self._request_queue: queue.Queue = queue.Queue(maxsize=channel_size)
        self._tile_queue: queue.Queue = queue.Queue(maxsize=channel_size)

        self._runtime = Runtime(
            download_continuously(
                source,
                http_options,
                self._http_stats,
                self._request_queue,
                self._tile_queue,
                on_tile,
            )
        )

    def stats(self) -> HttpStats:
        """Snapshot of the download statistics."""
        return HttpStats(in_progress=self._http_stats.in_progress)

    def _cache_put(self, tile_id: TileId, texture: Optional[Texture]) -> None:
        self._cache[tile_id] = texture
        self._cache.move_to_end(tile_id)
        while len(self._cache) > CACHE_SIZE:
            self._cache.popitem(last=False)

    def _put_single_downloaded_tile_in_cache(self) -> None:
        # Called every frame, so take just one at a time.
        try:
            tile_id, texture = self._tile_queue.get_nowait()
        except queue.Empty:
            return
        self._cache_put(tile_id, texture)

    def _make_sure_is_downloaded(self, tile_id: TileId) -> None:
        if tile_id in self._cache:
            self._cache.move_to_end(tile_id)
            return
        try:
            self._request_queue.put_nowait(tile_id)
        except queue.Full:
            log.debug("Request queue is full.")
            return
        log.debug("Requested tile: %s", tile_id)
        self._cache_put(tile_id, None)

    def _candidates(self, tile_id: TileId) -> Iterator[tuple[TileId, Rect]]:
        for zoom in range(tile_id.zoom, -1, -1):
            yield interpolate_from_lower_zoom(tile_id, zoom)

    def _get_from_cache_or_interpolate(self, tile_id: TileId) -> Optional[TextureWithUv]:
        """The tile, or a piece of one at a lower zoom; never starts a download."""
        for donor_id, uv in self._candidates(tile_id):
            texture = self._cache.get(donor_id)
            if texture is not None:
                self._cache.move_to_end(donor_id)
                return TextureWithUv(texture=texture, uv=uv)
        return None

    def at(self, tile_id: TileId) -> Optional[TextureWithUv]:
        """Return a tile if already in cache, schedule a download otherwise."""
        self._put_single_downloaded_tile_in_cache()

        if not tile_id.valid():
            return None

        if tile_id.zoom > self._max_zoom:
            to_download = interpolate_from_lower_zoom(tile_id, self._max_zoom)[0]
        else:
            to_download = tile_id

        self._make_sure_is_downloaded(to_download)
        return self._get_from_cache_or_interpolate(tile_id)

    def attribution(self) -> Attribution:
        """Attribution of the source the tiles come from."""
        return self._attribution

    def tile_size(self) -> int:
        return self._tile_size

    def close(self) -> None:
        """Stop downloading and wait for the background thread to exit."""
        self._runtime.close()

    def __enter__(self) -> HttpTiles:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()