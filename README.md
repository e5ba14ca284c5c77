# tilewalk

`tilewalk` is the engine behind a slippy map: the kind of map you drag
with the mouse and zoom with the wheel, put together from square image
tiles. It works out where the map is, which tiles cover the view and
where each of them goes on the screen, and it downloads the tiles. The
drawing itself is left to you.

What is in the package:

- `tilewalk.position`: `Position` (longitude as `x`, latitude as `y`),
  `Vec2` for screen vectors, and the helpers `lon_lat` and `lat_lon`;
- `tilewalk.mercator`: the Web Mercator projection (`project`,
  `unproject`, `tile_id`, `total_pixels`) and `AdjustedPosition`, a
  position plus a pixel offset;
- `tilewalk.zoom`: `Zoom`, a level from 0 to 26 (16 by default), and
  the `InvalidZoom` error;
- `tilewalk.tiles`: `TileId` and the tile grid, `Rect`, `Texture`,
  `decode_texture`, `TextureWithUv` and the `Tiles` interface;
- `tilewalk.sources`: `TileSource` and the predefined servers
  `OpenStreetMap`, `Geoportal` and `Mapbox` (with `MapboxStyle`), each
  with an `Attribution`;
- `tilewalk.center` and `tilewalk.memory`: where the map is centred
  (following "my position", exact, dragged, moving on by inertia, or
  pulled back to "my position") and `MapMemory`, the state kept
  between frames;
- `tilewalk.projector`: `Projector`, between positions and viewport
  pixels, and `calculate_meters_per_pixel`;
- `tilewalk.render`: `visible_tiles` and `flood_fill_tiles`, which
  find the tiles covering a viewport as `PlacedTile` values;
- `tilewalk.download` and `tilewalk.http_tiles`: background HTTP
  downloading with a limit on parallel downloads and an optional disk
  cache, and `HttpTiles`, an in-memory tile cache built on it;
- `tilewalk.places`: `Place`, `Places`, `GroupedPlaces` and grouping
  of places that lie close together on screen;
- `tilewalk.map`: `Map`, which turns one frame of input (`MapInput`)
  into map movement, lays out the tiles and runs plugins (`Plugin`);
- `tilewalk.mockserver`: a small local HTTP server for testing tile
  downloads.

## Installation

```
pip install tilewalk
```

Python 3.10 or newer is needed. Downloads use `aiohttp`; tiles are
decoded with Pillow.

## Positions and projection

```python
from tilewalk.position import lon_lat
from tilewalk.mercator import project, unproject, tile_id

station = lon_lat(17.03664, 51.09916)

pixels = project(station, 16)      # world pixels at zoom 16
again = unproject(pixels, 16)      # and back again

tile = tile_id(station, 16, 256)   # the 256 px tile holding the station
print(tile.x, tile.y, tile.zoom)
```

`lat_lon(lat, lon)` builds the same `Position` as `lon_lat(lon, lat)`,
with the arguments in the order coordinates are usually written.

For sources with larger tiles `tile_id` moves to a lower zoom level: a
512 px tile covers as much as four 256 px ones. It raises `ValueError`
if that would go below zoom 0.

## The tile grid

```python
from tilewalk.tiles import TileId

tile = TileId(x=0, y=0, zoom=1)
tile.east()    # TileId(x=1, y=0, zoom=1)
tile.south()   # TileId(x=0, y=1, zoom=1)
tile.west()    # None: the grid ends here
tile.valid()   # True
```

`decode_texture(data)` turns PNG or JPEG bytes into a `Texture` holding
an RGBA Pillow image, and raises `ValueError` for anything it cannot
decode.

## Tile sources

```python
from tilewalk.sources import Mapbox, MapboxStyle, OpenStreetMap
from tilewalk.tiles import TileId

osm = OpenStreetMap()
osm.tile_url(TileId(x=1, y=2, zoom=3))
# 'https://tile.openstreetmap.org/3/1/2.png'

mapbox = Mapbox(style=MapboxStyle.DARK, access_token="placeholder")
mapbox.tile_size()  # 512
```

Sources serve up to zoom 19 and 256 px tiles unless they say otherwise.
Every source gives an `Attribution` to be shown next to the map. Follow
the terms of use of the server you pick.

## Map state

```python
from tilewalk.memory import MapMemory
from tilewalk.position import lon_lat

memory = MapMemory()
memory.set_zoom(18)
memory.zoom_in()                 # raises InvalidZoom beyond the limits
memory.center_at(lon_lat(21.0, 52.0))
memory.detached()                # the centre, since it no longer follows you
memory.follow_my_position()
memory.detached()                # None
```

A `Projector(viewport, memory, my_position)` projects positions onto a
viewport `Rect` and back, and `scale_pixel_per_meter(position)` gives
the map scale there.

## Downloading tiles

```python
from tilewalk.http_tiles import HttpTiles
from tilewalk.sources import OpenStreetMap
from tilewalk.tiles import TileId

with HttpTiles(OpenStreetMap()) as tiles:
    tiles.at(TileId(x=1, y=2, zoom=3))   # None at first; schedules the download
    ...
    tiles.stats().in_progress            # downloads running now
```

`HttpTiles` runs the downloads on its own event loop in a background
thread. Call `at(tile_id)` on each frame: it schedules a download when
needed and returns a `TextureWithUv` once the tile has arrived. While a
tile is missing, a piece of an already downloaded tile from a lower
zoom level is returned, with the UV rectangle that covers it. Beyond
the source's highest zoom, tiles are always taken from that zoom. The
cache holds 256 tiles. Failed downloads are logged and the tile stays
empty. An optional `on_tile` callback is called from the download
thread whenever a tile arrives, for example to ask for a repaint.
`close()` (or leaving the `with` block) stops the thread.

`tilewalk.download.HttpOptions` sets:

- `user_agent`: the `User-Agent` header, `tilewalk/0.39.0` by default,
  or `None` to send none;
- `max_parallel_downloads`: a `MaxParallelDownloads`, six by default;
  raise it only with
  `MaxParallelDownloads.value_manually_confirmed_with_provider_limits(n)`
  after checking the provider's limits;
- `cache`: a directory for an HTTP disk cache that honours
  `Cache-Control`, `Expires`, `ETag` and `Last-Modified`.

## The map for one frame

```python
from tilewalk.map import Map, MapInput
from tilewalk.position import Vec2
from tilewalk.tiles import Rect

viewport = Rect.from_min_size(Vec2(0, 0), Vec2(800, 600))
changed, placed = (
    Map(tiles, memory, my_position)
    .zoom_with_ctrl(True)
    .show(viewport, MapInput(pointer_inside=True, zoom_delta=1.1), painter)
)
for tile in placed:
    ...  # draw tile.texture.image, part tile.uv, into tile.rect
```

`show` applies zooming (around the pointer), dragging, inertia and
scroll panning to the `MapMemory`, lays out the tiles of the main tiles
and of every layer added with `with_layer`, bottom first, and calls
each plugin's `run(painter, input, projector)`. The builder methods
`zoom_gesture`, `drag_gesture`, `zoom_speed`, `double_click_to_zoom`,
`double_click_to_zoom_out`, `zoom_with_ctrl` and `panning` switch the
gestures.

`tilewalk.places.Places` and `GroupedPlaces` draw `Place` objects;
`GroupedPlaces` hands places within 50 screen pixels of each other to
your `draw_group` function as one group, unless the group's index is in
`expanded`.

## Testing tile downloads

```python
from tilewalk.mockserver import Server

server = await Server.bind()
request = await server.anticipate("/3/1/2.png")
# point a source at f"http://localhost:{server.port}"
await request.expect()            # wait for the request
await request.respond(png_bytes)  # or respond_with_status(404)
await server.close()              # raises UnexpectedRequestsError if any came
```

Requests nobody anticipated get status 418.

## What it does not do

`tilewalk` has no window, widget toolkit or drawing code, and no
command to run. `Map.show` returns the tiles and their screen
rectangles and gives your painter object to the plugins; putting pixels
on a screen, and gathering mouse and touch input into a `MapInput`, is
up to the application.

## Running the tests

```
pip install "tilewalk[test]"
pytest
```