"""Slippy map engine: Web Mercator projection, tile grids, HTTP tiles and map state."""

__version__ = "0.39.0"

__all__ = [
    "center",
    "download",
    "http_tiles",
    "map",
    "memory",
    "mercator",
    "mockserver",
    "places",
    "position",
    "projector",
    "render",
    "sources",
    "tiles",
    "zoom",
]