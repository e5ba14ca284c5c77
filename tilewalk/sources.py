"""Remote tile server definitions."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .tiles import TileId


@dataclass(frozen=True)
class Attribution:
    """Credit for a tile source, typically displayed over the map."""

    text: str
    url: str
    logo_light: str | None = None
    logo_dark: str | None = None


class TileSource(ABC):
    """Remote tile server definition."""

    @abstractmethod
    def tile_url(self, tile_id: TileId) -> str:
        """URL of the given tile."""

    @abstractmethod
    def attribution(self) -> Attribution:
        """Attribution of this source."""

    def tile_size(self) -> int:
        """Size of each tile; should be a multiple of 256."""
        return 256

    def max_zoom(self) -> int:
        return 19


class OpenStreetMap(TileSource):
    """Standard OpenStreetMap tiles."""

    def tile_url(self, tile_id: TileId) -> str:
        return (
            f"https://tile.openstreetmap.org/{tile_id.zoom}/{tile_id.x}/{tile_id.y}.png"
        )

    def attribution(self) -> Attribution:
        return Attribution(
            text="OpenStreetMap contributors",
            url="https://www.openstreetmap.org/copyright",
        )


class Geoportal(TileSource):
    """Orthophotomap layer from Poland's Geoportal."""

    def tile_url(self, tile_id: TileId) -> str:
        return (
            "https://mapy.geoportal.gov.pl/wss/service/PZGIK/ORTO/WMTS/StandardResolution?"
            "&SERVICE=WMTS"
            "&REQUEST=GetTile"
            "&VERSION=1.0.0"
            "&LAYER=ORTOFOTOMAPA"
            "&TILEMATRIXSET=EPSG:3857"
            f"&TILEMATRIX=EPSG:3857:{tile_id.zoom}"
            f"&TILEROW={tile_id.y}"
            f"&TILECOL={tile_id.x}"
        )

    def attribution(self) -> Attribution:
        return Attribution(
            text="Główny Urząd Geodezji i Kartografii",
            url="https://www.geoportal.gov.pl/",
        )


class MapboxStyle(enum.Enum):
    """Predefined Mapbox styles."""

    STREETS = "streets-v12"
    OUTDOORS = "outdoors-v12"
    LIGHT = "light-v11"
    DARK = "dark-v11"
    SATELLITE = "satellite-v9"
    SATELLITE_STREETS = "satellite-streets-v12"
    NAVIGATION_DAY = "navigation-day-v1"
    NAVIGATION_NIGHT = "navigation-night-v1"

    def api_slug(self) -> str:
        return self.value


@dataclass
class Mapbox(TileSource):
    """Mapbox static tile source; an access token is required."""

    style: MapboxStyle = MapboxStyle.STREETS
    high_resolution: bool = False
    access_token: str = ""

    def tile_url(self, tile_id: TileId) -> str:
        suffix = "@2x" if self.high_resolution else ""
        return (
            f"https://api.mapbox.com/styles/v1/mapbox/{self.style.api_slug()}"
            f"/tiles/512/{tile_id.zoom}/{tile_id.x}/{tile_id.y}{suffix}"
            f"?access_token={self.access_token}"
        )

    def attribution(self) -> Attribution:
        return Attribution(
            text="© Mapbox, © OpenStreetMap",
            url="https://www.mapbox.com/about/maps/",
            logo_light="mapbox-logo-white.svg",
            logo_dark="mapbox-logo-black.svg",
        )

    def tile_size(self) -> int:
        return 512