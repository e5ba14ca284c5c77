import pytest

from tilewalk.sources import (
    Attribution,
    Geoportal,
    Mapbox,
    MapboxStyle,
    OpenStreetMap,
    TileSource,
)
from tilewalk.tiles import TileId

TILE = TileId(x=1, y=2, zoom=3)


def test_openstreetmap_url():
    assert OpenStreetMap().tile_url(TILE) == "https://tile.openstreetmap.org/3/1/2.png"


def test_openstreetmap_defaults():
    source = OpenStreetMap()
    assert source.tile_size() == 256
    assert source.max_zoom() == 19
    assert source.attribution().text == "OpenStreetMap contributors"
    assert source.attribution().logo_light is None


def test_geoportal_url_has_tile_coordinates():
    url = Geoportal().tile_url(TILE)
    assert url.startswith(
        "https://mapy.geoportal.gov.pl/wss/service/PZGIK/ORTO/WMTS/StandardResolution?"
    )
    assert "&TILEMATRIX=EPSG:3857:3&" in url
    assert "&TILEROW=2&" in url
    assert url.endswith("&TILECOL=1")
    assert " " not in url


def test_geoportal_attribution():
    assert Geoportal().attribution().url == "https://www.geoportal.gov.pl/"


def test_mapbox_url_and_size():
    source = Mapbox(access_token="token")
    url = source.tile_url(TILE)
    assert url.startswith("https://api.mapbox.com/styles/v1/mapbox/streets-v12/tiles/512/")
    assert url.endswith("/3/1/2?access_token=token")
    assert source.tile_size() == 512


def test_mapbox_high_resolution():
    source = Mapbox(
        style=MapboxStyle.DARK, high_resolution=True, access_token="token"
    )
    url = source.tile_url(TILE)
    assert "/mapbox/dark-v11/" in url
    assert "/3/1/2@2x?" in url


def test_mapbox_attribution_has_logos():
    attribution = Mapbox().attribution()
    assert attribution.text == "© Mapbox, © OpenStreetMap"
    assert attribution.logo_light and attribution.logo_dark


@pytest.mark.parametrize(
    "style, slug",
    [
        (MapboxStyle.STREETS, "streets-v12"),
        (MapboxStyle.OUTDOORS, "outdoors-v12"),
        (MapboxStyle.LIGHT, "light-v11"),
        (MapboxStyle.SATELLITE_STREETS, "satellite-streets-v12"),
        (MapboxStyle.NAVIGATION_NIGHT, "navigation-night-v1"),
    ],
)
def test_mapbox_style_slugs(style, slug):
    assert style.api_slug() == slug


def test_custom_source_gets_defaults():
    class Custom(TileSource):
        def tile_url(self, tile_id):
            return f"tile-{tile_id.zoom}-{tile_id.x}-{tile_id.y}"

        def attribution(self):
            return Attribution(text="", url="")

    source = Custom()
    assert source.tile_url(TILE) == "tile-3-1-2"
    assert source.tile_size() == 256
    assert source.max_zoom() == 19


def test_tile_source_is_abstract():
    with pytest.raises(TypeError):
        TileSource()