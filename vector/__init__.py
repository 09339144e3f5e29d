"""
Vector conversion package.

Exports:
    geojson_to_wkt: GeoJSON geometry to WKT encoder
    Converter: Converter protocol
    Ogr2OgrConverter: ogr2ogr-backed converter
"""

from .wkt_encoder import geojson_to_wkt
from .converter_base import Converter
from .ogr_converter import Ogr2OgrConverter

__all__ = ['geojson_to_wkt', 'Converter', 'Ogr2OgrConverter']
