"""
GeoJSON Geometry to WKT Encoder.

Pure, total function used when merging converted features into warehouse
records. Unsupported or malformed geometries encode to None ("no geometry")
rather than raising, so one bad feature never fails a whole load.

Supported types (case-insensitive on input, upper-case on output):
    Point, LineString, Polygon, MultiPoint, MultiLineString, MultiPolygon

Examples:
    >>> geojson_to_wkt({"type": "Point", "coordinates": [1, 2]})
    'POINT(1 2)'
    >>> geojson_to_wkt({"type": "Polygon", "coordinates": [[[0, 0], [0, 1], [1, 1], [0, 0]]]})
    'POLYGON((0 0, 0 1, 1 1, 0 0))'
    >>> geojson_to_wkt({"type": "GeometryCollection", "geometries": []}) is None
    True
"""

from numbers import Real
from typing import Any, Optional, Sequence


class _Malformed(Exception):
    pass


def _number(value: Any) -> str:
    # bool is a Real subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, Real):
        raise _Malformed(f"non-numeric coordinate {value!r}")
    return repr(value)


def _position(coords: Any) -> str:
    if not isinstance(coords, Sequence) or isinstance(coords, str) or len(coords) < 2:
        raise _Malformed("position needs at least two numbers")
    return " ".join(_number(c) for c in coords)


def _position_list(coords: Any) -> str:
    if not isinstance(coords, Sequence) or isinstance(coords, str) or not coords:
        raise _Malformed("expected a non-empty list of positions")
    return ", ".join(_position(c) for c in coords)


def _ring_list(coords: Any) -> str:
    if not isinstance(coords, Sequence) or isinstance(coords, str) or not coords:
        raise _Malformed("expected a non-empty list of rings")
    return ", ".join(f"({_position_list(ring)})" for ring in coords)


def _polygon_list(coords: Any) -> str:
    if not isinstance(coords, Sequence) or isinstance(coords, str) or not coords:
        raise _Malformed("expected a non-empty list of polygons")
    return ", ".join(f"({_ring_list(polygon)})" for polygon in coords)


_BODY_ENCODERS = {
    "POINT": _position,
    "LINESTRING": _position_list,
    "MULTIPOINT": _position_list,
    "POLYGON": _ring_list,
    "MULTILINESTRING": _ring_list,
    "MULTIPOLYGON": _polygon_list,
}


def geojson_to_wkt(geometry: Any) -> Optional[str]:
    """
    Encode one GeoJSON geometry mapping as WKT.

    Coordinates keep their original numeric precision (integers stay
    integers, floats are not rounded).

    Args:
        geometry: GeoJSON geometry mapping ({"type", "coordinates"})

    Returns:
        WKT string, or None for unsupported or malformed geometries
    """
    if not isinstance(geometry, dict):
        return None

    geometry_type = geometry.get("type")
    if not isinstance(geometry_type, str) or not geometry_type:
        return None

    keyword = geometry_type.upper()
    encoder = _BODY_ENCODERS.get(keyword)
    if encoder is None or "coordinates" not in geometry:
        return None

    try:
        return f"{keyword}({encoder(geometry['coordinates'])})"
    except _Malformed:
        return None
