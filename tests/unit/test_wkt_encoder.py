"""
GeoJSON to WKT encoding tests.

Covers every supported geometry type, case-insensitive type names,
numeric precision and the malformed inputs that must encode to None.
"""

import pytest

from vector.wkt_encoder import geojson_to_wkt


class TestSupportedTypes:

    def test_point(self):
        assert geojson_to_wkt({"type": "Point", "coordinates": [1, 2]}) == "POINT(1 2)"

    def test_polygon(self):
        geometry = {"type": "Polygon", "coordinates": [[[0, 0], [0, 1], [1, 1], [0, 0]]]}
        assert geojson_to_wkt(geometry) == "POLYGON((0 0, 0 1, 1 1, 0 0))"

    def test_polygon_with_hole(self):
        geometry = {
            "type": "Polygon",
            "coordinates": [
                [[0, 0], [10, 0], [10, 10], [0, 0]],
                [[1, 1], [2, 1], [2, 2], [1, 1]],
            ],
        }
        assert geojson_to_wkt(geometry) == "POLYGON((0 0, 10 0, 10 10, 0 0), (1 1, 2 1, 2 2, 1 1))"

    def test_linestring(self):
        geometry = {"type": "LineString", "coordinates": [[0, 0], [1.5, -2.25]]}
        assert geojson_to_wkt(geometry) == "LINESTRING(0 0, 1.5 -2.25)"

    def test_multipoint(self):
        geometry = {"type": "MultiPoint", "coordinates": [[1, 2], [3, 4]]}
        assert geojson_to_wkt(geometry) == "MULTIPOINT(1 2, 3 4)"

    def test_multilinestring(self):
        geometry = {"type": "MultiLineString", "coordinates": [[[0, 0], [1, 1]], [[2, 2], [3, 3]]]}
        assert geojson_to_wkt(geometry) == "MULTILINESTRING((0 0, 1 1), (2 2, 3 3))"

    def test_multipolygon(self):
        geometry = {
            "type": "MultiPolygon",
            "coordinates": [
                [[[0, 0], [0, 1], [1, 1], [0, 0]]],
                [[[5, 5], [5, 6], [6, 6], [5, 5]]],
            ],
        }
        assert geojson_to_wkt(geometry) == "MULTIPOLYGON(((0 0, 0 1, 1 1, 0 0)), ((5 5, 5 6, 6 6, 5 5)))"

    @pytest.mark.parametrize("type_name", ["point", "POINT", "pOiNt"])
    def test_type_is_case_insensitive(self, type_name):
        assert geojson_to_wkt({"type": type_name, "coordinates": [3, 4]}) == "POINT(3 4)"

    def test_three_dimensional_positions_keep_z(self):
        assert geojson_to_wkt({"type": "Point", "coordinates": [1, 2, 3]}) == "POINT(1 2 3)"

    def test_float_precision_is_preserved(self):
        wkt = geojson_to_wkt({"type": "Point", "coordinates": [0.1 + 0.2, 37.7749295]})
        assert wkt == "POINT(0.30000000000000004 37.7749295)"


class TestUnsupportedAndMalformed:

    @pytest.mark.parametrize("geometry", [
        None,
        "POINT(1 2)",
        [],
        {},
        {"type": "GeometryCollection", "geometries": []},
        {"type": "Circle", "coordinates": [0, 0]},
        {"type": "Point"},
        {"type": "Point", "coordinates": None},
        {"type": "Point", "coordinates": [1]},
        {"type": "Point", "coordinates": ["a", "b"]},
        {"type": "Point", "coordinates": [True, False]},
        {"type": "LineString", "coordinates": []},
        {"type": "Polygon", "coordinates": [[]]},
        {"type": "Polygon", "coordinates": [[[0, 0], [1]]]},
        {"type": "MultiPolygon", "coordinates": [[[[0, 0], [0, "x"]]]]},
        {"type": 7, "coordinates": [1, 2]},
    ], ids=[
        "none", "string", "list", "empty-dict", "geometry-collection", "unknown-type",
        "no-coordinates", "null-coordinates", "short-position", "text-coordinates",
        "bool-coordinates", "empty-linestring", "empty-ring", "short-ring-position",
        "text-in-multipolygon", "non-string-type",
    ])
    def test_encodes_to_none(self, geometry):
        assert geojson_to_wkt(geometry) is None
