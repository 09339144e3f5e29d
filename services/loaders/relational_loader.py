"""
Relational Loader - PostgreSQL/PostGIS Destination.

For each converted member: drop and recreate one table, add a GIST index
on the geometry column and insert every feature with ST_GeomFromText.
Returns the created table names, the created columns as schema fields and
a bounded preview of the first member.

Table layout:
    id SERIAL PRIMARY KEY
    geom GEOMETRY(Geometry, 4326)
    <attribute columns typed from pandas dtypes>

Exports:
    RelationalLoader: DestinationLoader for PostGIS
    table_names_for: Table naming for one or more members
    spatial_index_name: GIST index naming within the identifier limit
"""

import asyncio
import hashlib
import math
import os
from typing import Any, Dict, List, Optional

import geopandas as gpd
import pandas as pd
import psycopg
from psycopg import sql

from core.models import ConversionResult, LoadOutcome, RelationalDestination, SchemaField, SchemaFieldType
from core.utils import epoch_millis
from core.validation import validate_destination, validate_identifier, MAX_IDENTIFIER_LENGTH
from exceptions import DestinationError
from infrastructure.postgis import postgis_connection
from util_logger import LoggerFactory, ComponentType
from vector.converter_helpers import read_geojson_features

from .base import LoadContext

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "RelationalLoader")

GEOMETRY_COLUMN = "geom"
RESERVED_COLUMNS = {"id", GEOMETRY_COLUMN}

FIELD_TYPES = {
    "BOOLEAN": SchemaFieldType.BOOLEAN,
    "BIGINT": SchemaFieldType.INTEGER,
    "DOUBLE PRECISION": SchemaFieldType.FLOAT,
    "TIMESTAMP": SchemaFieldType.TIMESTAMP,
    "TEXT": SchemaFieldType.STRING,
}


def table_names_for(base_name: str, member_count: int) -> List[str]:
    """
    One table per member; ``<base>_<index>`` when there is more than one.
    """
    if member_count <= 1:
        return [base_name]
    names = []
    for index in range(member_count):
        suffix = f"_{index}"
        names.append(f"{base_name[:MAX_IDENTIFIER_LENGTH - len(suffix)]}{suffix}")
    return names


def spatial_index_name(table_name: str) -> str:
    """
    ``idx_<table>_geom``, or a truncated table name plus a hash of the full
    name when that would exceed the identifier limit.
    """
    name = f"idx_{table_name}_geom"
    if len(name) <= MAX_IDENTIFIER_LENGTH:
        return name
    digest = hashlib.md5(table_name.encode("utf-8")).hexdigest()[:8]
    keep = MAX_IDENTIFIER_LENGTH - len("idx___geom") - len(digest)
    return f"idx_{table_name[:keep]}_{digest}_geom"


def _to_python(value: Any) -> Any:
    """Database-ready scalar: numpy scalars unwrapped, NaN/NaT as NULL."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.to_pydatetime()
    if hasattr(value, "item") and not isinstance(value, (list, dict, str, bytes)):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


class RelationalLoader:
    """
    Loads converted members into PostGIS tables.

    Usage:
        loader = RelationalLoader(destination, database_config, preview_limit=1000)
        outcome = await loader.load(results, context)
        outcome.tables   # ['imported_data_1718000000000']
        outcome.preview  # FeatureCollection
    """

    def __init__(
        self,
        destination: RelationalDestination,
        database_config,
        preview_limit: int = 1000
    ):
        self.destination = destination
        self.config = database_config
        self.preview_limit = preview_limit

    def base_table_name(self) -> str:
        if self.destination.table:
            return self.destination.table
        return f"{self.config.table_prefix}_{epoch_millis()}"

    async def load(self, results: List[ConversionResult], context: LoadContext) -> LoadOutcome:
        validate_destination(self.destination)
        base_name = self.base_table_name()
        validate_identifier(base_name)

        tables = table_names_for(base_name, len(results))
        schema_fields = await asyncio.to_thread(self._load_all, results, tables, context)

        preview = await asyncio.to_thread(self.build_preview, results[0].output_path) if results else None
        return LoadOutcome(tables=tables, preview=preview, schema_fields=schema_fields)

    def build_preview(self, geojson_path: str) -> Dict[str, Any]:
        features = read_geojson_features(geojson_path)[:self.preview_limit]
        return {"type": "FeatureCollection", "features": features}

    # ========================================================================
    # Database work (runs in a worker thread)
    # ========================================================================

    def _load_all(
        self,
        results: List[ConversionResult],
        tables: List[str],
        context: LoadContext
    ) -> List[SchemaField]:
        """
        Load every member in its own transaction.

        Returns:
            Union of the created columns, first seen first, then the geometry column
        """
        columns_seen: Dict[str, str] = {}
        try:
            with postgis_connection(self.destination, self.config.connect_timeout_seconds) as conn:
                for result, table_name in zip(results, tables):
                    gdf = gpd.read_file(result.output_path)
                    with conn.cursor() as cur:
                        columns = self._recreate_table(cur, gdf, table_name)
                        for col in columns:
                            columns_seen.setdefault(self._column_name(col), self._get_postgres_type(gdf[col].dtype))
                        if self.config.create_spatial_indexes:
                            self._create_spatial_index(cur, table_name)
                        count = self._insert_features(cur, gdf, table_name, columns)
                    conn.commit()
                    context.log(f"Loaded {count} feature(s) into {table_name}")
                    logger.info(f"Loaded {count} rows into {table_name} from {os.path.basename(result.source_path)}")
        except psycopg.Error as e:
            raise DestinationError(f"PostgreSQL load failed: {e}") from e

        schema_fields = [SchemaField(name=name, type=FIELD_TYPES[pg_type]) for name, pg_type in columns_seen.items()]
        schema_fields.append(SchemaField(name=GEOMETRY_COLUMN, type=SchemaFieldType.GEOGRAPHY))
        return schema_fields

    def _get_postgres_type(self, dtype) -> str:
        """
        Map pandas dtype to PostgreSQL type.

        Args:
            dtype: Pandas dtype

        Returns:
            PostgreSQL type string
        """
        dtype_str = str(dtype)

        if 'bool' in dtype_str:
            return 'BOOLEAN'
        elif 'int' in dtype_str:
            return 'BIGINT'
        elif 'float' in dtype_str:
            return 'DOUBLE PRECISION'
        elif 'datetime' in dtype_str:
            return 'TIMESTAMP'
        else:
            return 'TEXT'

    @staticmethod
    def _column_name(column: str) -> str:
        return f"src_{column}" if column.lower() in RESERVED_COLUMNS else column

    def _recreate_table(self, cur: psycopg.Cursor, gdf: gpd.GeoDataFrame, table_name: str) -> List[str]:
        """
        Drop and create the member table.

        Returns:
            Source attribute columns, in table order
        """
        geometry_name = gdf.geometry.name
        attribute_columns = [col for col in gdf.columns if col != geometry_name]

        columns = [
            sql.Identifier(self._column_name(col)) + sql.SQL(f" {self._get_postgres_type(gdf[col].dtype)}")
            for col in attribute_columns
        ]

        cur.execute(sql.SQL("DROP TABLE IF EXISTS {table}").format(table=sql.Identifier(table_name)))

        create_table = sql.SQL("""
            CREATE TABLE {table} (
                id SERIAL PRIMARY KEY,
                {geom} GEOMETRY(Geometry, 4326){columns}
            )
        """).format(
            table=sql.Identifier(table_name),
            geom=sql.Identifier(GEOMETRY_COLUMN),
            columns=sql.SQL(', ').join([sql.SQL('')] + columns) if columns else sql.SQL('')
        )
        cur.execute(create_table)
        logger.debug(f"Created table {table_name} with {len(columns)} attribute column(s)")
        return attribute_columns

    def _create_spatial_index(self, cur: psycopg.Cursor, table_name: str) -> None:
        index_name = spatial_index_name(table_name)
        cur.execute(sql.SQL("""
            CREATE INDEX {index_name}
            ON {table}
            USING GIST ({geom})
        """).format(
            index_name=sql.Identifier(index_name),
            table=sql.Identifier(table_name),
            geom=sql.Identifier(GEOMETRY_COLUMN)
        ))
        logger.debug(f"Created spatial index: {index_name}")

    def _insert_features(
        self,
        cur: psycopg.Cursor,
        gdf: gpd.GeoDataFrame,
        table_name: str,
        attribute_columns: List[str]
    ) -> int:
        if attribute_columns:
            cols_sql = sql.SQL(', ').join([sql.Identifier(self._column_name(col)) for col in attribute_columns])
            placeholders = sql.SQL(', ').join([sql.Placeholder()] * len(attribute_columns))
            insert_stmt = sql.SQL("""
                INSERT INTO {table} ({geom}, {cols})
                VALUES (ST_GeomFromText(%s, 4326), {placeholders})
            """).format(
                table=sql.Identifier(table_name),
                geom=sql.Identifier(GEOMETRY_COLUMN),
                cols=cols_sql,
                placeholders=placeholders
            )
        else:
            insert_stmt = sql.SQL("""
                INSERT INTO {table} ({geom})
                VALUES (ST_GeomFromText(%s, 4326))
            """).format(
                table=sql.Identifier(table_name),
                geom=sql.Identifier(GEOMETRY_COLUMN)
            )

        rows = []
        for _, row in gdf.iterrows():
            geometry = row[gdf.geometry.name]
            geom_wkt: Optional[str] = None if geometry is None or geometry.is_empty else geometry.wkt
            rows.append([geom_wkt] + [_to_python(row[col]) for col in attribute_columns])

        if rows:
            cur.executemany(insert_stmt, rows)
        return len(rows)
