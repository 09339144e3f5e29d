"""
Warehouse Loader - BigQuery Destination.

Merges every converted member into one newline-delimited JSON file (one
record per feature, geometry as WKT), derives or completes the table schema,
optionally stages the file in GCS and submits an append load job. The load
job is not awaited here; WarehouseJobMonitor watches it.

Exports:
    merge_to_ndjson: Merge converted members into NDJSON
    build_warehouse_schema: Explicit or auto-detected schema with geometry
    staging_object_path: GCS object path for staged NDJSON
    WarehouseLoader: DestinationLoader for BigQuery
"""

import asyncio
import json
import os
from typing import Callable, List, Optional, Tuple

from core.models import (
    ConversionResult,
    GEOMETRY_FIELD_NAME,
    LoadOutcome,
    SchemaField,
    SchemaFieldType,
    WarehouseDestination,
)
from core.utils import epoch_millis, utc_date_folder
from infrastructure.bigquery import WarehouseClient
from infrastructure.gcs import ObjectStore
from util_logger import LoggerFactory, ComponentType
from vector.converter_helpers import read_geojson_features
from vector.wkt_encoder import geojson_to_wkt

from .base import LoadContext

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "WarehouseLoader")


def merge_to_ndjson(results: List[ConversionResult], output_path: str) -> Tuple[int, List[str]]:
    """
    Write every feature of every member as one NDJSON record.

    Each record is the feature's property map plus a ``geometry`` WKT
    string. Features whose geometry does not encode are dropped.

    Args:
        results: Converted members in member order
        output_path: NDJSON file to write

    Returns:
        (records written, property keys in first-seen order, excluding
        ``geometry``)
    """
    keys: List[str] = []
    seen = set()
    written = 0
    dropped = 0

    with open(output_path, "w", encoding="utf-8") as out:
        for result in results:
            for feature in read_geojson_features(result.output_path):
                properties = feature.get("properties") or {}
                for key in properties:
                    if key != GEOMETRY_FIELD_NAME and key not in seen:
                        seen.add(key)
                        keys.append(key)

                wkt = geojson_to_wkt(feature.get("geometry"))
                if wkt is None:
                    dropped += 1
                    continue

                record = dict(properties)
                record[GEOMETRY_FIELD_NAME] = wkt
                out.write(json.dumps(record, default=str))
                out.write("\n")
                written += 1

    if dropped:
        logger.warning(f"Dropped {dropped} feature(s) without a supported geometry")
    return written, keys


def build_warehouse_schema(keys: List[str], explicit: Optional[List[SchemaField]] = None) -> List[SchemaField]:
    """
    Schema for the merged records.

    An explicit schema is kept as given, with a trailing geometry field
    appended if it has none. Otherwise every observed key is a nullable
    STRING column followed by the geometry column.
    """
    if explicit:
        fields = list(explicit)
        if not any(f.name == GEOMETRY_FIELD_NAME for f in fields):
            fields.append(SchemaField.geometry())
        return fields

    return [SchemaField(name=key, type=SchemaFieldType.STRING) for key in keys] + [SchemaField.geometry()]


def staging_object_path(file_name: str, prefix: str = "converted", millis: Optional[int] = None) -> str:
    """<YYYY-MM-DD>/<prefix>/<epoch-ms>_<base>_processed.ndjson"""
    base = os.path.splitext(os.path.basename(file_name or "upload"))[0] or "upload"
    stamp = millis if millis is not None else epoch_millis()
    return f"{utc_date_folder()}/{prefix}/{stamp}_{base}_processed.ndjson"


class WarehouseLoader:
    """
    Loads converted members into a BigQuery table.

    Usage:
        loader = WarehouseLoader(destination, warehouse_config)
        outcome = await loader.load(results, context)
        outcome.external_job_ref  # hand to WarehouseJobMonitor
    """

    def __init__(
        self,
        destination: WarehouseDestination,
        warehouse_config,
        client_factory: Optional[Callable[[str, Optional[str]], WarehouseClient]] = None,
        object_store: Optional[ObjectStore] = None
    ):
        self.destination = destination
        self.config = warehouse_config
        self._client_factory = client_factory or (lambda project, location: WarehouseClient(project, location))
        self._object_store = object_store
        self._client: Optional[WarehouseClient] = None

    @property
    def client(self) -> WarehouseClient:
        if self._client is None:
            self._client = self._client_factory(self.destination.project_id, self.config.location)
        return self._client

    @property
    def object_store(self) -> ObjectStore:
        if self._object_store is None:
            self._object_store = ObjectStore()
        return self._object_store

    async def load(self, results: List[ConversionResult], context: LoadContext) -> LoadOutcome:
        ndjson_path = os.path.join(context.work_dir, "merged.ndjson")
        try:
            record_count, keys = await asyncio.to_thread(merge_to_ndjson, results, ndjson_path)
            schema_fields = build_warehouse_schema(keys, context.schema_fields)
            context.log(f"Merged {record_count} record(s) from {len(results)} file(s)")
            if not context.schema_fields:
                context.log(f"Auto-detected schema with {len(schema_fields)} field(s)")

            source = ndjson_path
            bucket = context.staging_bucket or self.config.default_bucket
            if bucket:
                object_path = staging_object_path(context.file_name, self.config.staging_prefix)
                source = await asyncio.to_thread(self.object_store.upload_file, ndjson_path, bucket, object_path)
                context.log(f"Staged converted data at {source}")

            job_ref = await asyncio.to_thread(
                self.client.submit_load, source, self.destination.table_ref, schema_fields
            )
            context.log(f"BigQuery load job submitted: {job_ref}")

            return LoadOutcome(
                external_job_ref=job_ref,
                schema_fields=schema_fields,
                record_count=record_count
            )
        finally:
            self._remove(ndjson_path)

    @staticmethod
    def _remove(path: str) -> None:
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            logger.warning(f"Failed to remove {path}: {e}")
