"""
Preview Service - Warehouse Table to GeoJSON FeatureCollection.

Runs a read query selecting every column plus ST_ASGEOJSON(geometry) and
reshapes the rows into features. With a caller bearer token the query goes
through the BigQuery REST API (jobs.query) using requests; without one,
ambient credentials are used via google-cloud-bigquery.

Exports:
    PreviewFetcher: Preview query runner
    build_preview_query: SQL for a table reference
    rows_to_feature_collection: Row reshaping
"""

import json
from typing import Any, Callable, Dict, List, Optional

import requests
from fastapi.encoders import jsonable_encoder

from core.validation import validate_table_ref
from exceptions import PreviewQueryError
from infrastructure.bigquery import WarehouseClient
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "PreviewFetcher")

GEOJSON_COLUMN = "geojson"
GEOMETRY_COLUMN = "geometry"


def build_preview_query(project_id: str, target_table: str, limit: Optional[int] = None) -> str:
    query = f"SELECT *, ST_ASGEOJSON({GEOMETRY_COLUMN}) AS {GEOJSON_COLUMN} FROM `{project_id}.{target_table}`"
    if limit is not None:
        query += f" LIMIT {limit}"
    return query


def normalize_limit(limit: Any) -> Optional[int]:
    """Positive integers only; anything else means no LIMIT."""
    if limit is None or isinstance(limit, bool):
        return None
    try:
        value = int(str(limit).strip())
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def rows_to_feature_collection(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    features = []
    for row in rows:
        raw = row.get(GEOJSON_COLUMN)
        geometry = None
        if raw:
            try:
                geometry = json.loads(raw) if isinstance(raw, str) else raw
            except json.JSONDecodeError:
                logger.warning("Skipping unparseable geometry in preview row")
        # Warehouse client rows carry datetime, date and Decimal values
        properties = jsonable_encoder({
            key: value for key, value in row.items()
            if key not in (GEOJSON_COLUMN, GEOMETRY_COLUMN)
        })
        features.append({"type": "Feature", "geometry": geometry, "properties": properties})
    return {"type": "FeatureCollection", "features": features}


def rest_rows(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Map a jobs.query response ({schema.fields, rows[].f[].v}) to dicts."""
    fields = [field["name"] for field in (payload.get("schema") or {}).get("fields", [])]
    rows = []
    for row in payload.get("rows") or []:
        cells = row.get("f") or []
        rows.append({
            name: cells[idx].get("v") if idx < len(cells) else None
            for idx, name in enumerate(fields)
        })
    return rows


class PreviewFetcher:
    """
    Fetches a bounded GeoJSON preview of a warehouse table.

    Usage:
        fetcher = PreviewFetcher(warehouse_config)
        collection = fetcher.fetch('my-project', 'dataset.table', limit=100)
    """

    def __init__(
        self,
        warehouse_config,
        session: Optional[requests.Session] = None,
        client_factory: Optional[Callable[[str], WarehouseClient]] = None
    ):
        self.config = warehouse_config
        self._session = session
        self._client_factory = client_factory or (lambda project: WarehouseClient(project, warehouse_config.location))

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def fetch(
        self,
        project_id: str,
        target_table: str,
        limit: Any = None,
        bearer_token: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Raises:
            ValidationError: Missing project or malformed table reference
            PreviewQueryError: Query failed
        """
        validate_table_ref(project_id, target_table)
        query = build_preview_query(project_id, target_table, normalize_limit(limit))
        logger.info(f"Preview query for {project_id}.{target_table}")

        if bearer_token:
            rows = self._query_rest(project_id, query, bearer_token)
        else:
            rows = self._client_factory(project_id).query(query)
        return rows_to_feature_collection(rows)

    def _query_rest(self, project_id: str, query: str, bearer_token: str) -> List[Dict[str, Any]]:
        url = f"{self.config.rest_endpoint}/projects/{project_id}/queries"
        try:
            response = self.session.post(
                url,
                json={"query": query, "useLegacySql": False},
                headers={"Authorization": f"Bearer {bearer_token}"},
                timeout=self.config.request_timeout_seconds
            )
        except requests.RequestException as e:
            raise PreviewQueryError(f"BigQuery query request failed: {e}") from e

        if not response.ok:
            raise PreviewQueryError(f"BigQuery query failed ({response.status_code}): {response.text}")

        try:
            payload = response.json()
        except ValueError as e:
            raise PreviewQueryError(f"BigQuery query returned a non-JSON body: {response.text[:200]}") from e
        if payload.get("errors"):
            messages = [err.get("message", str(err)) for err in payload["errors"]]
            raise PreviewQueryError(f"BigQuery query failed: {', '.join(messages)}")
        return rest_rows(payload)
