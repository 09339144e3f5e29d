"""
In-process fakes for the pipeline collaborators.

Each fake records what it was asked to do so tests can assert on calls
without ogr2ogr, Google Cloud or PostgreSQL.
"""

import asyncio
import json
import os
from typing import Dict, List, Optional

from core.models import ConversionResult, ExternalJobState, ExternalJobStatus, LoadOutcome, SchemaField
from exceptions import ConversionError

from tests.factories.model_factories import make_point_feature


def _stem(path: str) -> str:
    return os.path.splitext(os.path.basename(path))[0]


class FakeConverter:
    """
    Writes a FeatureCollection instead of running ogr2ogr.

    Args:
        features: member stem -> feature list (default: one point per member)
        fail: member stems that raise ConversionError
        delays: member stem -> seconds to sleep before finishing
        diagnostics: member stem -> stderr text reported on success
    """

    def __init__(self, features: Dict[str, list] = None, fail=(), delays: Dict[str, float] = None,
                 diagnostics: Dict[str, str] = None):
        self.features = features or {}
        self.fail = set(fail)
        self.delays = delays or {}
        self.diagnostics = diagnostics or {}
        self.calls: List[str] = []
        self.cancelled: List[str] = []

    async def convert(self, input_path: str, output_path: str) -> ConversionResult:
        stem = _stem(input_path)
        self.calls.append(stem)
        try:
            await asyncio.sleep(self.delays.get(stem, 0))
        except asyncio.CancelledError:
            self.cancelled.append(stem)
            raise
        if stem in self.fail:
            raise ConversionError(f"ogr2ogr failed for {input_path} (exit code 1): bad member")

        features = self.features.get(stem)
        if features is None:
            features = [make_point_feature({"name": stem})]
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump({"type": "FeatureCollection", "features": features}, f)
        return ConversionResult(
            source_path=input_path,
            output_path=output_path,
            diagnostics=self.diagnostics.get(stem, "")
        )


class FakeLoader:
    """Returns a fixed LoadOutcome (or raises) and records its inputs."""

    def __init__(self, outcome: Optional[LoadOutcome] = None, error: Exception = None, delay: float = 0):
        self.outcome = outcome if outcome is not None else LoadOutcome(
            external_job_ref="bqjob_fake",
            schema_fields=[SchemaField(name="name"), SchemaField.geometry()],
            record_count=1
        )
        self.error = error
        self.delay = delay
        self.calls = []

    async def load(self, results, context):
        self.calls.append((results, context))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.outcome


class ScriptedStatus:
    """
    Stand-in for WarehouseClient.get_job_status.

    Each call consumes the next script item; Exception items are raised.
    The last item repeats once the script is exhausted.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.calls = 0

    def __call__(self, job_ref: str) -> ExternalJobStatus:
        item = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        if isinstance(item, Exception):
            raise item
        return item


def running() -> ExternalJobStatus:
    return ExternalJobStatus(state=ExternalJobState.RUNNING)


def done(*errors: str) -> ExternalJobStatus:
    return ExternalJobStatus(state=ExternalJobState.DONE, errors=list(errors))


class RecordingSleep:
    """Async sleep replacement that returns immediately and records delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeWarehouseClient:
    """Stand-in for infrastructure.bigquery.WarehouseClient."""

    def __init__(self, job_ref: str = "bqjob_123", rows=None, error: Exception = None):
        self.job_ref = job_ref
        self.rows = rows or []
        self.error = error
        self.loads = []
        self.queries = []

    def submit_load(self, source, table_ref, schema_fields):
        body = None
        if not source.startswith("gs://"):
            with open(source, encoding="utf-8") as f:
                body = f.read()
        self.loads.append({"source": source, "table_ref": table_ref, "schema": schema_fields, "body": body})
        return self.job_ref

    def query(self, sql):
        self.queries.append(sql)
        if self.error is not None:
            raise self.error
        return self.rows


class FakeObjectStore:
    """Stand-in for infrastructure.gcs.ObjectStore backed by a dict."""

    def __init__(self, blobs: Dict[str, bytes] = None):
        self.blobs = dict(blobs or {})
        self.uploads = []

    def download_blob(self, bucket_name, blob_path, destination_path):
        from exceptions import StorageError
        key = f"{bucket_name}/{blob_path}"
        if key not in self.blobs:
            raise StorageError(f"Object not found: gs://{key}")
        with open(destination_path, "wb") as f:
            f.write(self.blobs[key])
        return destination_path

    def upload_file(self, local_path, bucket_name, blob_path, content_type="application/x-ndjson"):
        with open(local_path, encoding="utf-8") as f:
            self.uploads.append({"bucket": bucket_name, "path": blob_path, "body": f.read()})
        return f"gs://{bucket_name}/{blob_path}"


# jobs.query response shape: schema.fields plus rows[].f[].v
REST_PAYLOAD = {
    "schema": {"fields": [{"name": "name"}, {"name": "geometry"}, {"name": "geojson"}]},
    "rows": [
        {"f": [{"v": "a"}, {"v": "POINT(1 2)"}, {"v": '{"type": "Point", "coordinates": [1, 2]}'}]},
        {"f": [{"v": "b"}, {"v": None}, {"v": None}]},
    ],
}


class FakeResponse:
    """Minimal requests.Response stand-in."""

    def __init__(self, status_code=200, payload=None, text="", json_error=None):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text
        self.json_error = json_error

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self.json_error is not None:
            raise self.json_error
        return self._payload


class FakeSession:
    """requests.Session stand-in recording POST calls."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def build_orchestrator(config, converter=None, loader=None, status=None, max_attempts=3, object_store=None):
    """
    JobOrchestrator wired to fakes; the monitor is the real poller over a
    scripted status source with a no-op sleep.
    """
    from core.orchestrator import JobOrchestrator
    from services.warehouse_monitor import WarehouseJobMonitor

    converter = converter or FakeConverter()
    loader = loader or FakeLoader()
    status = status or ScriptedStatus(running(), done())

    def monitor_factory(destination, on_transient_error):
        return WarehouseJobMonitor(
            status,
            max_attempts=max_attempts,
            sleep=RecordingSleep(),
            on_transient_error=on_transient_error
        )

    return JobOrchestrator(
        converter=converter,
        loader_factory=lambda destination: loader,
        monitor_factory=monitor_factory,
        object_store=object_store or FakeObjectStore(),
        config=config
    )
