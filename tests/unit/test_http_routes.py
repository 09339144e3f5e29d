"""
HTTP surface tests through FastAPI's TestClient.

The application state is preset with an orchestrator built on fakes and
a preview fetcher with a fake session, so no external service is used.
"""

import io
import json
import os
import time
import zipfile
from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from config import WarehouseConfig
from docker_service import create_app
from exceptions import ValidationError
from services.preview_service import PreviewFetcher
from triggers.http_base import parse_destination_kind, relational_destination_from_form
from tests.factories.fakes import REST_PAYLOAD, FakeResponse, FakeSession, FakeWarehouseClient, build_orchestrator


def _zip_bytes(members=("roads.shp",)) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as z:
        for member in members:
            z.writestr(member, "placeholder")
    return buffer.getvalue()


@pytest.fixture
def session():
    return FakeSession(FakeResponse(payload=REST_PAYLOAD))


@pytest.fixture
def client(app_config, session):
    app = create_app()
    app.state.orchestrator = build_orchestrator(app_config)
    app.state.preview_fetcher = PreviewFetcher(
        WarehouseConfig(),
        session=session,
        client_factory=lambda project: FakeWarehouseClient(rows=[{"name": "ambient", "geojson": None}])
    )
    with TestClient(app) as test_client:
        yield test_client


def _submit(client, **form):
    data = {"destination": "bigquery", "gcpProjectId": "proj", "targetTable": "ds.roads"}
    data.update(form)
    return client.post(
        "/jobs",
        data=data,
        files={"shapefile": ("roads.zip", _zip_bytes(), "application/zip")}
    )


def _wait_for_terminal(client, job_id, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        body = client.get(f"/jobs/{job_id}").json()
        if body["status"] in ("completed", "failed"):
            return body
        time.sleep(0.02)
    pytest.fail(f"Job {job_id} did not finish")


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "timestamp" in response.json()


class TestJobsApi:

    def test_submit_and_follow_job(self, client):
        response = _submit(client, callerId="alice")

        assert response.status_code == 202
        job = response.json()
        assert job["status"] == "pending"
        assert job["file_name"] == "roads.zip"
        assert job["target_table"] == "ds.roads"

        final = _wait_for_terminal(client, job["job_id"])
        assert final["status"] == "completed"
        assert final["progress"] == 100

        listing = client.get("/jobs", params={"callerId": "alice"}).json()
        assert listing["count"] == 1
        assert listing["jobs"][0]["job_id"] == job["job_id"]
        assert "logs" not in listing["jobs"][0]
        assert client.get("/jobs", params={"callerId": "bob"}).json()["count"] == 0

        logs = client.get(f"/jobs/{job['job_id']}/logs").json()
        assert logs["status"] == "completed"
        assert logs["logs"][0]["message"] == "Job created for roads.zip -> bigquery"

        assert client.get("/jobs/stats").json() == {"total": 1, "completed": 1, "failed": 0, "in_progress": 0}

    def test_malformed_table_is_rejected(self, client):
        response = _submit(client, targetTable="no_dot")

        assert response.status_code == 400
        assert response.json()["message"] == "Target table must be in format: dataset.table"
        assert client.get("/jobs").json()["count"] == 0

    def test_missing_source(self, client):
        response = client.post("/jobs", data={"destination": "bigquery", "gcpProjectId": "p", "targetTable": "d.t"})
        assert response.status_code == 400
        assert response.json()["message"] == "No file uploaded."

    def test_invalid_custom_schema(self, client):
        response = _submit(client, customSchema="{not json")
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_PARAMETER"

    def test_custom_schema_accepted(self, client):
        schema = json.dumps([{"name": "name", "type": "STRING"}, {"name": "lanes", "type": "INTEGER"}])
        response = _submit(client, customSchema=schema)
        assert response.status_code == 202
        assert [f["name"] for f in response.json()["schema_fields"]] == ["name", "lanes", "geometry"]

    def test_unsupported_destination(self, client):
        response = _submit(client, destination="snowflake")
        assert response.status_code == 400

    def test_postgres_details_required(self, client):
        response = _submit(client, destination="postgres", pgHost="db")
        assert response.status_code == 400
        assert response.json()["message"] == "PostgreSQL connection details missing."

    def test_unknown_job(self, client):
        assert client.get("/jobs/missing").status_code == 404
        assert client.get("/jobs/missing/logs").status_code == 404
        assert client.post("/jobs/missing/retry").status_code == 404

    def test_retry_is_refused_for_known_job(self, client):
        job_id = _submit(client).json()["job_id"]
        _wait_for_terminal(client, job_id)

        response = client.post(f"/jobs/{job_id}/retry")

        assert response.status_code == 409
        assert response.json()["error_code"] == "RETRY_NOT_SUPPORTED"

    def test_delete_is_idempotent(self, client):
        job_id = _submit(client).json()["job_id"]
        _wait_for_terminal(client, job_id)

        assert client.delete(f"/jobs/{job_id}").status_code == 204
        assert client.get(f"/jobs/{job_id}").status_code == 404
        assert client.delete(f"/jobs/{job_id}").status_code == 204


class TestPreview:

    def test_missing_parameters(self, client):
        response = client.get("/preview-geojson", params={"gcpProjectId": "p"})
        assert response.status_code == 400
        assert response.json() == {"error": "Target table is required"}
        assert response.headers["cache-control"] == "no-store"

    def test_bearer_token_forwarded(self, client, session):
        response = client.get(
            "/preview-geojson",
            params={"gcpProjectId": "proj", "targetTable": "ds.t", "limit": "2"},
            headers={"Authorization": "Bearer user-token"}
        )

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        assert response.json()["type"] == "FeatureCollection"
        assert session.calls[0]["headers"] == {"Authorization": "Bearer user-token"}
        assert session.calls[0]["json"]["query"].endswith("LIMIT 2")

    def test_ambient_credentials(self, client, session):
        response = client.get("/preview-geojson", params={"gcpProjectId": "proj", "targetTable": "ds.t"})

        assert response.status_code == 200
        assert response.json()["features"][0]["properties"] == {"name": "ambient"}
        assert session.calls == []

    def test_query_failure(self, client, session):
        session.response = FakeResponse(status_code=404, text="Not found: Table proj:ds.t")
        response = client.get(
            "/preview-geojson",
            params={"gcpProjectId": "proj", "targetTable": "ds.t"},
            headers={"Authorization": "Bearer t"}
        )
        assert response.status_code == 500
        assert "Not found" in response.json()["error"]

    def test_ambient_rows_with_timestamps_and_numerics(self, client):
        rows = [{"name": "a", "opened": datetime(2024, 5, 1, 8, 0), "toll": Decimal("2.75"), "geojson": None}]
        client.app.state.preview_fetcher = PreviewFetcher(
            WarehouseConfig(), client_factory=lambda project: FakeWarehouseClient(rows=rows)
        )

        response = client.get("/preview-geojson", params={"gcpProjectId": "proj", "targetTable": "ds.t"})

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        assert response.json()["features"][0]["properties"] == {
            "name": "a", "opened": "2024-05-01T08:00:00", "toll": 2.75
        }

    def test_non_json_upstream_body(self, client, session):
        session.response = FakeResponse(
            text="<html>502</html>", json_error=json.JSONDecodeError("Expecting value", "<html>502</html>", 0)
        )
        response = client.get(
            "/preview-geojson",
            params={"gcpProjectId": "proj", "targetTable": "ds.t"},
            headers={"Authorization": "Bearer t"}
        )
        assert response.status_code == 500
        assert response.headers["cache-control"] == "no-store"
        assert "non-JSON body" in response.json()["error"]


class TestConvertUpload:

    def test_missing_file(self, client):
        response = client.post("/convert-upload", data={"destination": "bigquery"})
        assert response.status_code == 400
        assert response.json() == {"message": "No file uploaded."}

    def test_bigquery_returns_ndjson_and_schema_header(self, client):
        response = client.post(
            "/convert-upload",
            data={"destination": "bigquery"},
            files={"shapefile": ("roads.zip", _zip_bytes(["a/roads.shp", "a/rivers.shp"]), "application/zip")}
        )

        assert response.status_code == 200
        records = [json.loads(line) for line in response.text.splitlines()]
        assert len(records) == 2
        assert all(record["geometry"].startswith("POINT(") for record in records)
        schema = json.loads(response.headers["x-generated-schema"])
        assert schema == [
            {"name": "name", "type": "STRING", "mode": "NULLABLE"},
            {"name": "geometry", "type": "GEOGRAPHY", "mode": "NULLABLE"},
        ]
        assert response.headers["access-control-expose-headers"] == "X-Generated-Schema"

    def test_postgres_missing_details(self, client):
        response = client.post(
            "/convert-upload",
            data={"destination": "postgres", "pgHost": "db"},
            files={"shapefile": ("roads.zip", _zip_bytes(), "application/zip")}
        )
        assert response.status_code == 500
        assert response.json() == {
            "message": "File conversion failed on the server",
            "error": "PostgreSQL connection details missing.",
        }

    def test_archive_without_shapefile(self, client):
        response = client.post(
            "/convert-upload",
            files={"shapefile": ("notes.zip", _zip_bytes(["notes.txt"]), "application/zip")}
        )
        assert response.status_code == 500
        assert response.json()["error"] == "No .shp files found in the zip archive."

    def test_upload_over_limit(self, client, fresh_config, monkeypatch):
        from config import reset_config
        monkeypatch.setenv("GEOINGEST_MAX_UPLOAD_MB", "1")
        reset_config()

        response = client.post(
            "/convert-upload",
            files={"shapefile": ("big.zip", b"0" * (1024 * 1024 + 1), "application/zip")}
        )

        assert response.status_code == 413
        assert response.json()["error_code"] == "FILE_TOO_LARGE"

    def test_work_dir_failure_removes_spooled_upload(self, client, fresh_config, monkeypatch, tmp_path):
        from config import reset_config
        work_root = tmp_path / "convert-root"
        monkeypatch.setenv("GEOINGEST_WORK_ROOT", str(work_root))
        reset_config()

        def no_space(*args, **kwargs):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr("triggers.convert_upload.tempfile.mkdtemp", no_space)
        response = client.post(
            "/convert-upload",
            files={"shapefile": ("roads.zip", _zip_bytes(), "application/zip")}
        )

        assert response.status_code == 500
        assert "No space left on device" in response.json()["error"]
        assert os.listdir(work_root) == []


class TestFormParsing:

    @pytest.mark.parametrize("raw,expected", [
        (None, "bigquery"), ("", "bigquery"), ("BigQuery", "bigquery"), (" postgres ", "postgres"),
    ])
    def test_destination_kind(self, raw, expected):
        assert parse_destination_kind(raw).value == expected

    def test_unknown_destination_kind(self):
        with pytest.raises(ValidationError, match="snowflake"):
            parse_destination_kind("snowflake")

    def test_relational_defaults(self, fresh_config):
        destination = relational_destination_from_form("db", None, "gis", "u", "pw", "")
        assert destination.port == fresh_config().database.default_port
        assert destination.table is None

    @pytest.mark.parametrize("port", ["abc", "0", "70000"])
    def test_relational_bad_port(self, port):
        with pytest.raises(ValidationError, match="pgPort"):
            relational_destination_from_form("db", port, "gis", "u", "pw", None)
