"""
Request validation and descriptor model tests.
"""

import pytest
from pydantic import TypeAdapter

from core.errors import ErrorCode
from core.models import (
    DestinationDescriptor,
    JobRecord,
    ObjectStoreSource,
    RelationalDestination,
    SchemaField,
    SourceDescriptor,
    WarehouseDestination,
)
from core.validation import (
    validate_destination,
    validate_identifier,
    validate_schema,
    validate_source,
    validate_table_ref,
)
from exceptions import ValidationError
from tests.factories.model_factories import (
    make_job_record,
    make_local_source,
    make_relational_destination,
    make_warehouse_destination,
)


class TestSourceValidation:

    def test_local_source_must_exist(self, tmp_path):
        source = make_local_source(tmp_path)
        validate_source(source)

        missing = source.model_copy(update={"path": str(tmp_path / "gone.zip")})
        with pytest.raises(ValidationError) as exc:
            validate_source(missing)
        assert exc.value.error_code == ErrorCode.FILE_NOT_FOUND

    @pytest.mark.parametrize("bucket,path,message", [
        ("", "a.zip", "GCS bucket is required for GCS source"),
        ("bucket", "", "GCS path is required for GCS source"),
    ])
    def test_object_store_source_requires_bucket_and_path(self, bucket, path, message):
        with pytest.raises(ValidationError, match=message):
            validate_source(ObjectStoreSource(bucket=bucket, path=path))

    def test_object_store_source_file_name_and_uri(self):
        source = ObjectStoreSource(bucket="b", path="uploads/2026/roads.zip")
        assert source.file_name == "roads.zip"
        assert source.uri == "gs://b/uploads/2026/roads.zip"


class TestDestinationValidation:

    def test_valid_warehouse_destination(self):
        validate_destination(make_warehouse_destination())

    @pytest.mark.parametrize("project_id,target_table,message", [
        ("", "ds.tbl", "GCP Project ID is required"),
        ("proj", "", "Target table is required"),
        ("proj", "no_dot", "Target table must be in format: dataset.table"),
        ("proj", ".tbl", "Target table must be in format: dataset.table"),
        ("proj", "ds.", "Target table must be in format: dataset.table"),
    ])
    def test_warehouse_destination_errors(self, project_id, target_table, message):
        with pytest.raises(ValidationError) as exc:
            validate_destination(WarehouseDestination(project_id=project_id, target_table=target_table))
        assert exc.value.message == message

    def test_warehouse_table_ref(self):
        destination = WarehouseDestination(project_id="p", target_table="ds.tbl")
        assert destination.dataset == "ds"
        assert destination.table == "tbl"
        assert destination.table_ref == "p.ds.tbl"

    @pytest.mark.parametrize("missing", ["host", "database", "user", "password"])
    def test_relational_destination_requires_connection_details(self, missing):
        destination = make_relational_destination(**{missing: ""})
        with pytest.raises(ValidationError, match="PostgreSQL connection details missing."):
            validate_destination(destination)

    def test_relational_table_name_must_be_identifier(self):
        with pytest.raises(ValidationError):
            validate_destination(make_relational_destination(table="roads; DROP TABLE x"))

    def test_password_not_serialized_or_repr(self):
        destination = make_relational_destination(password="s3cret")
        assert "password" not in destination.model_dump()
        assert "s3cret" not in repr(destination)


class TestSchemaValidation:

    def test_empty_schema_is_auto_detect(self):
        validate_schema(None)
        validate_schema([])

    def test_duplicate_names_rejected_case_insensitively(self):
        with pytest.raises(ValidationError, match="Duplicate schema field"):
            validate_schema([SchemaField(name="Name"), SchemaField(name="name")])

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            validate_schema([SchemaField(name="  ")])

    def test_schema_field_api_dict(self):
        assert SchemaField(name="pop", type="INTEGER").to_api_dict() == {
            "name": "pop", "type": "INTEGER", "mode": "NULLABLE"
        }
        assert SchemaField.geometry().to_api_dict() == {
            "name": "geometry", "type": "GEOGRAPHY", "mode": "NULLABLE"
        }


class TestTableRefValidation:

    def test_valid(self):
        validate_table_ref("my-project", "dataset_1.table-2")

    @pytest.mark.parametrize("project_id,target_table", [
        (None, "ds.tbl"),
        ("proj", None),
        ("proj", "ds"),
        ("proj", "a.b.c"),
        ("proj", "ds.tbl` WHERE 1=1 --"),
        ("proj`", "ds.tbl"),
    ])
    def test_invalid(self, project_id, target_table):
        with pytest.raises(ValidationError):
            validate_table_ref(project_id, target_table)


class TestIdentifier:

    @pytest.mark.parametrize("name", ["roads", "_tmp", "Roads_2026"])
    def test_valid(self, name):
        validate_identifier(name)

    @pytest.mark.parametrize("name", ["2roads", "road-s", "a b", "x" * 64, ""])
    def test_invalid(self, name):
        with pytest.raises(ValidationError):
            validate_identifier(name)


class TestDescriptorUnions:

    def test_source_discriminator(self):
        adapter = TypeAdapter(SourceDescriptor)
        source = adapter.validate_python({"kind": "gcs", "bucket": "b", "path": "p.zip"})
        assert isinstance(source, ObjectStoreSource)

    def test_destination_discriminator(self):
        adapter = TypeAdapter(DestinationDescriptor)
        destination = adapter.validate_python({"kind": "postgres", "host": "h"})
        assert isinstance(destination, RelationalDestination)
        assert destination.port == 5432

    def test_job_record_api_dict(self, job_record_data):
        record = JobRecord(**job_record_data)
        data = record.to_api_dict()
        assert data["status"] == "pending"
        assert data["file_name"] == record.source.file_name
        assert data["target_table"] == record.destination.target_table
        assert "logs" in data
        assert "logs" not in record.to_api_dict(include_logs=False)

    def test_job_record_api_dict_hides_password(self):
        record = JobRecord(**make_job_record(destination={
            "kind": "postgres", "host": "h", "database": "d", "user": "u", "password": "s3cret",
        }))
        assert "s3cret" not in str(record.to_api_dict())
