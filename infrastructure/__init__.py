"""
Infrastructure Package - Adapters for External Systems.

Modules are imported directly (``from infrastructure.gcs import ObjectStore``)
so the Google and psycopg client libraries load only when a destination
needs them.

Modules:
    bigquery.py: WarehouseClient (load jobs, job status, read queries)
    gcs.py: ObjectStore (source download, NDJSON staging)
    postgis.py: postgis_connection (caller-supplied PostgreSQL connections)
"""
