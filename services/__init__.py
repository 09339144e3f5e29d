"""
Service Layer - Pipeline Steps Between the Orchestrator and the Adapters.

Modules:
    conversion_service.py: Archive extraction and concurrent conversion
    loaders/: Destination loaders (BigQuery, PostGIS)
    warehouse_monitor.py: Load job polling
    preview_service.py: Warehouse table preview as GeoJSON
"""
