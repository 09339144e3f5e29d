"""
HTTP Triggers - FastAPI Routers.

Exports:
    convert_upload_router: POST /convert-upload
    preview_router: GET /preview-geojson
    jobs_router: /jobs API
"""

from .convert_upload import router as convert_upload_router
from .preview import router as preview_router
from .jobs import router as jobs_router

__all__ = ['convert_upload_router', 'preview_router', 'jobs_router']
