"""
Top‑level package for the Academic Records API.

The package provides no public exports; all functionality lives in
submodules under ``app``.  Run the service with::

    uvicorn academic_records_api.app.main:app
"""

__all__ = []
