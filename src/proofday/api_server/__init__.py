# src/proofday/api_server/__init__.py
"""
HTTP API server for proofday.

The FastAPI application lives in ``proofday.api_server.main:app``.
"""
