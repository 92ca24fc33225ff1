"""
API package - request boundary layer.

This package provides:
- Pydantic param models for dashboard endpoints
- Global middleware (request_id, error_envelope, request_logging)
"""
