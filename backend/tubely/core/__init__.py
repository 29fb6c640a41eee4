"""
Core infrastructure for the Tubely backend application.

This package contains the foundational infrastructure components:
- auth: Bearer token authentication (local HS256 JWT)
- database: MongoDB async client with Motor driver and connection pooling
- exceptions: Typed application errors with their HTTP status mapping
- middleware: Request body size limiting for upload endpoints
- storage: S3-compatible storage client for MinIO/AWS S3 operations
"""
