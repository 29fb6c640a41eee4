"""
Tubely Backend Application Package

This package contains the Tubely FastAPI application for uploading, preparing
and serving short-form videos. The service provides:

- Validated, size-capped multipart uploads for videos and thumbnails
- Aspect ratio classification with ffprobe
- Fast-start remuxing with ffmpeg for progressive playback
- S3/MinIO storage with time-limited presigned playback URLs
- Local JWT bearer authentication

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Core infrastructure (database, storage, auth, middleware, errors)
- models/: Pydantic data models for videos and storage locators
- services/: Business logic layer for the upload pipeline
- utils/: Utility functions and helpers
"""

__version__ = "1.0.0"
__app_name__ = "tubely"
