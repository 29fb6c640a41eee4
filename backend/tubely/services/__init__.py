"""
Services module for the Tubely backend application.

- media_service: ffprobe inspection, aspect classification, fast-start remux
- storage_service: Async S3-compatible storage operations
- upload_service: Video and thumbnail upload orchestration
- video_service: Video record persistence and playback URL signing

All services are constructed with explicit settings and collaborators so they
can be wired through FastAPI's dependency system or replaced in tests.
"""
