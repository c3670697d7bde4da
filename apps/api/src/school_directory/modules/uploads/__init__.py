"""
Uploads Module

Content-addressed image storage: images are keyed by the digest of their
bytes so identical files are stored once.

API Endpoints:
- POST /upload - Store an image
"""

from .router import router

__all__ = ["router"]
