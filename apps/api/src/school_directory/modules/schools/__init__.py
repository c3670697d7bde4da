"""
Schools Module

Directory of school records and the duplicate-safe submission pipeline:
1. Shared validation rules (client and server)
2. Advisory duplicate check on email, then contact
3. Conditional content-addressed image upload
4. Authoritative insert guarded by unique constraints

API Endpoints:
- GET /schools - List schools, newest first
- POST /schools - Add a school
- POST /schools/check-duplicate - Advisory duplicate check
- POST /schools/submit - Full pipeline with an optional image file
"""

from .router import router

__all__ = ["router"]
