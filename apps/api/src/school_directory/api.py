from fastapi import APIRouter

from school_directory.modules.schools import router as schools_router
from school_directory.modules.uploads import router as uploads_router

api_router = APIRouter()

api_router.include_router(schools_router, prefix="/schools", tags=["Schools"])

api_router.include_router(uploads_router, prefix="/upload", tags=["Uploads"])
