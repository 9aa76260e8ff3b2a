"""
api_gateway.py - Mounts every API route under one router.

main.py includes `router` with the /api prefix:

    /api/auth/...
    /api/assets, /api/categories, /api/contents,
    /api/courses, /api/users, /api/user-notes
"""

from fastapi import APIRouter

from resources import RESOURCES
from routers import auth
from routers.crud import create_crud_router

# OpenAPI tag per URL segment
RESOURCE_TAGS = {
    "assets": "Assets",
    "categories": "Categories",
    "contents": "Contents",
    "courses": "Courses",
    "users": "Users",
    "user-notes": "UserNotes",
}

router = APIRouter()
router.include_router(auth.router)

for segment, resource in RESOURCES.items():
    router.include_router(
        create_crud_router(resource, RESOURCE_TAGS[segment]),
        prefix=f"/{segment}",
    )
