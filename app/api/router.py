from fastapi import APIRouter

from app.api.routes.auth import router as auth_router
from app.api.routes.health import router as health_router
from app.api.routes.users import router as users_router
from app.api.routes.weekly_schedule import router as weekly_schedule_router

api_router = APIRouter()
v1_router = APIRouter(prefix="/v1")

api_router.include_router(health_router)

# Unversioned routes kept for existing clients.
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(weekly_schedule_router)

v1_router.include_router(auth_router)
v1_router.include_router(users_router)
v1_router.include_router(weekly_schedule_router)
api_router.include_router(v1_router)
