from fastapi import APIRouter
from bugtracker.api.endpoints import auth, bugs, health

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(bugs.router, prefix="/bugs", tags=["Bugs"])
