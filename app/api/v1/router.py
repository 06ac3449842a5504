from fastapi import APIRouter

from app.api.v1.endpoints import gardens, plantings, tasks

api_router = APIRouter()

api_router.include_router(gardens.router)
api_router.include_router(tasks.garden_tasks_router)
api_router.include_router(plantings.router)
api_router.include_router(tasks.router)
