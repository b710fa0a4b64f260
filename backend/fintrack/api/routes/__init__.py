from fastapi import APIRouter

from fintrack.api.routes import audit, cron, health, snapshots


api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(snapshots.router)
api_router.include_router(cron.router)
api_router.include_router(audit.router)
