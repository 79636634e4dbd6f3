from fastapi import APIRouter

from incident_log.api.routes import health, incident_logs, radio

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(incident_logs.router, tags=["incident-logs"])
api_router.include_router(radio.router, tags=["radio"])
