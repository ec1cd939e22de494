"""Main API router aggregating all routes."""

from fastapi import APIRouter

from modelcompare.api.routes import chat, health

# Mounted under /api
api_router = APIRouter()
api_router.include_router(chat.router)

# Mounted at the root
root_router = APIRouter()
root_router.include_router(health.router)
