from fastapi import APIRouter

from app.api.v1 import download, health, scrape

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(scrape.router, prefix="/scrape", tags=["scrape"])
v1_router.include_router(download.router, prefix="/download", tags=["download"])
v1_router.include_router(health.router, prefix="/health", tags=["health"])
