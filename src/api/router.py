"""
Main API router for AeroExam

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from src.api.endpoints import exam, tools, metadata

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    exam.router,
    prefix="/exam",
    tags=["Exam"]
)

api_router.include_router(
    tools.router,
    prefix="/tools",
    tags=["Agent Tools"]
)

api_router.include_router(
    metadata.router,
    prefix="/metadata",
    tags=["Metadata"]
)
