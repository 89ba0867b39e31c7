"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from app.api.v1.endpoints import audit, faculty, mappings, students

api_router = APIRouter()

# Student-faculty assignment mappings
api_router.include_router(
    mappings.router,
    prefix="/mappings",
    tags=["Mappings"],
)

# Students (registration, roster import, per-student mappings)
api_router.include_router(
    students.router,
    prefix="/students",
    tags=["Students"],
)

# Faculty (per-faculty mappings)
api_router.include_router(
    faculty.router,
    prefix="/faculty",
    tags=["Faculty"],
)

# Audit Logs
api_router.include_router(
    audit.router,
    prefix="/audit-logs",
    tags=["Audit Logs"],
)
