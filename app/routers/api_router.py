from fastapi import APIRouter
from app.routers import auth, leave, leave_manager, employees, admin, import_config

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(leave_manager.router, tags=["Leave Manager"])
api_router.include_router(employees.router, tags=["Employees"])
api_router.include_router(admin.router, tags=["Administration"])
api_router.include_router(import_config.router, tags=["Configuration Import"])
