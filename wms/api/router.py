# wms/api/router.py
from fastapi import APIRouter

from wms.api import (
    routes_auth,
    routes_users,
    routes_dashboard,
    routes_reports,
    routes_settings,
    routes_audit_logs,
    routes_inventory,
    routes_search,
)

api_router = APIRouter()

api_router.include_router(routes_auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(routes_users.router, prefix="/users", tags=["Users"])
api_router.include_router(routes_dashboard.router,
                          prefix="/dashboard",
                          tags=["Dashboard"])
api_router.include_router(routes_reports.router,
                          prefix="/reports",
                          tags=["Reports"])
api_router.include_router(routes_settings.router,
                          prefix="/settings",
                          tags=["Settings"])
api_router.include_router(routes_audit_logs.router,
                          prefix="/audit-logs",
                          tags=["Audit Logs"])
api_router.include_router(routes_inventory.router,
                          prefix="/inventory",
                          tags=["Inventory"])
api_router.include_router(routes_search.router,
                          prefix="/search",
                          tags=["Search"])
