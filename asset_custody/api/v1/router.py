from fastapi import APIRouter

from asset_custody.api.v1.endpoints import assets, employees, health, reconciliation

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router)
api_router.include_router(employees.router)
api_router.include_router(assets.router)
api_router.include_router(reconciliation.router)
