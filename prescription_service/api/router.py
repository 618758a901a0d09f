# prescription_service/api/router.py
from fastapi import APIRouter
from prescription_service.api import routes_prescriptions

api_router = APIRouter()

api_router.include_router(routes_prescriptions.router,
                          prefix="/prescriptions",
                          tags=["prescriptions"])
