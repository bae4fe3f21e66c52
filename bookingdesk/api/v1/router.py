"""
API v1 router setup
"""
from fastapi import APIRouter

from bookingdesk.api.v1 import availability, appointments

api_v1_router = APIRouter()

api_v1_router.include_router(availability.router)
api_v1_router.include_router(appointments.router)


@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and available endpoint groups"""
    return {
        "version": "1.0",
        "endpoints": {
            "availability": "/api/v1/availability",
            "appointments": "/api/v1/appointments"
        }
    }
