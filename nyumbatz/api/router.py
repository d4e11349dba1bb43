"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from nyumbatz.api.auth import router as auth_router
from nyumbatz.api.inquiries import router as inquiries_router
from nyumbatz.api.profiles import router as profiles_router
from nyumbatz.api.properties import router as properties_router
from nyumbatz.api.status import router as status_router
from nyumbatz.api.websocket import router as websocket_router

api_router = APIRouter()
api_router.include_router(status_router)
api_router.include_router(auth_router)
api_router.include_router(properties_router)
api_router.include_router(inquiries_router)
api_router.include_router(profiles_router)
api_router.include_router(websocket_router)
