from fastapi import APIRouter, Depends

from dataflow_notify.api.auth import verify_token
from dataflow_notify.api.routes.events import router as events_router
from dataflow_notify.api.routes.native import router as native_router
from dataflow_notify.api.routes.notifications import router as notifications_router
from dataflow_notify.api.routes.settings import router as settings_router

api_router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_token)])

api_router.include_router(
    notifications_router, prefix="/notifications", tags=["notifications"]
)
api_router.include_router(events_router, prefix="/events", tags=["events"])
api_router.include_router(native_router, prefix="/native", tags=["native"])
api_router.include_router(settings_router, prefix="/settings", tags=["settings"])
