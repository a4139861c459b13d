from fastapi import APIRouter
from . import change_requests


router = APIRouter()
router.include_router(change_requests.router, prefix="/change-requests", tags=["change-requests"])
