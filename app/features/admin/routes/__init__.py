from fastapi import APIRouter
from app.features.admin.routes.waitlist import router as waitlist_router


router = APIRouter(prefix="/admin", tags=["Admin"])

router.include_router(waitlist_router)
