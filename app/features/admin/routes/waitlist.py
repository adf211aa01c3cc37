from fastapi import APIRouter, Depends, Query

from app.features.admin.utils.auth import get_current_admin
from app.features.waitlist.dependencies.waitlist import get_waitlist_service
from app.features.waitlist.schemas.waitlist import WaitlistAdminOut
from app.features.waitlist.services.waitlist import WaitlistService
from app.platform.response import api_response

router = APIRouter(prefix="/waiting-list", tags=["Admin - Waiting List"])


@router.get(
    "",
    summary="List waiting list entries",
)
async def list_waitlist_entries(
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page"),
    current_admin: dict = Depends(get_current_admin),
    service: WaitlistService = Depends(get_waitlist_service),
):
    """
    All waiting list entries, newest first, with their referral counts.
    """
    entries, total = await service.list_entries(page=page, per_page=per_page)

    return api_response(
        data={
            "entries": [WaitlistAdminOut.model_validate(entry) for entry in entries],
            "total": total,
            "page": page,
            "per_page": per_page,
            "pages": (total + per_page - 1) // per_page,
        },
        message="Waiting list retrieved successfully",
    )
