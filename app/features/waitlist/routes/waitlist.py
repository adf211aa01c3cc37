from fastapi import APIRouter, Depends, Request, status

from app.features.waitlist.dependencies.waitlist import get_waitlist_service
from app.features.waitlist.schemas.waitlist import (
    ReferralSummaryOut,
    WaitlistCheckOut,
    WaitlistIn,
    WaitlistOut,
)
from app.features.waitlist.services.waitlist import WaitlistService
from app.platform.response import api_response
from app.platform.utils.client_ip import get_client_ip

router = APIRouter(prefix="/waiting-list", tags=["Waiting List"])


@router.post("")
async def join_waitlist(
    waitlist_in: WaitlistIn,
    request: Request,
    service: WaitlistService = Depends(get_waitlist_service),
):
    result = await service.join(waitlist_in, client_key=get_client_ip(request))

    if not result.created:
        message = "Email already registered"
    elif result.notified:
        message = "You have been added to the waitlist! Check your email for confirmation."
    else:
        message = "You have been added to the waitlist! We could not send the confirmation email right now."

    return api_response(
        data=WaitlistOut.model_validate(result.entry),
        message=message,
        status_code=status.HTTP_200_OK,
        count=result.count,
        created=result.created,
        notified=result.notified,
    )


@router.get("/check/{email}")
async def check_email(email: str, service: WaitlistService = Depends(get_waitlist_service)):
    entry = await service.check_email(email)
    return api_response(
        data=WaitlistCheckOut.model_validate(entry) if entry else None,
        message="Email is on the waiting list" if entry else "Email is not on the waiting list",
        exists=entry is not None,
    )


@router.get("/referrals/{referral_code}")
async def get_referrals(referral_code: str, service: WaitlistService = Depends(get_waitlist_service)):
    summary = await service.get_referrals(referral_code)
    return api_response(
        data=ReferralSummaryOut.model_validate(summary),
        message="Referrals retrieved",
    )


@router.get("/count")
async def waitlist_count(service: WaitlistService = Depends(get_waitlist_service)):
    count = await service.total()
    return api_response(data={"count": count}, message="Waiting list count retrieved")
