from functools import partial

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.waitlist.services.store import WaitlistStore
from app.features.waitlist.services.waitlist import WaitlistService
from app.features.waitlist.utils.referral_code_generator import generate_referral_code
from app.platform.db.session import get_db


async def get_waitlist_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> WaitlistService:
    """
    Build the signup service for one request.

    The rate limiter and notifier are process-wide and live on app.state;
    the store wraps this request's database session.
    """
    settings = request.app.state.settings
    return WaitlistService(
        store=WaitlistStore(db),
        rate_limiter=request.app.state.rate_limiter,
        notifier=request.app.state.notifier,
        code_generator=partial(generate_referral_code, settings.REFERRAL_CODE_LENGTH),
        max_code_attempts=settings.REFERRAL_CODE_MAX_ATTEMPTS,
        mask_referral_emails=settings.REFERRAL_MASK_EMAILS,
    )
