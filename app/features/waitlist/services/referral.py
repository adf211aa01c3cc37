from typing import Optional

from app.features.waitlist.models.waitlist import REFERRAL_CODE_MAX_LENGTH
from app.features.waitlist.services.store import WaitlistStore
from app.features.waitlist.utils.email_address import mask_email
from app.platform.exceptions import ReferralNotFoundError, UnknownReferralCodeError
from app.platform.logger import get_logger

logger = get_logger(__name__)


class ReferralResolver:
    """Looks up referrers by code and credits them for new signups."""

    def __init__(self, store: WaitlistStore, mask_emails: bool = True):
        self.store = store
        self.mask_emails = mask_emails

    async def resolve(self, referral_code: Optional[str]) -> Optional[str]:
        """
        Find the entry that owns `referral_code`.

        Returns:
            The referrer's id, or None when no code was supplied

        Raises:
            UnknownReferralCodeError: a code was supplied but matches no entry
        """
        if referral_code is None or not referral_code.strip():
            return None

        referral_code = referral_code.strip()
        if len(referral_code) > REFERRAL_CODE_MAX_LENGTH:
            # no stored code can be this long
            raise UnknownReferralCodeError()

        referrer = await self.store.get_by_code(referral_code)
        if referrer is None:
            raise UnknownReferralCodeError()
        return referrer.id

    async def credit(self, referrer_id: str) -> None:
        await self.store.increment_referral_count(referrer_id)
        logger.info(f"Credited referral to {referrer_id}")

    def _display_email(self, email: str) -> str:
        return mask_email(email) if self.mask_emails else email

    async def summary(self, referral_code: str) -> dict:
        """Referrer details and the signups made with its code."""
        if len(referral_code) > REFERRAL_CODE_MAX_LENGTH:
            raise ReferralNotFoundError()

        referrer = await self.store.get_by_code(referral_code)
        if referrer is None:
            raise ReferralNotFoundError()

        referrals = await self.store.list_referrals(referrer.id)
        return {
            "user": {
                "id": referrer.id,
                "email": self._display_email(referrer.email),
                "referral_count": referrer.referral_count,
            },
            "referrals": [
                {
                    "id": referred.id,
                    "email": self._display_email(referred.email),
                    "created_at": referred.created_at,
                }
                for referred in referrals
            ],
        }
