from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from app.features.waitlist.models.waitlist import WaitlistEntry
from app.features.waitlist.schemas.waitlist import WaitlistIn
from app.features.waitlist.services.notifications import WaitlistNotifier
from app.features.waitlist.services.referral import ReferralResolver
from app.features.waitlist.services.store import WaitlistStore
from app.features.waitlist.utils.email_address import validate_email_address
from app.features.waitlist.utils.referral_code_generator import generate_referral_code
from app.platform.exceptions import (
    CodeGenerationExhaustedError,
    DispatchError,
    DuplicateEmailError,
    RateLimitedError,
    ReferralCodeCollisionError,
    ReferralNotFoundError,
    StoreUnavailableError,
    UnknownReferralCodeError,
)
from app.platform.logger import get_logger
from app.platform.utils.rate_limit import SlidingWindowRateLimiter

logger = get_logger(__name__)

DEFAULT_SOURCE = "api"


@dataclass
class SignupResult:
    entry: WaitlistEntry
    created: bool
    notified: bool
    count: int


class WaitlistService:
    """
    Signup orchestration for the waiting list.

    A signup runs validate -> rate check -> dedupe -> code generation ->
    referral lookup -> insert -> referral credit -> notify, and stops at the
    first failing stage. Resubmitting a known email is an idempotent success.
    """

    def __init__(
        self,
        store: WaitlistStore,
        rate_limiter: SlidingWindowRateLimiter,
        notifier: WaitlistNotifier,
        code_generator: Callable[[], str] = generate_referral_code,
        max_code_attempts: int = 5,
        mask_referral_emails: bool = True,
    ):
        self.store = store
        self.rate_limiter = rate_limiter
        self.notifier = notifier
        self.code_generator = code_generator
        self.max_code_attempts = max_code_attempts
        self.referrals = ReferralResolver(store, mask_emails=mask_referral_emails)

    async def join(self, payload: WaitlistIn, client_key: str) -> SignupResult:
        email = validate_email_address(payload.email)

        decision = await self.rate_limiter.check(client_key)
        if not decision.allowed:
            raise RateLimitedError(retry_after=decision.retry_after)

        existing = await self.store.get_by_email(email)
        if existing is not None:
            logger.info(f"Email already registered, returning existing entry: {existing.id}")
            return SignupResult(entry=existing, created=False, notified=False, count=await self.store.count())

        referrer_id = await self._resolve_referrer(payload.referral_code)

        entry, created = await self._persist(email, payload, referrer_id)
        if not created:
            return SignupResult(entry=entry, created=False, notified=False, count=await self.store.count())

        logger.info(f"Added {entry.id} to waiting list (source={entry.source})")

        if referrer_id is not None:
            await self._credit_referrer(referrer_id)

        notified = await self._notify(entry)
        return SignupResult(entry=entry, created=True, notified=notified, count=await self.store.count())

    async def _resolve_referrer(self, referral_code: Optional[str]) -> Optional[str]:
        try:
            return await self.referrals.resolve(referral_code)
        except UnknownReferralCodeError:
            logger.warning(f"Ignoring unknown referral code: {referral_code}")
            return None

    async def _persist(
        self, email: str, payload: WaitlistIn, referrer_id: Optional[str]
    ) -> Tuple[WaitlistEntry, bool]:
        for attempt in range(1, self.max_code_attempts + 1):
            referral_code = self.code_generator()
            try:
                entry = await self.store.insert(
                    email=email,
                    referral_code=referral_code,
                    source=payload.source or DEFAULT_SOURCE,
                    utm_source=payload.utm_source,
                    referrer_id=referrer_id,
                )
                return entry, True
            except ReferralCodeCollisionError:
                logger.warning(f"Referral code collision on attempt {attempt}, regenerating")
            except DuplicateEmailError:
                # A concurrent request inserted the same email first
                existing = await self.store.get_by_email(email)
                if existing is None:
                    raise StoreUnavailableError()
                logger.info(f"Lost insert race for {existing.id}, returning existing entry")
                return existing, False

        logger.error(f"Could not generate a unique referral code after {self.max_code_attempts} attempts")
        raise CodeGenerationExhaustedError()

    async def _credit_referrer(self, referrer_id: str) -> None:
        try:
            await self.referrals.credit(referrer_id)
        except (StoreUnavailableError, ReferralNotFoundError) as e:
            logger.error(f"Failed to credit referral to {referrer_id}: {e}")

    async def _notify(self, entry: WaitlistEntry) -> bool:
        try:
            await self.notifier.send_confirmation(entry)
        except DispatchError as e:
            logger.error(f"Error sending confirmation email for {entry.id}: {e}")
            return False
        return True

    async def check_email(self, raw_email: str) -> Optional[WaitlistEntry]:
        return await self.store.get_by_email(validate_email_address(raw_email))

    async def get_referrals(self, referral_code: str) -> dict:
        return await self.referrals.summary(referral_code)

    async def total(self) -> int:
        return await self.store.count()

    async def list_entries(self, page: int = 1, per_page: int = 20) -> Tuple[List[WaitlistEntry], int]:
        return await self.store.list_entries(page=page, per_page=per_page)
