from functools import wraps
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.waitlist.models.waitlist import WaitlistEntry
from app.platform.exceptions import (
    DuplicateEmailError,
    ReferralCodeCollisionError,
    ReferralNotFoundError,
    StoreUnavailableError,
)
from app.platform.logger import get_logger

logger = get_logger(__name__)


def _store_operation(func_):
    """Normalise database failures into StoreUnavailableError."""

    @wraps(func_)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func_(self, *args, **kwargs)
        except IntegrityError:
            raise
        except (DBAPIError, SQLAlchemyError, OSError) as e:
            logger.error(f"Waiting list store error in {func_.__name__}: {e}")
            await self._safe_rollback()
            raise StoreUnavailableError() from e

    return wrapper


class WaitlistStore:
    """
    Persistence for waiting list entries.

    Uniqueness of email and referral code is enforced by the table constraints;
    callers never rely on a prior lookup alone.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _safe_rollback(self) -> None:
        try:
            await self.db.rollback()
        except (DBAPIError, SQLAlchemyError, OSError) as e:
            logger.warning(f"Rollback failed: {e}")

    @_store_operation
    async def get_by_email(self, email: str) -> Optional[WaitlistEntry]:
        result = await self.db.execute(
            select(WaitlistEntry)
            .where(WaitlistEntry.email == email.strip().lower())
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @_store_operation
    async def get_by_code(self, referral_code: str) -> Optional[WaitlistEntry]:
        result = await self.db.execute(
            select(WaitlistEntry)
            .where(WaitlistEntry.referral_code == referral_code)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @_store_operation
    async def get_by_id(self, entry_id: str) -> Optional[WaitlistEntry]:
        result = await self.db.execute(
            select(WaitlistEntry)
            .where(WaitlistEntry.id == entry_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @_store_operation
    async def insert(
        self,
        email: str,
        referral_code: str,
        source: str = "api",
        utm_source: Optional[str] = None,
        referrer_id: Optional[str] = None,
    ) -> WaitlistEntry:
        """
        Insert a new entry.

        Raises:
            DuplicateEmailError: the email is already on the list
            ReferralCodeCollisionError: the referral code is already taken
        """
        email = email.strip().lower()
        entry = WaitlistEntry(
            email=email,
            referral_code=referral_code,
            referral_count=0,
            source=source,
            utm_source=utm_source,
            referrer_id=referrer_id,
        )
        self.db.add(entry)

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            # Work out which unique constraint was hit
            if await self.get_by_email(email) is not None:
                raise DuplicateEmailError() from e
            if await self.get_by_code(referral_code) is not None:
                raise ReferralCodeCollisionError() from e
            logger.error(f"Unexpected integrity error inserting {email}: {e}")
            raise StoreUnavailableError() from e

        await self.db.refresh(entry)
        return entry

    @_store_operation
    async def increment_referral_count(self, entry_id: str) -> None:
        """Atomically add one to the entry's referral count."""
        result = await self.db.execute(
            update(WaitlistEntry)
            .where(WaitlistEntry.id == entry_id)
            .values(referral_count=WaitlistEntry.referral_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount == 0:
            raise ReferralNotFoundError()

    @_store_operation
    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(WaitlistEntry))
        return result.scalar_one()

    @_store_operation
    async def list_referrals(self, referrer_id: str) -> List[WaitlistEntry]:
        result = await self.db.execute(
            select(WaitlistEntry)
            .where(WaitlistEntry.referrer_id == referrer_id)
            .order_by(WaitlistEntry.created_at.asc())
        )
        return list(result.scalars().all())

    @_store_operation
    async def list_entries(self, page: int = 1, per_page: int = 20) -> Tuple[List[WaitlistEntry], int]:
        total = await self.count()
        result = await self.db.execute(
            select(WaitlistEntry)
            .order_by(WaitlistEntry.created_at.desc(), WaitlistEntry.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total
