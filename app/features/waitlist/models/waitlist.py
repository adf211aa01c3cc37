from sqlalchemy import Column, ForeignKey, Integer, String

from app.platform.db.base import BaseModel

REFERRAL_CODE_MAX_LENGTH = 32


class WaitlistEntry(BaseModel):
    """
    One waiting list signup.

    The email is stored normalised (stripped, lower-cased) so the unique
    constraint enforces case-insensitive uniqueness.
    """
    __tablename__ = "waiting_list_emails"

    email = Column(String(255), unique=True, nullable=False, index=True)
    referral_code = Column(String(REFERRAL_CODE_MAX_LENGTH), unique=True, nullable=False, index=True)
    referral_count = Column(Integer, default=0, server_default="0", nullable=False)
    source = Column(String(100), default="api", nullable=False)
    utm_source = Column(String(255), nullable=True)

    # The entry whose referral code was used at signup
    referrer_id = Column(
        String, ForeignKey("waiting_list_emails.id", ondelete="SET NULL"), nullable=True, index=True
    )

    def __repr__(self) -> str:
        return f"<WaitlistEntry(email='{self.email}', referral_code='{self.referral_code}')>"
