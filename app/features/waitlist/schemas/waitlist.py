from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WaitlistIn(BaseModel):
    # syntax is checked by the service so malformed addresses get the waiting list error shape
    email: str = Field(..., max_length=255)
    source: Optional[str] = Field(default=None, max_length=100)
    utm_source: Optional[str] = Field(default=None, max_length=255)
    # unknown or oversized codes are ignored by the service rather than rejected
    referral_code: Optional[str] = None


class WaitlistOut(BaseModel):
    id: str
    email: str
    referral_code: str

    model_config = ConfigDict(from_attributes=True)


class WaitlistCheckOut(BaseModel):
    id: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class ReferrerOut(BaseModel):
    id: str
    email: str
    referral_count: int


class ReferredSignupOut(BaseModel):
    id: str
    email: str
    created_at: Optional[datetime] = None


class ReferralSummaryOut(BaseModel):
    user: ReferrerOut
    referrals: List[ReferredSignupOut]


class WaitlistAdminOut(BaseModel):
    id: str
    email: str
    referral_code: str
    referral_count: int
    source: str
    utm_source: Optional[str] = None
    referrer_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
