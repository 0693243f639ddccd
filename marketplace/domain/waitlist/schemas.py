"""Waitlist domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import unique_in_order, validate_email, validate_us_phone, validate_zip_code


class WaitlistSignup(BaseModel):
    """Schema for a pre-launch waitlist signup"""

    name: str
    email: str
    phone: Optional[str] = None
    city: str
    zipCode: Optional[str] = None
    vehicleType: Optional[Literal["sedan", "suv", "truck", "van", "luxury", "sports", "rv", "motorcycle"]] = None
    servicesInterested: list[str] = []
    howSoon: Optional[Literal["asap", "week", "month", "flexible"]] = None
    referredBy: Optional[str] = None

    @field_validator("name", "city")
    @classmethod
    def required_text(cls, v):
        if not v or not v.strip():
            raise ValueError("This field is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v

    @field_validator("zipCode")
    @classmethod
    def check_zip(cls, v):
        return validate_zip_code(v)

    @field_validator("servicesInterested")
    @classmethod
    def dedupe_services(cls, v):
        return unique_in_order(s.strip() for s in v if s and s.strip())

    @field_validator("referredBy")
    @classmethod
    def normalize_referral(cls, v):
        if v:
            return v.strip().lower() or None
        return None


class WaitlistSignupResponse(BaseModel):
    id: str
    referralCode: str
    message: str = "You're on the list!"


class WaitlistCountResponse(BaseModel):
    count: int


class ReferralStatsResponse(BaseModel):
    referralCode: str
    referralCount: int = 0
    city: Optional[str] = None
    signupDate: Optional[datetime] = None
