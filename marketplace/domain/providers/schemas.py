"""Provider domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, field_validator

from ...catalog import PROVIDER_SERVICE_OPTIONS, YEARS_EXPERIENCE_OPTIONS
from ...shared.crypto import encrypt_value, last_four
from ...shared.validators import (
    unique_in_order,
    validate_digits,
    validate_ein,
    validate_email,
    validate_us_phone,
)


class ProviderDraftUpdate(BaseModel):
    """Partial provider application fields; only the fields sent are merged"""

    businessName: Optional[str] = None
    businessType: Optional[Literal["sole_proprietor", "llc", "corporation", "partnership"]] = None
    ein: Optional[str] = None
    ownerName: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    serviceArea: Optional[str] = None
    services: Optional[list[str]] = None
    yearsExperience: Optional[str] = None
    backgroundCheck: Optional[bool] = None
    bankAccountHolder: Optional[str] = None
    routingNumber: Optional[str] = None
    bankAccount: Optional[str] = None

    @field_validator("businessName", "ownerName", "serviceArea", "bankAccountHolder")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if v else v

    @field_validator("ein")
    @classmethod
    def check_ein(cls, v):
        return validate_ein(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("services")
    @classmethod
    def known_services(cls, v):
        if v is None:
            return v
        unknown = [s for s in v if s not in PROVIDER_SERVICE_OPTIONS]
        if unknown:
            raise ValueError(f"Unknown services: {', '.join(unknown)}")
        return unique_in_order(v)

    @field_validator("yearsExperience")
    @classmethod
    def known_experience(cls, v):
        if v is not None and v not in YEARS_EXPERIENCE_OPTIONS:
            raise ValueError(f"Years of experience must be one of: {', '.join(YEARS_EXPERIENCE_OPTIONS)}")
        return v

    @field_validator("routingNumber")
    @classmethod
    def check_routing(cls, v):
        return validate_digits(v, "Routing number", 9, 9)

    @field_validator("bankAccount")
    @classmethod
    def check_account(cls, v):
        return validate_digits(v, "Account number", 4, 17)

    def draft_fields(self) -> dict:
        """Sent fields with bank numbers swapped for ciphertext plus their last four digits"""
        fields = self.model_dump(exclude_unset=True)
        for name in ("routingNumber", "bankAccount"):
            if name in fields:
                plain = fields.pop(name)
                fields[f"{name}Encrypted"] = encrypt_value(plain)
                fields[f"{name}Last4"] = last_four(plain)
        return fields


class ProviderWizardStateResponse(BaseModel):
    flow: str
    currentStep: int
    totalSteps: int
    stepName: str
    canAdvance: bool
    isTerminal: bool
    draft: dict[str, Any]

    @field_validator("draft")
    @classmethod
    def hide_ciphertext(cls, v):
        return {k: val for k, val in v.items() if not k.endswith("Encrypted")}


class ProviderApplicationSubmitResponse(BaseModel):
    id: str
    status: str = "pending"
    message: str = "Application submitted! We will review your application within 2-3 business days."


class ProviderListing(BaseModel):
    """Public card for an approved provider"""

    id: str
    name: str
    rating: float = 4.8
    reviews: int = 0
    tags: list[str] = []
    description: str
    startingPrice: int = 120
    certified: bool = False
    serviceArea: str = "Local Area"
    phone: str = ""
    email: str = ""
    coordinates: Optional[dict[str, Optional[float]]] = None
    distanceKm: Optional[float] = None


class ProviderDashboardResponse(BaseModel):
    providerId: str
    businessName: Optional[str] = None
    status: str
    todayBookings: int
    weekRevenue: float
    totalJobs: int
    rating: float
    upcoming: list[dict[str, Any]]


class ProviderApprovalResponse(BaseModel):
    id: str
    status: str
    userId: Optional[str] = None
    approvedAt: Optional[datetime] = None
