"""Booking domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from ...catalog import TIME_SLOTS, get_service


class VehicleInfo(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None

    @field_validator("year", mode="before")
    @classmethod
    def year_as_text(cls, v):
        if v is None or v == "":
            return None
        v = str(v).strip()
        if not v.isdigit() or len(v) != 4:
            raise ValueError("Year must be a 4-digit number")
        return v


class BookingDraftUpdate(BaseModel):
    """Partial booking wizard fields; only the fields sent are merged"""

    serviceId: Optional[int] = None
    providerId: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[str] = None
    vehicle: Optional[VehicleInfo] = None
    address: Optional[str] = None
    paymentMethodId: Optional[str] = None

    @field_validator("serviceId")
    @classmethod
    def known_service(cls, v):
        if v is not None and get_service(v) is None:
            raise ValueError("Unknown service")
        return v

    @field_validator("time")
    @classmethod
    def known_slot(cls, v):
        if v is not None and v not in TIME_SLOTS:
            raise ValueError(f"Time must be one of: {', '.join(TIME_SLOTS)}")
        return v

    def draft_fields(self) -> dict:
        fields = self.model_dump(exclude_unset=True)
        if "date" in fields and fields["date"] is not None:
            fields["date"] = fields["date"].isoformat()
        return fields


class WizardStateResponse(BaseModel):
    flow: str
    currentStep: int
    totalSteps: int
    stepName: str
    canAdvance: bool
    isTerminal: bool
    draft: dict[str, Any]


class BookingResponse(BaseModel):
    id: str
    customerId: str
    customerName: Optional[str] = None
    providerId: Optional[str] = None
    providerName: Optional[str] = None
    service: dict[str, Any]
    date: str
    time: str
    vehicle: dict[str, Any]
    address: str
    status: str
    paymentStatus: str
    totalAmount: float
    platformFee: float
    providerAmount: float
    createdAt: Optional[dt.datetime] = None
    paidAt: Optional[dt.datetime] = None


class BookingSubmitResponse(BaseModel):
    id: str
    message: str = "Booking confirmed! Payment is being processed."
    booking: BookingResponse
