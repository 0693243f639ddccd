"""User domain schemas - Pydantic models for auth and profile requests"""

from typing import Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_email, validate_us_phone


class SignupRequest(BaseModel):
    """Schema for email/password account creation"""

    email: str
    password: str
    confirmPassword: str
    firstName: str
    lastName: str
    phone: Optional[str] = None
    businessName: Optional[str] = None
    accountType: Literal["customer", "provider"] = "customer"

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

    @field_validator("firstName", "lastName")
    @classmethod
    def required_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Please fill in all required fields.")
        return v.strip()

    @model_validator(mode="after")
    def check_passwords(self):
        if len(self.password) < 6:
            raise ValueError("Password must be at least 6 characters.")
        if self.password != self.confirmPassword:
            raise ValueError("Passwords do not match.")
        return self


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class GoogleSignInRequest(BaseModel):
    """Credential captured by the client's Google popup; empty means the popup was blocked"""

    idToken: Optional[str] = None
    accessToken: Optional[str] = None
    accountType: Literal["customer", "provider"] = "customer"


class PasswordResetRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


class ProfileUpdate(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    phone: Optional[str] = None
    businessName: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v


class ProfileResponse(BaseModel):
    uid: str
    email: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    displayName: Optional[str] = None
    phone: Optional[str] = None
    businessName: Optional[str] = None
    accountType: str = "customer"
    role: str = "user"
    providerApplicationId: Optional[str] = None


class AuthResponse(BaseModel):
    uid: str
    email: Optional[str] = None
    idToken: Optional[str] = None
    refreshToken: Optional[str] = None
    isNewUser: bool = False
    profile: Optional[ProfileResponse] = None


class GoogleRedirectResponse(BaseModel):
    redirectUrl: str
    message: str = "Popup sign-in unavailable - continue with redirect"
