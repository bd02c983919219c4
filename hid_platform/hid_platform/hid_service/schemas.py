from datetime import date
import re

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from typing import List, Literal, Optional, Union

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
MIN_PASSWORD_LENGTH = 8


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _required(value: str, info: ValidationInfo) -> str:
    if not value or not value.strip():
        raise ValueError(f"{to_camel(info.field_name)} is required.")
    return value


def _email(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("email is required.")
    if not EMAIL_RE.fullmatch(value):
        raise ValueError("Invalid email format.")
    return value


# ---------------- Credential requests ----------------

class SignupRequest(CamelModel):
    email: str
    password: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    gender: Optional[str] = None

    _check_email = field_validator("email")(_email)
    _check_required = field_validator("password", "first_name", "last_name")(_required)


class LoginRequest(CamelModel):
    email: str
    password: str

    _check_email = field_validator("email")(_email)
    _check_required = field_validator("password")(_required)


class OtpRequest(CamelModel):
    email: str

    _check_email = field_validator("email")(_email)


class OtpVerifyRequest(CamelModel):
    email: str
    otp: Union[str, int]

    _check_email = field_validator("email")(_email)

    @field_validator("otp", mode="after")
    @classmethod
    def otp_as_string(cls, value: Union[str, int]) -> str:
        value = str(value)
        if not value.strip():
            raise ValueError("otp is required.")
        return value


class PasswordResetConfirm(OtpVerifyRequest):
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_length(cls, value: str) -> str:
        if not value:
            raise ValueError("newPassword is required.")
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
        return value


class RefreshTokenRequest(CamelModel):
    refresh_token: str

    _check_required = field_validator("refresh_token")(_required)


# ---------------- Credential responses ----------------

class SignupUser(CamelModel):
    user_id: int
    email: str
    health_id: str


class SignupResponse(CamelModel):
    message: str
    user: SignupUser


class TokenResponse(CamelModel):
    user_id: int
    access_token: str
    refresh_token: str


class MessageResponse(BaseModel):
    message: str


class OtpSentResponse(BaseModel):
    message: str
    otp: Optional[str] = None


# ---------------- Profile ----------------

class AboutMe(CamelModel):
    full_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    country: Optional[str] = None
    state: Optional[str] = None


class HealthInfo(CamelModel):
    blood_group: Optional[str] = None
    genotype: Optional[str] = None
    allergies: Optional[List[str]] = None
    chronic_conditions: Optional[List[str]] = None
    current_medications: Optional[List[str]] = None


class EmergencyContactIn(CamelModel):
    full_name: Optional[str] = None
    relationship: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None


class ProfileUpdateRequest(CamelModel):
    about_me: Optional[AboutMe] = None
    health_info: Optional[HealthInfo] = None
    emergency_contact: Optional[EmergencyContactIn] = None
    medical_notes: Optional[str] = None


# ---------------- Medical records ----------------

class AllergyCreate(CamelModel):
    allergen_name: str
    category: str
    reaction: Optional[str] = None
    severity: Optional[str] = None

    _check_required = field_validator("allergen_name", "category")(_required)


class ConditionCreate(CamelModel):
    condition_name: str
    diagnosis_date: Optional[date] = None
    status: Optional[str] = None
    is_critical: Optional[bool] = None

    _check_required = field_validator("condition_name")(_required)
