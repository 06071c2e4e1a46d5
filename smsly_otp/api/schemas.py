"""
API Schemas
===========
Request and response models for the OTP HTTP endpoints.
"""

from typing import Optional
from pydantic import AliasChoices, BaseModel, Field


class SendOTPRequest(BaseModel):
    phone_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("phoneNumber", "mobileNumber", "phone_number"),
    )


class VerifyOTPRequest(BaseModel):
    phone_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("phoneNumber", "mobileNumber", "phone_number"),
    )
    code: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("code", "otp"),
    )


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class QueueHealth(BaseModel):
    pending: int
    inFlight: bool


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: str
    uptime: float
    queue: QueueHealth
