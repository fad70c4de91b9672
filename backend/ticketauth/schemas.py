from pydantic import BaseModel, ConfigDict
from typing import Any, Optional, Union
from datetime import datetime

# Base schemas
class BaseResponse(BaseModel):
    success: bool = True
    message: str

# Auth schemas
# Presence and format are checked by the auth flow so that every failure
# carries the same error kinds regardless of the caller.
class RegisterRequest(BaseModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class LoginResponse(BaseResponse):
    otp: str

class VerifyOTPRequest(BaseModel):
    otp: Optional[Any] = None

class VerifyOTPResponse(BaseResponse):
    token: str
    token_type: str = "bearer"
    expires_in: int

# Ticket schemas
class BuyTicketRequest(BaseModel):
    expiredDate: Optional[Union[int, float, str]] = None

class TicketOut(BaseModel):
    id: int
    user_id: int
    expired_date: datetime
    image: Optional[str] = None
    qr_code: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class TicketResponse(BaseResponse):
    ticket: TicketOut
