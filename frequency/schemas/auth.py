from typing import Optional
from pydantic import BaseModel, EmailStr, Field, model_validator


class Credentials(BaseModel):
    """Email/password or phone/password, exactly one identifier"""
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=5, max_length=20)
    password: str = Field(..., min_length=6)

    @model_validator(mode="after")
    def check_single_identifier(self):
        if bool(self.email) == bool(self.phone):
            raise ValueError("Provide either an email address or a phone number")
        return self


class RegisterRequest(Credentials):
    display_name: Optional[str] = None


class LoginRequest(Credentials):
    pass


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user_id: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class GoogleAuthRequest(BaseModel):
    credential: str
