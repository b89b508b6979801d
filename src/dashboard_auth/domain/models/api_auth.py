"""Authentication API Models

Purpose: Request/response models for sign-in and signup

Pydantic models that validate form input (credentials sign-in, signup) and
shape the JSON the HTTP surface returns.

Key Components:
- CredentialsForm: Email/password sign-in input
- SignupForm: Signup input with password confirmation
- FormState / SignupState: State handed back to the form after a failed submit
- ProviderResponse: Public OAuth provider entry
- SessionResponse: Current session summary
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

MIN_PASSWORD_LENGTH = 6


class CredentialsForm(BaseModel):
    """Credentials sign-in input

    Email is lowercased so lookups are case-insensitive.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, repr=False)
    callback_url: Optional[str] = Field(None, alias="callbackUrl")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class SignupForm(BaseModel):
    """Signup input"""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, repr=False)
    confirm_password: str = Field(..., alias="confirmPassword", repr=False)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v, info: ValidationInfo):
        password = info.data.get("password")
        if password is not None and v != password:
            raise ValueError("Passwords do not match")
        return v


class FormState(BaseModel):
    """State returned to the sign-in form after a failed submit"""

    message: Optional[str] = None


class SignupState(BaseModel):
    """State returned to the signup form after a failed submit"""

    errors: Dict[str, List[str]] = Field(default_factory=dict)
    message: Optional[str] = None


class ProviderResponse(BaseModel):
    """Public OAuth provider entry"""

    id: str = Field(..., examples=["github"])
    name: str = Field(..., examples=["GitHub"])


class AuthMessageResponse(BaseModel):
    """User-facing error message"""

    message: str = Field(..., examples=["Invalid credentials."])


class SessionResponse(BaseModel):
    """Current session, as seen by the dashboard"""

    user_id: str
    email: str
    provider: str = Field(..., examples=["credentials"])
    expires_at: datetime
