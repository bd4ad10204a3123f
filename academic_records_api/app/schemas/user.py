"""
Pydantic models for user accounts.

Accounts exist only to obtain tokens.  The password hash never leaves
the service layer: ``UserRead`` carries the id and email only.
"""

from pydantic import BaseModel, Field, field_validator

from .student import check_email


class UserCreate(BaseModel):
    """Credentials supplied to ``signup`` and ``login``."""

    email: str = Field(..., examples=["registrar@example.com"])
    password: str = Field(..., min_length=1, examples=["strongpassword"])

    @field_validator("email")
    @classmethod
    def validate_email(cls, value):
        return check_email(value)


class UserRead(BaseModel):
    id: str
    email: str

    model_config = {
        "from_attributes": True,
    }


class AuthPayload(BaseModel):
    """Token issued on signup or login, with the account it belongs to."""

    token: str
    user: UserRead
