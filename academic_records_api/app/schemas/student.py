"""
Pydantic models for student data.

``StudentCreate`` validates new records, ``StudentUpdate`` validates a
partial update (unset fields are left alone) and ``StudentRead`` is
what the service layer hands back.  ``courses`` only appears on the
read model: enrollment changes go through ``EnrollmentService``.
"""

import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = re.compile(r".+@.+\..+")


def check_email(value: Optional[str]) -> Optional[str]:
    if value is not None and not EMAIL_PATTERN.match(value):
        raise ValueError("Must use a valid email address")
    return value


def reject_null(value):
    if value is None:
        raise ValueError("Field cannot be null")
    return value


class StudentBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["Ada Lovelace"])
    email: str = Field(..., examples=["ada@example.com"])
    age: int = Field(..., examples=[22])
    major: Optional[str] = Field(None, examples=["Mathematics"])

    @field_validator("email")
    @classmethod
    def validate_email(cls, value):
        return check_email(value)


class StudentCreate(StudentBase):
    """Schema for creating a student."""
    pass


class StudentUpdate(BaseModel):
    """Schema for updating a student.

    Only fields present in the payload are updated.  ``major`` may be
    set to ``None`` to clear it; the other fields cannot be null.
    """
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    age: Optional[int] = None
    major: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value):
        return check_email(value)

    @field_validator("name", "email", "age")
    @classmethod
    def validate_not_null(cls, value):
        return reject_null(value)


class StudentRead(StudentBase):
    """Schema for reading a student."""

    id: str
    courses: List[str] = Field(default_factory=list)

    model_config = {
        "from_attributes": True,
    }


class StudentFilter(BaseModel):
    """Optional predicates for listing students."""

    major: Optional[str] = None
    name_contains: Optional[str] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
