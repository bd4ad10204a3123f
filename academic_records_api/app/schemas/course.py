"""
Pydantic models for course data.

Mirrors ``schemas.student``: create, partial update, read and list
filter models.  ``students`` is exposed on the read model only.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .student import reject_null


class CourseBase(BaseModel):
    title: str = Field(..., min_length=1, examples=["Introduction to Computing"])
    code: str = Field(..., min_length=1, examples=["CS101"])
    credits: int = Field(..., examples=[3])
    instructor: str = Field(..., min_length=1, examples=["Grace Hopper"])


class CourseCreate(CourseBase):
    """Schema for creating a course."""
    pass


class CourseUpdate(BaseModel):
    """Schema for updating a course.

    Only fields present in the payload are updated.  Every course field
    is required, so none of them may be set to ``None``.
    """
    title: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = Field(None, min_length=1)
    credits: Optional[int] = None
    instructor: Optional[str] = Field(None, min_length=1)

    @field_validator("title", "code", "credits", "instructor")
    @classmethod
    def validate_not_null(cls, value):
        return reject_null(value)


class CourseRead(CourseBase):
    """Schema for reading a course."""

    id: str
    students: List[str] = Field(default_factory=list)

    model_config = {
        "from_attributes": True,
    }


class CourseFilter(BaseModel):
    """Optional predicates for listing courses."""

    code_prefix: Optional[str] = None
    title_contains: Optional[str] = None
    instructor: Optional[str] = None
    min_credits: Optional[int] = None
    max_credits: Optional[int] = None
