"""
GraphQL object and input types.

Object types are built from the service read models.  Relationship
fields (``courses``, ``students``) are resolved lazily from the ids kept
in a private field, and the ``*Count`` fields count the resolved
records, so ids of deleted records are not counted.
"""

from typing import List, Optional

import strawberry
from strawberry.types import Info

from ...schemas.course import CourseRead
from ...schemas.student import StudentRead
from ...schemas.user import AuthPayload as AuthPayloadModel


@strawberry.type
class User:
    id: strawberry.ID
    email: str


@strawberry.type
class AuthPayload:
    token: str
    user: User

    @classmethod
    def from_model(cls, payload: AuthPayloadModel) -> "AuthPayload":
        return cls(
            token=payload.token,
            user=User(id=strawberry.ID(payload.user.id), email=payload.user.email),
        )


@strawberry.type
class Student:
    id: strawberry.ID
    name: str
    email: str
    age: int
    major: Optional[str]
    record: strawberry.Private[StudentRead]

    @classmethod
    def from_model(cls, student: StudentRead) -> "Student":
        return cls(
            id=strawberry.ID(student.id),
            name=student.name,
            email=student.email,
            age=student.age,
            major=student.major,
            record=student,
        )

    @strawberry.field
    async def courses(self, info: Info) -> List["Course"]:
        courses = await info.context.students.list_courses(self.record)
        return [Course.from_model(course) for course in courses]

    @strawberry.field
    async def courses_count(self, info: Info) -> int:
        return len(await info.context.students.list_courses(self.record))


@strawberry.type
class Course:
    id: strawberry.ID
    title: str
    code: str
    credits: int
    instructor: str
    record: strawberry.Private[CourseRead]

    @classmethod
    def from_model(cls, course: CourseRead) -> "Course":
        return cls(
            id=strawberry.ID(course.id),
            title=course.title,
            code=course.code,
            credits=course.credits,
            instructor=course.instructor,
            record=course,
        )

    @strawberry.field
    async def students(self, info: Info) -> List[Student]:
        students = await info.context.courses.list_students(self.record)
        return [Student.from_model(student) for student in students]

    @strawberry.field
    async def students_count(self, info: Info) -> int:
        return len(await info.context.courses.list_students(self.record))


@strawberry.input(name="StudentFilter")
class StudentFilterInput:
    major: Optional[str] = None
    name_contains: Optional[str] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None


@strawberry.input(name="CourseFilter")
class CourseFilterInput:
    code_prefix: Optional[str] = None
    title_contains: Optional[str] = None
    instructor: Optional[str] = None
    min_credits: Optional[int] = None
    max_credits: Optional[int] = None


@strawberry.input(name="ListOptions")
class ListOptionsInput:
    limit: Optional[int] = None
    offset: Optional[int] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None


# Update inputs default to UNSET so that an omitted field can be told
# apart from an explicit null.

@strawberry.input
class StudentUpdateInput:
    name: Optional[str] = strawberry.UNSET
    email: Optional[str] = strawberry.UNSET
    age: Optional[int] = strawberry.UNSET
    major: Optional[str] = strawberry.UNSET


@strawberry.input
class CourseUpdateInput:
    title: Optional[str] = strawberry.UNSET
    code: Optional[str] = strawberry.UNSET
    credits: Optional[int] = strawberry.UNSET
    instructor: Optional[str] = strawberry.UNSET
