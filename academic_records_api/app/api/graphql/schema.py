"""
GraphQL schema: queries and mutations.

Resolvers are thin: they convert GraphQL inputs into service payloads,
hand over the caller's identity from the context and convert the
result back.  Application errors become ``GraphQLError`` instances
whose ``extensions.code`` names the error kind.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import strawberry
from graphql import GraphQLError
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info

from ...core.errors import AcademicRecordsError
from ...schemas.course import CourseFilter
from ...schemas.listing import ListOptions
from ...schemas.student import StudentFilter
from .context import get_context
from .types import (
    AuthPayload,
    Course,
    CourseFilterInput,
    CourseUpdateInput,
    ListOptionsInput,
    Student,
    StudentFilterInput,
    StudentUpdateInput,
)


@contextmanager
def graphql_errors() -> Iterator[None]:
    """Re-raise application errors as GraphQL errors with a code."""
    try:
        yield
    except AcademicRecordsError as exc:
        raise GraphQLError(str(exc), extensions={"code": exc.code}) from exc


def _provided(**fields: Any) -> Dict[str, Any]:
    """Drop update fields the client omitted; an explicit null is kept."""
    return {key: value for key, value in fields.items() if value is not strawberry.UNSET}


def _list_options(options: Optional[ListOptionsInput]) -> Optional[ListOptions]:
    if options is None:
        return None
    return ListOptions(
        limit=options.limit,
        offset=options.offset,
        sort_by=options.sort_by,
        sort_order=options.sort_order,
    )


def _student_filter(filter: Optional[StudentFilterInput]) -> Optional[StudentFilter]:
    if filter is None:
        return None
    return StudentFilter(
        major=filter.major,
        name_contains=filter.name_contains,
        min_age=filter.min_age,
        max_age=filter.max_age,
    )


def _course_filter(filter: Optional[CourseFilterInput]) -> Optional[CourseFilter]:
    if filter is None:
        return None
    return CourseFilter(
        code_prefix=filter.code_prefix,
        title_contains=filter.title_contains,
        instructor=filter.instructor,
        min_credits=filter.min_credits,
        max_credits=filter.max_credits,
    )


@strawberry.type
class Query:
    @strawberry.field
    async def get_all_students(
        self,
        info: Info,
        filter: Optional[StudentFilterInput] = None,
        options: Optional[ListOptionsInput] = None,
    ) -> List[Student]:
        with graphql_errors():
            students = await info.context.students.list_students(
                _student_filter(filter), _list_options(options)
            )
        return [Student.from_model(student) for student in students]

    @strawberry.field
    async def get_student(self, info: Info, id: strawberry.ID) -> Optional[Student]:
        with graphql_errors():
            student = await info.context.students.get_student(str(id))
        return Student.from_model(student) if student else None

    @strawberry.field
    async def get_all_courses(
        self,
        info: Info,
        filter: Optional[CourseFilterInput] = None,
        options: Optional[ListOptionsInput] = None,
    ) -> List[Course]:
        with graphql_errors():
            courses = await info.context.courses.list_courses(
                _course_filter(filter), _list_options(options)
            )
        return [Course.from_model(course) for course in courses]

    @strawberry.field
    async def get_course(self, info: Info, id: strawberry.ID) -> Optional[Course]:
        with graphql_errors():
            course = await info.context.courses.get_course(str(id))
        return Course.from_model(course) if course else None


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def signup(self, info: Info, email: str, password: str) -> AuthPayload:
        with graphql_errors():
            payload = await info.context.users.signup(email, password)
        return AuthPayload.from_model(payload)

    @strawberry.mutation
    async def login(self, info: Info, email: str, password: str) -> AuthPayload:
        with graphql_errors():
            payload = await info.context.users.login(email, password)
        return AuthPayload.from_model(payload)

    @strawberry.mutation
    async def add_student(
        self,
        info: Info,
        name: str,
        email: str,
        age: int,
        major: Optional[str] = None,
    ) -> Student:
        with graphql_errors():
            student = await info.context.students.add_student(
                info.context.identity,
                {"name": name, "email": email, "age": age, "major": major},
            )
        return Student.from_model(student)

    @strawberry.mutation
    async def update_student(
        self, info: Info, id: strawberry.ID, input: StudentUpdateInput
    ) -> Student:
        with graphql_errors():
            student = await info.context.students.update_student(
                info.context.identity,
                str(id),
                _provided(name=input.name, email=input.email, age=input.age, major=input.major),
            )
        return Student.from_model(student)

    @strawberry.mutation
    async def delete_student(self, info: Info, id: strawberry.ID) -> bool:
        with graphql_errors():
            return await info.context.enrollment.delete_student(info.context.identity, str(id))

    @strawberry.mutation
    async def add_course(
        self,
        info: Info,
        title: str,
        code: str,
        credits: int,
        instructor: str,
    ) -> Course:
        with graphql_errors():
            course = await info.context.courses.add_course(
                info.context.identity,
                {"title": title, "code": code, "credits": credits, "instructor": instructor},
            )
        return Course.from_model(course)

    @strawberry.mutation
    async def update_course(
        self, info: Info, id: strawberry.ID, input: CourseUpdateInput
    ) -> Course:
        with graphql_errors():
            course = await info.context.courses.update_course(
                info.context.identity,
                str(id),
                _provided(
                    title=input.title,
                    code=input.code,
                    credits=input.credits,
                    instructor=input.instructor,
                ),
            )
        return Course.from_model(course)

    @strawberry.mutation
    async def delete_course(self, info: Info, id: strawberry.ID) -> bool:
        with graphql_errors():
            return await info.context.enrollment.delete_course(info.context.identity, str(id))

    @strawberry.mutation
    async def enroll_student(
        self, info: Info, student_id: strawberry.ID, course_id: strawberry.ID
    ) -> Student:
        with graphql_errors():
            student = await info.context.enrollment.enroll(
                info.context.identity, str(student_id), str(course_id)
            )
        return Student.from_model(student)

    @strawberry.mutation
    async def unenroll_student(
        self, info: Info, student_id: strawberry.ID, course_id: strawberry.ID
    ) -> Student:
        with graphql_errors():
            student = await info.context.enrollment.unenroll(
                info.context.identity, str(student_id), str(course_id)
            )
        return Student.from_model(student)


schema = strawberry.Schema(query=Query, mutation=Mutation)


def create_graphql_router() -> GraphQLRouter:
    """Router serving the schema, with the per-request context."""
    return GraphQLRouter(schema, context_getter=get_context)
