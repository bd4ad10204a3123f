"""
Per-request GraphQL context.

The bearer token is resolved exactly once per request by the
``resolve_identity`` dependency; resolvers read the result from
``info.context.identity`` and pass it on to the services explicitly.
"""

from fastapi import Depends, Request
from strawberry.fastapi import BaseContext

from ...core.security import ResolvedIdentity, resolve_identity
from ...core.store import EntityStore
from ...services.course_service import CourseService
from ...services.enrollment_service import EnrollmentService
from ...services.student_service import StudentService
from ...services.user_service import UserService


class GraphQLContext(BaseContext):
    """Identity of the caller plus the services bound to the app's store."""

    def __init__(self, identity: ResolvedIdentity, store: EntityStore) -> None:
        super().__init__()
        self.identity = identity
        self.store = store
        self.students = StudentService(store)
        self.courses = CourseService(store)
        self.enrollment = EnrollmentService(store)
        self.users = UserService(store)


async def get_context(
    request: Request,
    identity: ResolvedIdentity = Depends(resolve_identity),
) -> GraphQLContext:
    return GraphQLContext(identity=identity, store=request.app.state.store)
