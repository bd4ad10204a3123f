"""
Business logic for courses.

Counterpart of ``StudentService``; deletion is handled by
``EnrollmentService`` because it must clean up student back-references.
"""

import logging
from typing import Any, Dict, List, Optional

from ..core.errors import NotFound
from ..core.security import ResolvedIdentity, require_identity
from ..core.store import COURSES, STUDENTS, EntityStore
from ..schemas.course import CourseCreate, CourseFilter, CourseRead, CourseUpdate
from ..schemas.listing import ListOptions
from ..schemas.student import StudentRead
from .query_builder import build_course_query
from .validation import parse_payload

logger = logging.getLogger(__name__)


class CourseService:
    """Course operations on top of an entity store."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    async def list_courses(
        self,
        filter: Optional[CourseFilter] = None,
        options: Optional[ListOptions] = None,
    ) -> List[CourseRead]:
        query = build_course_query(filter, options)
        return [CourseRead(**record) for record in self.store.find(COURSES, query)]

    async def get_course(self, course_id: str) -> Optional[CourseRead]:
        record = self.store.find_by_id(COURSES, course_id)
        return CourseRead(**record) if record else None

    async def add_course(self, identity: ResolvedIdentity, payload: Dict[str, Any]) -> CourseRead:
        user = require_identity(identity)
        data = parse_payload(CourseCreate, payload)
        record = self.store.create(COURSES, {**data.model_dump(), "students": []})
        logger.info("User %s created course %s (%s)", user.email, record["id"], data.code)
        return CourseRead(**record)

    async def update_course(
        self, identity: ResolvedIdentity, course_id: str, payload: Dict[str, Any]
    ) -> CourseRead:
        """Update the supplied fields of a course; ``NotFound`` if it is missing."""
        user = require_identity(identity)
        data = parse_payload(CourseUpdate, payload)
        updates = data.model_dump(exclude_unset=True)
        record = self.store.update_by_id(COURSES, course_id, updates)
        if record is None:
            raise NotFound(f"Course {course_id} not found")
        logger.info("User %s updated course %s: %s", user.email, course_id, sorted(updates))
        return CourseRead(**record)

    async def list_students(self, course: CourseRead) -> List[StudentRead]:
        return [StudentRead(**record) for record in self.store.find_by_ids(STUDENTS, course.students)]
