"""
Business logic for students.

``StudentService`` covers listing, lookup, creation and partial update.
Enrollment and deletion change both sides of the Student↔Course
relationship and therefore live in ``EnrollmentService``.
"""

import logging
from typing import Any, Dict, List, Optional

from ..core.errors import NotFound
from ..core.security import ResolvedIdentity, require_identity
from ..core.store import COURSES, STUDENTS, EntityStore
from ..schemas.course import CourseRead
from ..schemas.listing import ListOptions
from ..schemas.student import StudentCreate, StudentFilter, StudentRead, StudentUpdate
from .query_builder import build_student_query
from .validation import parse_payload


class StudentService:
    """Student operations on top of an entity store."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    async def list_students(
        self,
        filter: Optional[StudentFilter] = None,
        options: Optional[ListOptions] = None,
    ) -> List[StudentRead]:
        """Return students matching ``filter``, sorted and paginated by ``options``."""
        query = build_student_query(filter, options)
        return [StudentRead(**record) for record in self.store.find(STUDENTS, query)]

    async def get_student(self, student_id: str) -> Optional[StudentRead]:
        record = self.store.find_by_id(STUDENTS, student_id)
        return StudentRead(**record) if record else None

    async def add_student(self, identity: ResolvedIdentity, payload: Dict[str, Any]) -> StudentRead:
        """Create a student with an empty course list."""
        user = require_identity(identity)
        data = parse_payload(StudentCreate, payload)
        record = self.store.create(STUDENTS, {**data.model_dump(), "courses": []})
        logging.getLogger(__name__).info(
            "User %s created student %s (%s)", user.email, record["id"], data.email
        )
        return StudentRead(**record)

    async def update_student(
        self, identity: ResolvedIdentity, student_id: str, payload: Dict[str, Any]
    ) -> StudentRead:
        """Update the fields present in ``payload``.

        Absent keys are left alone; ``major: None`` clears the major.
        Raises ``NotFound`` if the student does not exist.
        """
        user = require_identity(identity)
        data = parse_payload(StudentUpdate, payload)
        updates = data.model_dump(exclude_unset=True)
        record = self.store.update_by_id(STUDENTS, student_id, updates)
        if record is None:
            raise NotFound(f"Student {student_id} not found")
        logging.getLogger(__name__).info(
            "User %s updated student %s: %s", user.email, student_id, sorted(updates)
        )
        return StudentRead(**record)

    async def list_courses(self, student: StudentRead) -> List[CourseRead]:
        """Resolve the student's course ids, in enrollment order.

        Ids that no longer point at a course are skipped.
        """
        return [CourseRead(**record) for record in self.store.find_by_ids(COURSES, student.courses)]
