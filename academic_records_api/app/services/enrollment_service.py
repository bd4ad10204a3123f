"""
Enrollment and cascading deletion.

Student↔Course is a many-to-many relationship stored on both sides:
``Student.courses`` and its back-reference ``Course.students``.  No
transaction spans the two records, so every operation here issues two
writes in a fixed order:

* enroll / unenroll update the student first, then the course;
* deletes pull the back-references first and only then delete the
  record, so a reader can observe a dangling id only for the duration
  of the second write.

Each write is a set operation (add-to-set or pull), which keeps both
arrays duplicate-free and makes every operation idempotent.  Concurrent
operations on the same pair are not serialised; the last write wins.
"""

import logging

from ..core.errors import NotFound
from ..core.security import ResolvedIdentity, require_identity
from ..core.store import COURSES, STUDENTS, EntityStore
from ..schemas.student import StudentRead

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Keeps ``Student.courses`` and ``Course.students`` consistent."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    async def enroll(
        self, identity: ResolvedIdentity, student_id: str, course_id: str
    ) -> StudentRead:
        """Add the course to the student and the student to the course.

        Both records must exist; otherwise ``NotFound`` is raised before
        anything is written.  Returns the student as stored afterwards.
        """
        user = require_identity(identity)
        if self.store.find_by_id(STUDENTS, student_id) is None:
            raise NotFound(f"Student {student_id} not found")
        if self.store.find_by_id(COURSES, course_id) is None:
            raise NotFound(f"Course {course_id} not found")

        self.store.add_to_set_field(STUDENTS, student_id, "courses", course_id)
        self.store.add_to_set_field(COURSES, course_id, "students", student_id)
        logger.info("User %s enrolled student %s in course %s", user.email, student_id, course_id)
        return self._reload_student(student_id)

    async def unenroll(
        self, identity: ResolvedIdentity, student_id: str, course_id: str
    ) -> StudentRead:
        """Remove the pair from both sides; absent entries are a no-op.

        The course is not required to exist, so references to a course
        that has already gone can still be cleaned up.
        """
        user = require_identity(identity)
        self.store.remove_from_set_field(STUDENTS, student_id, "courses", course_id)
        self.store.remove_from_set_field(COURSES, course_id, "students", student_id)
        logger.info("User %s unenrolled student %s from course %s", user.email, student_id, course_id)
        return self._reload_student(student_id)

    async def delete_student(self, identity: ResolvedIdentity, student_id: str) -> bool:
        """Delete a student after removing it from every course.

        Deleting an unknown id succeeds and returns ``True``.
        """
        user = require_identity(identity)
        pulled = self.store.pull_from_array_field(COURSES, "students", student_id)
        deleted = self.store.delete_by_id(STUDENTS, student_id)
        logger.info(
            "User %s deleted student %s (existed=%s, removed from %s courses)",
            user.email, student_id, deleted is not None, pulled,
        )
        return True

    async def delete_course(self, identity: ResolvedIdentity, course_id: str) -> bool:
        """Delete a course after removing it from every student.

        Deleting an unknown id succeeds and returns ``True``.
        """
        user = require_identity(identity)
        pulled = self.store.pull_from_array_field(STUDENTS, "courses", course_id)
        deleted = self.store.delete_by_id(COURSES, course_id)
        logger.info(
            "User %s deleted course %s (existed=%s, removed from %s students)",
            user.email, course_id, deleted is not None, pulled,
        )
        return True

    def _reload_student(self, student_id: str) -> StudentRead:
        record = self.store.find_by_id(STUDENTS, student_id)
        if record is None:
            raise NotFound(f"Student {student_id} not found")
        return StudentRead(**record)
