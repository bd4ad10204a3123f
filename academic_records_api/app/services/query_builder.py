"""
Translate list filters and options into store queries.

``build_student_query`` and ``build_course_query`` are the only places
that know how a filter field maps onto a store condition.  Pagination
is bounded here so that no client can request an unbounded result set.
"""

import logging
from typing import List, Optional

from ..core.store import (
    ASCENDING,
    CONTAINS,
    DESCENDING,
    EQ,
    GTE,
    LTE,
    PREFIX,
    Condition,
    StoreQuery,
)
from ..schemas.course import CourseFilter
from ..schemas.listing import ListOptions
from ..schemas.student import StudentFilter

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 50

STUDENT_SORT_FIELDS = frozenset({"id", "name", "email", "age", "major"})
COURSE_SORT_FIELDS = frozenset({"id", "title", "code", "credits", "instructor"})


def _text(conditions: List[Condition], field: str, op: str, value: Optional[str]) -> None:
    # Empty strings count as "not supplied".
    if value:
        conditions.append(Condition(field, op, value))


def _range(
    conditions: List[Condition], field: str, lower: Optional[int], upper: Optional[int]
) -> None:
    if lower is not None:
        conditions.append(Condition(field, GTE, lower))
    if upper is not None:
        conditions.append(Condition(field, LTE, upper))


def _paginate(
    query: StoreQuery, options: Optional[ListOptions], sortable: frozenset
) -> StoreQuery:
    options = options or ListOptions()
    limit = options.limit if options.limit and options.limit > 0 else DEFAULT_LIMIT
    query.limit = min(limit, MAX_LIMIT)
    query.skip = max(options.offset or 0, 0)
    if options.sort_by:
        if options.sort_by in sortable:
            direction = DESCENDING if options.sort_order == "DESC" else ASCENDING
            query.sort = (options.sort_by, direction)
        else:
            logger.debug("Ignoring unknown sort field %r", options.sort_by)
    return query


def build_student_query(
    filter: Optional[StudentFilter] = None, options: Optional[ListOptions] = None
) -> StoreQuery:
    """Build the store query for ``getAllStudents``."""
    filter = filter or StudentFilter()
    conditions: List[Condition] = []
    _text(conditions, "major", EQ, filter.major)
    _text(conditions, "name", CONTAINS, filter.name_contains)
    _range(conditions, "age", filter.min_age, filter.max_age)
    return _paginate(StoreQuery(conditions=conditions), options, STUDENT_SORT_FIELDS)


def build_course_query(
    filter: Optional[CourseFilter] = None, options: Optional[ListOptions] = None
) -> StoreQuery:
    """Build the store query for ``getAllCourses``."""
    filter = filter or CourseFilter()
    conditions: List[Condition] = []
    _text(conditions, "instructor", EQ, filter.instructor)
    _text(conditions, "title", CONTAINS, filter.title_contains)
    _text(conditions, "code", PREFIX, filter.code_prefix)
    _range(conditions, "credits", filter.min_credits, filter.max_credits)
    return _paginate(StoreQuery(conditions=conditions), options, COURSE_SORT_FIELDS)
