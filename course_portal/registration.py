import logging
import sqlite3
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from . import catalog, config, db, students
from .errors import PersistenceFailure, StudentNotFound, UnitCapExceeded, UnknownCourses
from .models import Course, Student

logger = logging.getLogger(__name__)

Bucket = Tuple[str, str]
CourseLookup = Callable[[Iterable[str]], List[Course]]


def merge(existing: Iterable[str], submitted: Iterable[str]) -> Set[str]:
    """Union of registered and submitted codes; duplicates collapse."""
    return set(existing) | set(submitted)


def bucket_totals(courses: Iterable[Course]) -> Dict[Bucket, int]:
    """Sum units per (level, semester)."""
    totals: Dict[Bucket, int] = defaultdict(int)
    for course in courses:
        totals[course.bucket] += course.units
    return dict(totals)


def register(
    existing: Iterable[str],
    submitted: Iterable[str],
    lookup: CourseLookup,
    cap: Optional[int] = None,
    unknown_policy: Optional[str] = None,
) -> Set[str]:
    """Validate and merge a submission into a student's registered codes.

    Returns the merged code set. Raises ``UnitCapExceeded`` for the first
    (level, semester) bucket whose total goes over ``cap``; nothing is
    merged in that case. Codes missing from the catalog are left out of
    the accounting, or raise ``UnknownCourses`` under the "reject" policy.
    """
    cap = config.UNIT_CAP if cap is None else cap
    unknown_policy = unknown_policy or config.UNKNOWN_COURSE_POLICY

    submitted = set(submitted)
    merged = merge(existing, submitted)
    courses = lookup(merged)

    if unknown_policy == "reject":
        known = {course.code for course in courses}
        unknown = submitted - known
        if unknown:
            raise UnknownCourses(unknown)

    totals = bucket_totals(courses)
    for (level, semester), total in sorted(totals.items()):
        if total > cap:
            raise UnitCapExceeded(level, semester, total, cap)

    return merged


def registration_summary(codes: Iterable[str], lookup: CourseLookup) -> Dict[str, Any]:
    """Course details and per-bucket totals for a set of registered codes."""
    codes = set(codes)
    courses = sorted(lookup(codes), key=lambda c: (c.level, c.semester, c.code))
    totals = bucket_totals(courses)

    return {
        "courses": [course.to_dict() for course in courses],
        "buckets": [
            {"level": level, "semester": semester, "units": units}
            for (level, semester), units in sorted(totals.items())
        ],
        "totalUnits": sum(totals.values()),
        "unknownCodes": sorted(codes - {course.code for course in courses}),
    }


def register_courses(
    reg_number: str,
    codes: Iterable[str],
    cap: Optional[int] = None,
    unknown_policy: Optional[str] = None,
) -> Student:
    """Read, merge, validate and write a student's courses in one transaction."""
    codes = list(codes)
    try:
        with db.transaction() as conn:
            row = conn.execute(
                "SELECT id FROM students WHERE reg_number = ?", (reg_number,)
            ).fetchone()
            if row is None:
                raise StudentNotFound(reg_number)
            student_id = row["id"]

            existing = {
                r["course_code"]
                for r in conn.execute(
                    "SELECT course_code FROM student_courses WHERE student_id = ?",
                    (student_id,),
                )
            }

            try:
                merged = register(
                    existing,
                    codes,
                    lambda wanted: catalog.find(wanted, conn=conn),
                    cap=cap,
                    unknown_policy=unknown_policy,
                )
            except UnitCapExceeded as exc:
                logger.warning(
                    "Registration rejected for %s: %s/%s total %d",
                    reg_number,
                    exc.level,
                    exc.semester,
                    exc.total,
                )
                raise

            added = sorted(merged - existing)
            conn.executemany(
                "INSERT OR IGNORE INTO student_courses (student_id, course_code) VALUES (?, ?)",
                [(student_id, code) for code in added],
            )
    except sqlite3.Error as exc:
        logger.exception("Could not register courses for %s", reg_number)
        raise PersistenceFailure("Error registering courses") from exc

    logger.info("Registered %d new course(s) for %s", len(added), reg_number)
    return students.get_student(reg_number)
