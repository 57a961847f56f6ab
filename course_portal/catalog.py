import logging
from typing import Iterable, List, Optional

from . import db
from .models import Course

logger = logging.getLogger(__name__)

# (code, title, units, type, level, semester)
SEED_COURSES = [
    # 100 Level
    ("CSC101", "Introduction to Computer Science", 3, "Compulsory", "100", "first"),
    ("MTH101", "General Mathematics I", 3, "Compulsory", "100", "first"),
    ("PHY101", "General Physics I", 3, "Compulsory", "100", "first"),
    ("GST101", "Use of English", 2, "Compulsory", "100", "first"),
    ("CHM101", "General Chemistry I", 3, "Elective", "100", "first"),
    ("BIO101", "General Biology I", 3, "Elective", "100", "first"),
    ("CSC102", "Introduction to Programming", 3, "Compulsory", "100", "second"),
    ("MTH102", "General Mathematics II", 3, "Compulsory", "100", "second"),
    ("PHY102", "General Physics II", 3, "Compulsory", "100", "second"),
    ("GST102", "Philosophy and Logic", 2, "Compulsory", "100", "second"),
    # 200 Level
    ("CSC201", "Data Structures", 3, "Compulsory", "200", "first"),
    ("CSC203", "Digital Design", 3, "Compulsory", "200", "first"),
    ("MTH201", "Mathematical Methods", 3, "Compulsory", "200", "first"),
    ("STA201", "Statistics for Physical Sciences", 2, "Compulsory", "200", "first"),
    ("GST201", "Nigerian Peoples and Culture", 2, "Compulsory", "200", "first"),
    ("CSC202", "Operating Systems I", 3, "Compulsory", "200", "second"),
    ("CSC204", "Algorithms", 3, "Compulsory", "200", "second"),
    ("GST202", "Entrepreneurship", 2, "Compulsory", "200", "second"),
    ("CSC206", "Assembly Language", 3, "Compulsory", "200", "second"),
    # 300 Level
    ("CSC301", "Database Management", 3, "Compulsory", "300", "first"),
    ("CSC303", "Object Oriented Programming", 3, "Compulsory", "300", "first"),
    ("CSC305", "Operating Systems II", 3, "Compulsory", "300", "first"),
    ("CSC307", "Systems Analysis and Design", 3, "Compulsory", "300", "first"),
    ("CSC311", "Operations Research", 3, "Elective", "300", "first"),
    ("CSC302", "Survey of Programming Languages", 3, "Compulsory", "300", "second"),
    ("CSC304", "Automata Theory", 3, "Compulsory", "300", "second"),
    ("CSC310", "Numerical Methods", 3, "Compulsory", "300", "second"),
    ("CSC399", "Industrial Training (SIWES)", 6, "Compulsory", "300", "second"),
    # 400 Level
    ("CSC401", "Software Engineering", 3, "Compulsory", "400", "first"),
    ("CSC403", "Computer Graphics", 3, "Compulsory", "400", "first"),
    ("CSC405", "Artificial Intelligence", 3, "Compulsory", "400", "first"),
    ("CSC407", "Compiler Construction", 3, "Compulsory", "400", "first"),
    ("CSC402", "Computer Networks", 3, "Compulsory", "400", "second"),
    ("CSC404", "Human Computer Interaction", 2, "Elective", "400", "second"),
    ("CSC499", "Final Year Project", 6, "Compulsory", "400", "second"),
]

UPSERT_COURSE = """
    INSERT INTO courses (code, title, units, type, level, semester)
    VALUES (?, ?, ?, ?, ?, ?)
    ON CONFLICT(code) DO UPDATE SET
        title = excluded.title,
        units = excluded.units,
        type = excluded.type,
        level = excluded.level,
        semester = excluded.semester
"""


def seed_courses(courses: Iterable[tuple] = SEED_COURSES) -> None:
    """Upsert reference courses by code; safe to run on every startup."""
    courses = list(courses)
    db.executemany(UPSERT_COURSE, courses)
    logger.info("Catalog seeded/updated with %d courses", len(courses))


def _to_course(row) -> Course:
    return Course(
        code=row["code"],
        title=row["title"],
        units=row["units"],
        type=row["type"],
        level=row["level"],
        semester=row["semester"],
    )


def find(codes: Iterable[str], conn=None) -> List[Course]:
    """Return the catalog courses matching ``codes``; unknown codes are absent.

    When ``conn`` is given the lookup runs on it, so it sees the same
    transaction as the caller.
    """
    codes = sorted(set(codes))
    if not codes:
        return []

    query = "SELECT code, title, units, type, level, semester FROM courses WHERE code IN (%s)" % ",".join(
        ["?"] * len(codes)
    )
    if conn is None:
        rows = db.fetch_all(query, codes)
    else:
        rows = conn.execute(query, codes).fetchall()
    return [_to_course(row) for row in rows]


def list_courses(level: Optional[str] = None, semester: Optional[str] = None) -> List[Course]:
    clauses = []
    params = []
    if level:
        clauses.append("level = ?")
        params.append(level)
    if semester:
        clauses.append("semester = ?")
        params.append(semester)

    query = "SELECT code, title, units, type, level, semester FROM courses"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY level, semester, code"

    return [_to_course(row) for row in db.fetch_all(query, params)]
