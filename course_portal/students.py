import logging
import sqlite3
from typing import Any, Dict

from werkzeug.security import check_password_hash, generate_password_hash

from . import db
from .errors import DuplicateStudent, InvalidCredentials, PersistenceFailure, StudentNotFound
from .models import Student

logger = logging.getLogger(__name__)

# columns update_profile is allowed to touch
PROFILE_COLUMNS = (
    "name",
    "email",
    "contact",
    "age",
    "address",
    "state",
    "department",
    "course_of_study",
)

STUDENT_COLUMNS = (
    "id, reg_number, name, email, contact, age, address, state, department, course_of_study"
)


def _load(row: Dict[str, Any]) -> Student:
    codes = db.fetch_all(
        "SELECT course_code FROM student_courses WHERE student_id = ?", (row["id"],)
    )
    return Student.from_row(row, {r["course_code"] for r in codes})


def get_student(reg_number: str) -> Student:
    row = db.fetch_one(
        f"SELECT {STUDENT_COLUMNS} FROM students WHERE reg_number = ?", (reg_number,)
    )
    if row is None:
        raise StudentNotFound(reg_number)
    return _load(row)


def get_student_by_id(student_id: int) -> Student:
    row = db.fetch_one(f"SELECT {STUDENT_COLUMNS} FROM students WHERE id = ?", (student_id,))
    if row is None:
        raise StudentNotFound(str(student_id))
    return _load(row)


def create_student(name: str, reg_number: str, password: str) -> Student:
    existing = db.fetch_one("SELECT id FROM students WHERE reg_number = ?", (reg_number,))
    if existing:
        raise DuplicateStudent(reg_number)

    try:
        db.execute(
            "INSERT INTO students (name, reg_number, password_hash) VALUES (?, ?, ?)",
            (name, reg_number, generate_password_hash(password)),
        )
    except sqlite3.IntegrityError as exc:
        # lost a race against another signup for the same number
        raise DuplicateStudent(reg_number) from exc
    except sqlite3.Error as exc:
        logger.exception("Could not create student %s", reg_number)
        raise PersistenceFailure("Error creating user") from exc

    logger.info("Created student %s", reg_number)
    return get_student(reg_number)


def authenticate(reg_number: str, password: str) -> Student:
    row = db.fetch_one(
        "SELECT password_hash FROM students WHERE reg_number = ?", (reg_number,)
    )
    if row is None or not check_password_hash(row["password_hash"], password):
        logger.info("Failed login for %s", reg_number)
        raise InvalidCredentials()
    return get_student(reg_number)


def update_profile(reg_number: str, updates: Dict[str, Any]) -> Student:
    """Apply profile field changes; other keys are ignored."""
    changes = {k: v for k, v in updates.items() if k in PROFILE_COLUMNS}
    student = get_student(reg_number)
    if not changes:
        return student

    assignments = ", ".join(f"{column} = ?" for column in changes)
    try:
        db.execute(
            f"UPDATE students SET {assignments} WHERE id = ?",
            (*changes.values(), student.id),
        )
    except sqlite3.Error as exc:
        logger.exception("Could not update profile for %s", reg_number)
        raise PersistenceFailure("Error updating profile") from exc

    logger.info("Updated profile fields %s for %s", sorted(changes), reg_number)
    return get_student(reg_number)


def request_password_reset(reg_number: str) -> None:
    # No mail is sent; the request is only recorded.
    get_student(reg_number)
    logger.info("Password reset requested for: %s", reg_number)
