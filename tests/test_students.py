import pytest

from course_portal import db, students
from course_portal.errors import DuplicateStudent, InvalidCredentials, StudentNotFound

from conftest import PASSWORD, REG_NUMBER


def test_create_student_defaults(student):
    assert student.reg_number == REG_NUMBER
    assert student.department == "Computer Science"
    assert student.course_of_study == "Computer Science"
    assert student.registered_courses == set()
    assert "password" not in student.to_dict()


def test_password_is_hashed(student):
    row = db.fetch_one("SELECT password_hash FROM students WHERE id = ?", (student.id,))
    assert row["password_hash"] != PASSWORD


def test_duplicate_reg_number(student):
    with pytest.raises(DuplicateStudent):
        students.create_student("Someone Else", REG_NUMBER, PASSWORD)


def test_authenticate(student):
    assert students.authenticate(REG_NUMBER, PASSWORD).id == student.id
    with pytest.raises(InvalidCredentials):
        students.authenticate(REG_NUMBER, "Wrong#123")
    with pytest.raises(InvalidCredentials):
        students.authenticate("1999/000000", PASSWORD)


def test_update_profile_only_touches_profile_fields(student):
    updated = students.update_profile(
        REG_NUMBER,
        {"email": "ada@example.com", "age": 21, "reg_number": "2000/000000", "password_hash": "x"},
    )
    assert updated.email == "ada@example.com"
    assert updated.age == 21
    assert updated.reg_number == REG_NUMBER
    assert students.authenticate(REG_NUMBER, PASSWORD)


def test_update_profile_unknown_student(app):
    with pytest.raises(StudentNotFound):
        students.update_profile("2000/000000", {"email": "x@example.com"})


def test_password_reset_requires_known_student(student):
    students.request_password_reset(REG_NUMBER)
    with pytest.raises(StudentNotFound):
        students.request_password_reset("2000/000000")
