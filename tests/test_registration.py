import threading

import pytest

from course_portal import catalog, registration, students
from course_portal.catalog import SEED_COURSES
from course_portal.errors import StudentNotFound, UnitCapExceeded, UnknownCourses
from course_portal.models import Course

FIRST_100 = ["CSC101", "MTH101", "PHY101", "GST101"]
SECOND_100 = ["CSC102", "MTH102", "PHY102", "GST102"]

# extra 100-level first semester courses to reach the cap
EXTRA = [
    ("EXT101", "Extra Course I", 3, "Elective", "100", "first"),
    ("EXT103", "Extra Course II", 2, "Elective", "100", "first"),
    ("EXT105", "Extra Course III", 3, "Elective", "100", "first"),
]

CATALOG = {row[0]: Course(*row) for row in SEED_COURSES + EXTRA}


def lookup(codes):
    return [CATALOG[code] for code in codes if code in CATALOG]


def test_first_registration_accepts_all_codes():
    merged = registration.register(set(), FIRST_100, lookup)
    assert merged == set(FIRST_100)
    assert registration.bucket_totals(lookup(merged)) == {("100", "first"): 11}


def test_second_submission_adds_to_same_bucket():
    merged = registration.register(set(FIRST_100), ["CHM101", "BIO101"], lookup)
    assert merged == set(FIRST_100) | {"CHM101", "BIO101"}
    assert registration.bucket_totals(lookup(merged)) == {("100", "first"): 17}


def test_buckets_are_capped_independently():
    existing = set(FIRST_100) | {"CHM101", "BIO101"}
    merged = registration.register(existing, SECOND_100, lookup)
    assert registration.bucket_totals(lookup(merged)) == {
        ("100", "first"): 17,
        ("100", "second"): 11,
    }


def test_bucket_over_cap_is_rejected_without_merging():
    existing = set(FIRST_100) | {"CHM101", "BIO101", "EXT101", "EXT103"}
    assert sum(c.units for c in lookup(existing)) == 22
    snapshot = set(existing)

    with pytest.raises(UnitCapExceeded) as excinfo:
        registration.register(existing, ["EXT105"], lookup)

    exc = excinfo.value
    assert (exc.level, exc.semester, exc.total) == ("100", "first", 25)
    assert "exceeds 24" in exc.message
    assert existing == snapshot


def test_exactly_at_cap_is_allowed():
    existing = set(FIRST_100) | {"CHM101", "BIO101", "EXT101"}
    merged = registration.register(existing, ["EXT103", "EXT105"], lookup, cap=25)
    assert registration.bucket_totals(lookup(merged))[("100", "first")] == 25


def test_resubmitting_registered_codes_is_a_noop():
    existing = set(FIRST_100) | {"CHM101", "BIO101", "EXT101", "EXT103"}
    merged = registration.register(existing, ["CSC101", "CSC101", "EXT103"], lookup)
    assert merged == existing


def test_merge_is_idempotent():
    existing = {"CSC201"}
    submitted = ["CSC101", "XYZ999", "CSC101"]
    once = registration.register(existing, submitted, lookup)
    twice = registration.register(once, submitted, lookup)
    assert once == twice
    assert existing <= once
    assert {"CSC101"} <= once


def test_unknown_codes_are_ignored_by_default():
    merged = registration.register(set(), ["CSC101", "XYZ999"], lookup, unknown_policy="ignore")
    assert merged == {"CSC101", "XYZ999"}


def test_unknown_codes_rejected_under_reject_policy():
    with pytest.raises(UnknownCourses) as excinfo:
        registration.register(set(), ["CSC101", "XYZ999"], lookup, unknown_policy="reject")
    assert excinfo.value.codes == ["XYZ999"]


def test_first_failing_bucket_is_reported():
    big = {
        "A1": Course("A1", "A", 25, "Elective", "300", "first"),
        "B1": Course("B1", "B", 30, "Elective", "200", "second"),
    }

    with pytest.raises(UnitCapExceeded) as excinfo:
        registration.register(set(), ["A1", "B1"], lambda codes: [big[c] for c in codes])
    assert (excinfo.value.level, excinfo.value.semester) == ("200", "second")


def test_registration_summary_groups_by_bucket():
    summary = registration.registration_summary(FIRST_100 + ["CSC102", "NOPE1"], lookup)
    assert [c["code"] for c in summary["courses"]] == [
        "CSC101",
        "GST101",
        "MTH101",
        "PHY101",
        "CSC102",
    ]
    assert summary["buckets"] == [
        {"level": "100", "semester": "first", "units": 11},
        {"level": "100", "semester": "second", "units": 3},
    ]
    assert summary["totalUnits"] == 14
    assert summary["unknownCodes"] == ["NOPE1"]


# --- persisted registration ---


def test_register_courses_persists_merged_set(student):
    updated = registration.register_courses(student.reg_number, FIRST_100)
    assert updated.registered_courses == set(FIRST_100)

    updated = registration.register_courses(student.reg_number, ["CHM101", "CSC101"])
    assert updated.registered_courses == set(FIRST_100) | {"CHM101"}
    assert students.get_student(student.reg_number).registered_courses == updated.registered_courses


def test_register_courses_leaves_store_unchanged_on_cap_failure(student):
    catalog.seed_courses(EXTRA)
    registration.register_courses(student.reg_number, FIRST_100 + ["CHM101", "BIO101", "EXT101", "EXT103"])
    before = students.get_student(student.reg_number).registered_courses

    with pytest.raises(UnitCapExceeded):
        registration.register_courses(student.reg_number, ["EXT105", "CSC102"])

    assert students.get_student(student.reg_number).registered_courses == before


def test_register_courses_unknown_student(app):
    with pytest.raises(StudentNotFound):
        registration.register_courses("2021/000001", ["CSC101"])


def test_concurrent_registrations_cannot_both_pass_the_cap(student):
    catalog.seed_courses(EXTRA)
    registration.register_courses(student.reg_number, FIRST_100 + ["CHM101", "BIO101", "EXT103"])

    barrier = threading.Barrier(2)
    outcomes = []

    def submit(code):
        barrier.wait()
        try:
            registration.register_courses(student.reg_number, [code])
            outcomes.append("ok")
        except UnitCapExceeded:
            outcomes.append("capped")

    threads = [threading.Thread(target=submit, args=(code,)) for code in ("EXT101", "EXT105")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["capped", "ok"]
    stored = students.get_student(student.reg_number).registered_courses
    assert len(stored & {"EXT101", "EXT105"}) == 1
    assert registration.bucket_totals(catalog.find(stored)) == {("100", "first"): 22}
