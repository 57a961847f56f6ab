from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set


@dataclass(frozen=True)
class Course:
    code: str
    title: str
    units: int
    type: str
    level: str
    semester: str

    @property
    def bucket(self) -> tuple:
        return (self.level, self.semester)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "title": self.title,
            "units": self.units,
            "type": self.type,
            "level": self.level,
            "semester": self.semester,
        }


@dataclass
class Student:
    id: int
    reg_number: str
    name: str
    email: Optional[str] = None
    contact: Optional[str] = None
    age: Optional[int] = None
    address: Optional[str] = None
    state: Optional[str] = None
    department: str = "Computer Science"
    course_of_study: str = "Computer Science"
    registered_courses: Set[str] = field(default_factory=set)

    @classmethod
    def from_row(cls, row: Dict[str, Any], registered_courses: Set[str]) -> "Student":
        return cls(
            id=row["id"],
            reg_number=row["reg_number"],
            name=row["name"],
            email=row["email"],
            contact=row["contact"],
            age=row["age"],
            address=row["address"],
            state=row["state"],
            department=row["department"],
            course_of_study=row["course_of_study"],
            registered_courses=set(registered_courses),
        )

    def to_dict(self) -> Dict[str, Any]:
        # password hash is never part of the public representation
        return {
            "name": self.name,
            "regNumber": self.reg_number,
            "email": self.email,
            "contact": self.contact,
            "age": self.age,
            "address": self.address,
            "state": self.state,
            "department": self.department,
            "courseOfStudy": self.course_of_study,
            "registeredCourses": sorted(self.registered_courses),
        }
