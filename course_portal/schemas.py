"""Request bodies and query strings accepted by the HTTP API."""

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from . import config

REG_NUMBER_PATTERN = r"^\d{4}/\d{6}$"
PASSWORD_MIN_LENGTH = 8
SPECIAL_CHARS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")

# placeholder option values the catalog filter form submits for "any"
FILTER_PLACEHOLDERS = {"", "chooseLevel", "chooseSemester"}


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class SignupRequest(_Request):
    name: str = Field(min_length=1)
    reg_number: str = Field(alias="regNumber", pattern=REG_NUMBER_PATTERN)
    password: str

    @field_validator("password")
    @classmethod
    def password_policy(cls, value: str) -> str:
        missing = []
        if len(value) < PASSWORD_MIN_LENGTH:
            missing.append(f"at least {PASSWORD_MIN_LENGTH} characters")
        if not re.search(r"[A-Z]", value):
            missing.append("an uppercase letter")
        if not re.search(r"[a-z]", value):
            missing.append("a lowercase letter")
        if not re.search(r"[0-9]", value):
            missing.append("a number")
        if not SPECIAL_CHARS.search(value):
            missing.append("a special character")
        if missing:
            raise ValueError("Password must have " + ", ".join(missing))
        return value


class LoginRequest(_Request):
    reg_number: str = Field(alias="regNumber", pattern=REG_NUMBER_PATTERN)
    password: str = Field(min_length=1)


class ForgotPasswordRequest(_Request):
    reg_number: str = Field(alias="regNumber", pattern=REG_NUMBER_PATTERN)


class RegisterCoursesRequest(_Request):
    reg_number: Optional[str] = Field(default=None, alias="regNumber", pattern=REG_NUMBER_PATTERN)
    courses: List[str]

    @field_validator("courses")
    @classmethod
    def at_least_one_course(cls, value: List[str]) -> List[str]:
        codes = [code.strip().upper() for code in value if code and code.strip()]
        if not codes:
            raise ValueError("Please select at least one course")
        return codes


class ProfileUpdateRequest(_Request):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="forbid")

    reg_number: Optional[str] = Field(default=None, alias="regNumber", pattern=REG_NUMBER_PATTERN)
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    contact: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    address: Optional[str] = None
    state: Optional[str] = None
    department: Optional[str] = None
    course_of_study: Optional[str] = Field(default=None, alias="courseOfStudy")

    @field_validator("name", "department", "course_of_study", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    @field_validator("age", mode="before")
    @classmethod
    def blank_age(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def updates(self) -> Dict[str, Any]:
        """Fields the client actually sent, keyed by column name."""
        return self.model_dump(exclude_unset=True, exclude={"reg_number"})


class CourseQuery(_Request):
    level: Optional[str] = None
    semester: Optional[str] = None

    @field_validator("level", "semester", mode="before")
    @classmethod
    def placeholder_means_any(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip() in FILTER_PLACEHOLDERS:
            return None
        return value

    @field_validator("level", "semester")
    @classmethod
    def known_value(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        allowed = config.LEVELS if info.field_name == "level" else config.SEMESTERS
        if value is not None and value not in allowed:
            raise ValueError("must be one of " + ", ".join(allowed))
        return value


class RegisteredCoursesQuery(_Request):
    reg_number: Optional[str] = Field(default=None, alias="regNumber", pattern=REG_NUMBER_PATTERN)
