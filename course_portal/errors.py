from typing import Iterable


class PortalError(Exception):
    """Base error; ``status_code`` is the HTTP status the API answers with."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message}


class StudentNotFound(PortalError):
    status_code = 404

    def __init__(self, reg_number: str) -> None:
        super().__init__("Student not found")
        self.reg_number = reg_number


class DuplicateStudent(PortalError):
    def __init__(self, reg_number: str) -> None:
        super().__init__("Registration number already exists")
        self.reg_number = reg_number


class InvalidCredentials(PortalError):
    status_code = 401

    def __init__(self) -> None:
        super().__init__("Invalid Registration Number or Password")


class NotAuthenticated(PortalError):
    status_code = 401

    def __init__(self) -> None:
        super().__init__("Not logged in")


class Forbidden(PortalError):
    status_code = 403


class UnitCapExceeded(PortalError):
    def __init__(self, level: str, semester: str, total: int, cap: int) -> None:
        super().__init__(
            f"Cannot register. Total units for {level} Level {semester} semester "
            f"({total}) exceeds {cap}."
        )
        self.level = level
        self.semester = semester
        self.total = total
        self.cap = cap

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "level": self.level,
            "semester": self.semester,
            "total": self.total,
        }


class UnknownCourses(PortalError):
    def __init__(self, codes: Iterable[str]) -> None:
        self.codes = sorted(codes)
        super().__init__(f"Unknown course codes: {', '.join(self.codes)}")

    def to_dict(self) -> dict:
        return {"message": self.message, "codes": self.codes}


class PersistenceFailure(PortalError):
    status_code = 500
