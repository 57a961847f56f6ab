from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from . import catalog, config, db, registration, sessions, students
from .errors import Forbidden, NotAuthenticated, PortalError
from .schemas import (
    CourseQuery,
    ForgotPasswordRequest,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterCoursesRequest,
    RegisteredCoursesQuery,
    SignupRequest,
)

logger = logging.getLogger(__name__)


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=config.SECRET_KEY,
        DB_PATH=config.DB_PATH,
        UNIT_CAP=config.UNIT_CAP,
        UNKNOWN_COURSE_POLICY=config.UNKNOWN_COURSE_POLICY,
        SESSION_TTL_HOURS=config.SESSION_TTL_HOURS,
        LOG_LEVEL=config.LOG_LEVEL,
    )
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(level=app.config["LOG_LEVEL"], format=config.LOG_FORMAT)
    CORS(app, supports_credentials=True)

    # Ensure schema and catalog exist
    db.configure(app.config["DB_PATH"])
    db.init_db()
    catalog.seed_courses()

    def body() -> Dict[str, Any]:
        return request.get_json(force=True, silent=True) or {}

    def acting_reg_number(requested: Optional[str]) -> str:
        """Registration number a request acts on, checked against the session."""
        current = g.current_student
        if requested is None:
            if current is None:
                raise NotAuthenticated()
            return current.reg_number
        if current is not None and current.reg_number != requested:
            raise Forbidden("Cannot act on behalf of another student")
        return requested

    # --- Request context ---

    @app.before_request
    def load_current_student() -> None:
        token = request.cookies.get(config.SESSION_COOKIE)
        auth = request.headers.get("Authorization", "")
        if not token and auth.startswith("Bearer "):
            token = auth[len("Bearer "):].strip()

        g.session_token = token
        g.current_student = None
        student_id = sessions.resolve(token)
        if student_id is not None:
            g.current_student = students.get_student_by_id(student_id)

    # --- Errors ---

    @app.errorhandler(PortalError)
    def handle_portal_error(exc: PortalError) -> Any:
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError) -> Any:
        errors = [
            {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
            for error in exc.errors()
        ]
        first = errors[0]
        field = ".".join(str(part) for part in first["loc"])
        message = f"{field}: {first['msg']}" if field else first["msg"]
        return jsonify({"message": message, "errors": errors}), 400

    @app.get("/api/health")
    def health() -> Any:
        return {"status": "ok"}

    # --- Accounts ---

    @app.post("/signup")
    def signup() -> Any:
        data = SignupRequest.model_validate(body())
        students.create_student(data.name, data.reg_number, data.password)
        return jsonify({"message": "User created successfully"}), 201

    @app.post("/login")
    def login() -> Any:
        data = LoginRequest.model_validate(body())
        student = students.authenticate(data.reg_number, data.password)

        ttl_hours = app.config["SESSION_TTL_HOURS"]
        token = sessions.create_session(student.id, ttl_hours=ttl_hours)
        logger.info("Student %s logged in", student.reg_number)

        response = jsonify({"student": student.to_dict(), "token": token})
        response.set_cookie(
            config.SESSION_COOKIE,
            token,
            max_age=ttl_hours * 3600,
            httponly=True,
            samesite="Lax",
        )
        return response

    @app.get("/check-session")
    def check_session() -> Any:
        if g.current_student is None:
            raise NotAuthenticated()
        return jsonify({"student": g.current_student.to_dict()})

    @app.post("/logout")
    def logout() -> Any:
        sessions.destroy(g.session_token)
        response = jsonify({"message": "Logged out"})
        response.delete_cookie(config.SESSION_COOKIE)
        return response

    @app.post("/forgot-password")
    def forgot_password() -> Any:
        data = ForgotPasswordRequest.model_validate(body())
        students.request_password_reset(data.reg_number)
        return jsonify({"message": "Reset link sent"})

    @app.put("/update-profile")
    def update_profile() -> Any:
        data = ProfileUpdateRequest.model_validate(body())
        reg_number = acting_reg_number(data.reg_number)
        student = students.update_profile(reg_number, data.updates())
        return jsonify({"student": student.to_dict()})

    # --- Catalog & registration ---

    @app.get("/courses")
    def get_courses() -> Any:
        query = CourseQuery.model_validate(request.args.to_dict())
        courses = catalog.list_courses(level=query.level, semester=query.semester)
        return jsonify([course.to_dict() for course in courses])

    @app.post("/register-courses")
    def register_courses() -> Any:
        data = RegisterCoursesRequest.model_validate(body())
        reg_number = acting_reg_number(data.reg_number)
        student = registration.register_courses(
            reg_number,
            data.courses,
            cap=app.config["UNIT_CAP"],
            unknown_policy=app.config["UNKNOWN_COURSE_POLICY"],
        )
        return jsonify(
            {"message": "Courses registered successfully", "student": student.to_dict()}
        )

    @app.get("/registered-courses")
    def registered_courses() -> Any:
        query = RegisteredCoursesQuery.model_validate(request.args.to_dict())
        student = students.get_student(acting_reg_number(query.reg_number))
        summary = registration.registration_summary(student.registered_courses, catalog.find)
        return jsonify({"regNumber": student.reg_number, **summary})

    return app


if __name__ == "__main__":  # pragma: no cover
    create_app().run(debug=True)
