import pytest

from course_portal import students
from course_portal.app import create_app

PASSWORD = "Secret#123"
REG_NUMBER = "2020/123456"


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "DB_PATH": tmp_path / "portal.db",
            "LOG_LEVEL": "WARNING",
        }
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def student(app):
    return students.create_student("Ada Obi", REG_NUMBER, PASSWORD)


@pytest.fixture
def logged_in(client, student):
    resp = client.post("/login", json={"regNumber": REG_NUMBER, "password": PASSWORD})
    assert resp.status_code == 200
    return client
