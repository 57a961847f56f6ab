import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from . import config

DB_PATH = config.DB_PATH


def configure(path: Union[str, Path]) -> None:
    """Point every helper in this module at another database file."""
    global DB_PATH
    DB_PATH = Path(path)


def get_connection() -> sqlite3.Connection:
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def init_db() -> None:
    conn = get_connection()
    cur = conn.cursor()

    cur.executescript(
        """
        CREATE TABLE IF NOT EXISTS students (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reg_number TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            password_hash TEXT NOT NULL,
            email TEXT,
            contact TEXT,
            age INTEGER,
            address TEXT,
            state TEXT,
            department TEXT NOT NULL DEFAULT 'Computer Science',
            course_of_study TEXT NOT NULL DEFAULT 'Computer Science',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS courses (
            code TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            units INTEGER NOT NULL CHECK (units > 0),
            type TEXT NOT NULL,
            level TEXT NOT NULL,
            semester TEXT NOT NULL
        );

        -- course_code is not a foreign key: unknown codes may be stored
        CREATE TABLE IF NOT EXISTS student_courses (
            student_id INTEGER NOT NULL,
            course_code TEXT NOT NULL,
            PRIMARY KEY (student_id, course_code),
            FOREIGN KEY (student_id) REFERENCES students(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS sessions (
            token TEXT PRIMARY KEY,
            student_id INTEGER NOT NULL,
            expires_at TEXT NOT NULL,
            FOREIGN KEY (student_id) REFERENCES students(id) ON DELETE CASCADE
        );

        CREATE INDEX IF NOT EXISTS idx_student_courses_student ON student_courses(student_id);
        CREATE INDEX IF NOT EXISTS idx_courses_level_semester ON courses(level, semester);
        CREATE INDEX IF NOT EXISTS idx_sessions_student ON sessions(student_id);
        """
    )

    conn.commit()
    conn.close()


def fetch_all(query: str, params: Iterable[Any] = ()) -> List[Dict[str, Any]]:
    conn = get_connection()
    cur = conn.cursor()
    cur.execute(query, tuple(params))
    rows = cur.fetchall()
    conn.close()
    return [dict(row) for row in rows]


def fetch_one(query: str, params: Iterable[Any] = ()) -> Optional[Dict[str, Any]]:
    conn = get_connection()
    cur = conn.cursor()
    cur.execute(query, tuple(params))
    row = cur.fetchone()
    conn.close()
    return dict(row) if row else None


def execute(query: str, params: Iterable[Any] = ()) -> int:
    """Execute a write query and return last row id if applicable."""
    conn = get_connection()
    cur = conn.cursor()
    cur.execute(query, tuple(params))
    conn.commit()
    lastrowid = cur.lastrowid
    conn.close()
    return lastrowid


def executemany(query: str, seq_of_params: Iterable[Iterable[Any]]) -> None:
    conn = get_connection()
    cur = conn.cursor()
    cur.executemany(query, [tuple(p) for p in seq_of_params])
    conn.commit()
    conn.close()


@contextmanager
def transaction() -> Iterator[sqlite3.Connection]:
    """Yield a connection holding the write lock until the block exits.

    ``BEGIN IMMEDIATE`` takes the reserved lock up front, so reads done
    inside the block cannot be invalidated by another writer before the
    block commits. Any exception rolls the whole block back.
    """
    conn = get_connection()
    conn.isolation_level = None
    try:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")
    finally:
        conn.close()
