"""
Database module for the persisted project state.

This module provides SQLite database initialization, connection management,
and schema creation for the relational store that backs project files and
command execution records.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from . import config

logger = logging.getLogger(__name__)


def get_database_path() -> Path:
    """
    Get the path to the collabide database file.

    Returns:
        Path object pointing to ~/.collabide/collabide.db
    """
    config.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return config.DATA_DIR / "collabide.db"


@contextmanager
def get_connection():
    """
    Context manager for database connections.

    Yields:
        sqlite3.Connection: Database connection with row factory enabled

    Example:
        >>> with get_connection() as conn:
        ...     cursor = conn.cursor()
        ...     cursor.execute("SELECT * FROM files")
    """
    db_path = get_database_path()
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def initialize_database() -> None:
    """
    Initialize the database schema.

    Creates all required tables if they don't exist:
    - users: participants that own execution records
    - projects: project metadata
    - files: the authoritative copy of every project file
    - executions: immutable audit rows, one per command run

    Project references on files and executions are plain columns rather than
    foreign keys: the core only uses the store as a persistence sink and must
    accept files for projects the surrounding CRUD layer created elsewhere.

    This function is idempotent and safe to call multiple times.
    """
    db_path = get_database_path()
    logger.info(f"Initializing database at {db_path}")

    with get_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                email TEXT,
                name TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS projects (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                owner_id TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS files (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id TEXT NOT NULL,
                name TEXT NOT NULL,
                path TEXT NOT NULL,
                content TEXT NOT NULL DEFAULT '',
                language TEXT NOT NULL DEFAULT 'text',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (project_id, name)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS executions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id TEXT NOT NULL,
                user_id TEXT,
                command TEXT NOT NULL,
                output TEXT,
                error TEXT,
                exit_code INTEGER NOT NULL,
                status TEXT NOT NULL CHECK(status IN ('completed', 'failed')),
                duration_ms INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_files_project
            ON files(project_id)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_executions_project
            ON executions(project_id, created_at)
        """)

        conn.commit()

    logger.info("Database schema initialized successfully")


__all__ = ["get_connection", "get_database_path", "initialize_database"]
