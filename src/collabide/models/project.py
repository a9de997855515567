"""
Project and user models for the relational store.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..database import get_connection

logger = logging.getLogger(__name__)


@dataclass
class User:
    """
    A participant that owns execution records.

    Attributes:
        id: User identifier
        name: Display name
        email: Optional email address
    """

    id: str
    name: Optional[str] = None
    email: Optional[str] = None

    @staticmethod
    def get_by_id(user_id: str) -> Optional['User']:
        """Retrieve a user by ID, or None."""
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT id, name, email FROM users WHERE id = ?", (user_id,))
            row = cursor.fetchone()
        if row:
            return User(id=row['id'], name=row['name'], email=row['email'])
        return None

    @staticmethod
    def ensure(user_id: str, name: Optional[str] = None) -> 'User':
        """
        Return the user with ``user_id``, creating a placeholder row if missing.

        Args:
            user_id: User identifier
            name: Display name used only when the row is created

        Returns:
            User instance
        """
        existing = User.get_by_id(user_id)
        if existing:
            return existing

        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT OR IGNORE INTO users (id, email, name) VALUES (?, ?, ?)",
                (user_id, f"{user_id}@temp.com", name or user_id),
            )
            conn.commit()

        logger.info(f"Created placeholder user {user_id}")
        return User(id=user_id, name=name or user_id, email=f"{user_id}@temp.com")


@dataclass
class Project:
    """
    Represents a project.

    Attributes:
        id: Unique project identifier
        name: Project name
        description: Optional project description
        owner_id: Optional owning user
        created_at: Timestamp of creation
        updated_at: Timestamp of last update
    """

    id: str
    name: str
    description: Optional[str] = None
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @staticmethod
    def create(
        name: str,
        description: Optional[str] = None,
        owner_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> 'Project':
        """
        Create a new project in the database.

        Args:
            name: Project name (required)
            description: Optional project description
            owner_id: Optional owning user
            project_id: Explicit identifier; a random one is generated otherwise

        Returns:
            Project instance

        Raises:
            ValueError: If name is empty
            sqlite3.Error: If database operation fails
        """
        if not name or not name.strip():
            raise ValueError("Project name is required")

        identifier = project_id or uuid.uuid4().hex
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO projects (id, name, description, owner_id)
                VALUES (?, ?, ?, ?)
            """, (identifier, name.strip(), description, owner_id))
            conn.commit()

        logger.info(f"Created project: {name} (ID: {identifier})")
        return Project.get_by_id(identifier)

    @staticmethod
    def get_by_id(project_id: str) -> Optional['Project']:
        """
        Retrieve a project by ID.

        Returns:
            Project instance if found, None otherwise
        """
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT id, name, description, owner_id, created_at, updated_at
                FROM projects
                WHERE id = ?
            """, (project_id,))
            row = cursor.fetchone()

        if row:
            return Project._from_row(row)
        return None

    @staticmethod
    def _from_row(row: Any) -> 'Project':
        """Create a Project instance from a sqlite3.Row."""
        return Project(
            id=row['id'],
            name=row['name'],
            description=row['description'],
            owner_id=row['owner_id'],
            created_at=datetime.fromisoformat(row['created_at']) if row['created_at'] else None,
            updated_at=datetime.fromisoformat(row['updated_at']) if row['updated_at'] else None,
        )
