"""
File model for project files and their persisted form.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from ..database import get_connection

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "text"


def language_for(name: str) -> str:
    """
    Derive a file's language label from its extension.

    The label is the text after the last dot; names without a dot (or with a
    trailing dot) fall back to ``"text"``.
    """
    _, dot, extension = name.rpartition(".")
    if not dot or not extension:
        return DEFAULT_LANGUAGE
    return extension


@dataclass
class FileRecord:
    """
    Represents one project file.

    The same record shape is used for the in-memory working list, the
    persisted row and the client payload; the filesystem mirror only stores
    ``content`` under ``name``.

    Attributes:
        name: File name, unique within a project
        content: Full file contents
        language: Language label derived from the extension
        path: Client-facing path (``/`` + name)
        id: Row identifier once persisted
        project_id: Owning project once persisted
        created_at: Timestamp of creation
        updated_at: Timestamp of last update
    """

    name: str
    content: str = ""
    language: str = DEFAULT_LANGUAGE
    path: str = ""
    id: Optional[int] = None
    project_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.path:
            self.path = f"/{self.name}"

    @classmethod
    def new(cls, name: str, content: str) -> 'FileRecord':
        """Build an unsaved record with language and path derived from ``name``."""
        return cls(name=name, content=content, language=language_for(name), path=f"/{name}")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> 'FileRecord':
        """
        Build a record from the client JSON form.

        Args:
            payload: Mapping with ``name`` and optional ``content``/``language``/``path``

        Returns:
            FileRecord instance
        """
        name = str(payload["name"])
        return cls(
            name=name,
            content=str(payload.get("content") or ""),
            language=str(payload.get("language") or language_for(name)),
            path=str(payload.get("path") or f"/{name}"),
        )

    def copy(self) -> 'FileRecord':
        """Return a detached copy so callers' snapshots are never mutated."""
        return FileRecord(
            name=self.name,
            content=self.content,
            language=self.language,
            path=self.path,
            id=self.id,
            project_id=self.project_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @staticmethod
    def upsert(project_id: str, record: 'FileRecord') -> 'FileRecord':
        """
        Insert or replace the persisted copy of a file.

        Args:
            project_id: Owning project
            record: File to store

        Returns:
            The stored FileRecord (with id and timestamps)

        Raises:
            sqlite3.Error: If database operation fails
        """
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO files (project_id, name, path, content, language)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(project_id, name) DO UPDATE SET
                    path = excluded.path,
                    content = excluded.content,
                    language = excluded.language,
                    updated_at = CURRENT_TIMESTAMP
            """, (project_id, record.name, record.path, record.content, record.language))
            conn.commit()

        logger.debug(f"Persisted file {record.name} for project {project_id}")
        stored = FileRecord.get_by_name(project_id, record.name)
        return stored if stored is not None else record

    @staticmethod
    def get_by_name(project_id: str, name: str) -> Optional['FileRecord']:
        """
        Retrieve a file by project and name.

        Returns:
            FileRecord instance if found, None otherwise
        """
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT id, project_id, name, path, content, language, created_at, updated_at
                FROM files
                WHERE project_id = ? AND name = ?
            """, (project_id, name))
            row = cursor.fetchone()

        if row:
            return FileRecord._from_row(row)
        return None

    @staticmethod
    def get_by_project(project_id: str) -> List['FileRecord']:
        """
        Retrieve every file of a project ordered by path.

        Args:
            project_id: The project to list

        Returns:
            List of FileRecord instances
        """
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT id, project_id, name, path, content, language, created_at, updated_at
                FROM files
                WHERE project_id = ?
                ORDER BY path ASC
            """, (project_id,))
            rows = cursor.fetchall()

        return [FileRecord._from_row(row) for row in rows]

    @staticmethod
    def delete_by_name(project_id: str, name: str) -> bool:
        """
        Delete the persisted copy of a file.

        Returns:
            True if a row was removed
        """
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM files WHERE project_id = ? AND name = ?",
                (project_id, name),
            )
            conn.commit()
            removed = cursor.rowcount > 0

        if removed:
            logger.debug(f"Deleted persisted file {name} for project {project_id}")
        return removed

    @staticmethod
    def _from_row(row: Any) -> 'FileRecord':
        """Create a FileRecord from a sqlite3.Row."""
        return FileRecord(
            id=row['id'],
            project_id=row['project_id'],
            name=row['name'],
            path=row['path'],
            content=row['content'],
            language=row['language'],
            created_at=datetime.fromisoformat(row['created_at']) if row['created_at'] else None,
            updated_at=datetime.fromisoformat(row['updated_at']) if row['updated_at'] else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the file to its client payload.

        Returns:
            Dict with name, content, language and path
        """
        return {
            'name': self.name,
            'content': self.content,
            'language': self.language,
            'path': self.path,
        }
