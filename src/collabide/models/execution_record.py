"""Persistence helpers for auditing command runs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from collabide.database import get_connection

STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ExecutionRecord:
    """Audit row for a single command run; immutable once recorded."""

    id: Optional[int]
    project_id: str
    user_id: Optional[str]
    command: str
    output: Optional[str]
    error: Optional[str]
    exit_code: int
    status: str
    duration_ms: int
    created_at: Optional[datetime] = None

    @staticmethod
    def record(
        *,
        project_id: str,
        user_id: Optional[str],
        command: str,
        output: Optional[str],
        error: Optional[str],
        exit_code: int,
        duration_ms: int,
    ) -> "ExecutionRecord":
        """Persist an execution entry and return the stored record."""
        status = STATUS_COMPLETED if exit_code == 0 else STATUS_FAILED
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO executions (
                    project_id,
                    user_id,
                    command,
                    output,
                    error,
                    exit_code,
                    status,
                    duration_ms
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (project_id, user_id, command, output, error, exit_code, status, duration_ms),
            )
            execution_id = cursor.lastrowid
            conn.commit()
        return ExecutionRecord.get_by_id(execution_id)  # type: ignore[return-value]

    @staticmethod
    def get_by_id(identifier: int) -> Optional["ExecutionRecord"]:
        """Load an execution entry by primary key."""
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, project_id, user_id, command, output, error,
                       exit_code, status, duration_ms, created_at
                FROM executions
                WHERE id = ?
                """,
                (identifier,),
            )
            row = cursor.fetchone()
        if not row:
            return None
        return ExecutionRecord._from_row(row)

    @staticmethod
    def get_by_project(project_id: str, limit: int = 50) -> list["ExecutionRecord"]:
        """Return the most recent executions of a project, newest first."""
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, project_id, user_id, command, output, error,
                       exit_code, status, duration_ms, created_at
                FROM executions
                WHERE project_id = ?
                ORDER BY id DESC
                LIMIT ?
                """,
                (project_id, limit),
            )
            rows = cursor.fetchall()
        return [ExecutionRecord._from_row(row) for row in rows]

    @staticmethod
    def _from_row(row: Any) -> "ExecutionRecord":
        """Convert a sqlite row into an ExecutionRecord."""
        created = row["created_at"]
        return ExecutionRecord(
            id=row["id"],
            project_id=row["project_id"],
            user_id=row["user_id"],
            command=row["command"],
            output=row["output"],
            error=row["error"],
            exit_code=row["exit_code"],
            status=row["status"],
            duration_ms=row["duration_ms"],
            created_at=datetime.fromisoformat(created) if created else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Render the client payload."""
        return {
            "id": self.id,
            "command": self.command,
            "output": self.output,
            "error": self.error,
            "exitCode": self.exit_code,
            "status": self.status,
            "duration": self.duration_ms,
        }


__all__ = ["ExecutionRecord", "STATUS_COMPLETED", "STATUS_FAILED"]
