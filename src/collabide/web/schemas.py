"""Wire models for the HTTP API (camelCase on the wire)."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from collabide.execution.command_runner import CommandResult
from collabide.models.file_record import FileRecord, language_for
from collabide.orchestrator import ChatMessage
from collabide.timeline import FileChange, TimelineEntry


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FilePayload(CamelModel):
    """A project file as exchanged with the browser."""

    name: str = Field(min_length=1)
    content: str = ""
    language: Optional[str] = None
    path: Optional[str] = None

    def to_record(self) -> FileRecord:
        return FileRecord(
            name=self.name,
            content=self.content,
            language=self.language or language_for(self.name),
            path=self.path or f"/{self.name}",
        )

    @classmethod
    def from_record(cls, record: FileRecord) -> "FilePayload":
        return cls(name=record.name, content=record.content, language=record.language, path=record.path)


class StoredFile(FilePayload):
    id: Optional[int] = None
    project_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: FileRecord) -> "StoredFile":
        return cls(
            id=record.id,
            name=record.name,
            content=record.content,
            language=record.language,
            path=record.path,
            project_id=record.project_id,
            created_at=str(record.created_at) if record.created_at else None,
            updated_at=str(record.updated_at) if record.updated_at else None,
        )


class ContextMessage(CamelModel):
    role: str
    content: str = ""

    def to_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)


class AgentRequestBody(CamelModel):
    message: str = ""
    project_id: Optional[str] = None
    files: list[FilePayload] = Field(default_factory=list)
    context: list[ContextMessage] = Field(default_factory=list)
    mode: Literal["chat", "autonomous"] = "autonomous"
    user_id: Optional[str] = None


class ActionPayload(CamelModel):
    """An executed action with its final timeline status."""

    type: str
    target: Optional[str] = None
    content: Optional[str] = None
    command: Optional[str] = None
    reasoning: str = ""
    status: Literal["pending", "executing", "completed", "error"] = "pending"
    notice: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: TimelineEntry) -> "ActionPayload":
        action = entry.action
        return cls(
            type=action.raw_kind,
            target=action.target,
            content=action.content,
            command=action.command,
            reasoning=action.reasoning,
            status=entry.status.value,
            notice=entry.notice,
        )


class FileChangePayload(CamelModel):
    name: str
    type: Literal["created", "modified", "deleted"]
    content: Optional[str] = None
    timestamp: str

    @classmethod
    def from_change(cls, change: FileChange) -> "FileChangePayload":
        return cls.model_validate(change.to_dict())


class AgentResponseBody(CamelModel):
    message: str
    actions: list[ActionPayload]
    files: list[FilePayload]
    changes: list[FileChangePayload] = Field(default_factory=list)
    output: str
    status: Literal["success", "error"]


class AssistRequestBody(CamelModel):
    code: str = ""
    language: str = ""
    query: str = ""
    context: list[ContextMessage] = Field(default_factory=list)


class AssistResponseBody(CamelModel):
    content: str
    type: Literal["code", "explanation", "suggestion", "fix"]
    code: Optional[str] = None


class ExecuteRequestBody(CamelModel):
    command: str = ""
    files: Optional[list[FilePayload]] = None
    user_id: Optional[str] = None


class ExecuteResponseBody(CamelModel):
    output: str
    error: str
    exit_code: int
    duration: int
    timed_out: bool = False

    @classmethod
    def from_result(cls, result: CommandResult) -> "ExecuteResponseBody":
        if result.succeeded:
            return cls(
                output=result.stdout,
                error=result.stderr,
                exit_code=0,
                duration=result.duration_ms,
            )
        return cls(
            output="",
            error=result.failure_message,
            exit_code=result.exit_code,
            duration=result.duration_ms,
            timed_out=result.timed_out,
        )


class MirrorRebuildResponse(CamelModel):
    project_id: str
    files: list[str]


class HealthResponse(CamelModel):
    status: str = "ok"
    version: str
    rooms: int
    active_batches: int = 0
    persist: bool


class ErrorBody(BaseModel):
    error: str
