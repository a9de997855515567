"""Project endpoints: ad-hoc command execution, stored files, mirror rebuild."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from collabide import config
from collabide.exceptions import CollabValidationError
from collabide.execution.engine import ExecutionEngine, record_command
from collabide.execution.run_queue import ProjectRunQueue
from collabide.models.file_record import FileRecord
from collabide.web.dependencies import get_engine, get_run_queue
from collabide.web.schemas import (
    ExecuteRequestBody,
    ExecuteResponseBody,
    MirrorRebuildResponse,
    StoredFile,
)

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.post("/{project_id}/execute", response_model=ExecuteResponseBody)
def execute_command(
    project_id: str,
    body: ExecuteRequestBody,
    engine: Annotated[ExecutionEngine, Depends(get_engine)],
    run_queue: Annotated[ProjectRunQueue, Depends(get_run_queue)],
) -> ExecuteResponseBody:
    """Write the given files into the project mirror and run one command there."""
    if not body.command.strip() or body.files is None:
        raise CollabValidationError("Missing command or files")

    sync = engine.sync
    with run_queue.hold(project_id):
        sync.materialize(project_id, [payload.to_record() for payload in body.files])
        result = engine.runner.run(body.command, sync.mirror.project_dir(project_id))
        if sync.persist_enabled:
            record_command(
                result,
                project_id=project_id,
                user_id=body.user_id or config.DEFAULT_USER_ID,
            )
    return ExecuteResponseBody.from_result(result)


@router.get("/{project_id}/files", response_model=list[StoredFile])
def list_files(
    project_id: str,
    engine: Annotated[ExecutionEngine, Depends(get_engine)],
) -> list[StoredFile]:
    if not engine.sync.persist_enabled:
        LOGGER.debug("File listing without a store | project=%s", project_id)
        return []
    return [StoredFile.from_record(record) for record in FileRecord.get_by_project(project_id)]


@router.post("/{project_id}/mirror/rebuild", response_model=MirrorRebuildResponse)
def rebuild_mirror(
    project_id: str,
    engine: Annotated[ExecutionEngine, Depends(get_engine)],
    run_queue: Annotated[ProjectRunQueue, Depends(get_run_queue)],
) -> MirrorRebuildResponse:
    """Recreate the project's scratch directory from the stored files."""
    if not engine.sync.persist_enabled:
        raise CollabValidationError("Mirror rebuild requires a persistent store")
    with run_queue.hold(project_id):
        records = engine.sync.rebuild_mirror(project_id)
    return MirrorRebuildResponse(project_id=project_id, files=[record.name for record in records])
