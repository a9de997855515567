"""AI endpoints: autonomous agent turn and code assist."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from collabide.orchestrator import AgentOrchestrator, AgentRequest
from collabide.services.assist_service import AssistService
from collabide.web.dependencies import get_assist_service, get_orchestrator
from collabide.web.schemas import (
    ActionPayload,
    AgentRequestBody,
    AgentResponseBody,
    AssistRequestBody,
    AssistResponseBody,
    FileChangePayload,
    FilePayload,
)

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/agent", response_model=AgentResponseBody)
def run_agent(
    body: AgentRequestBody,
    orchestrator: Annotated[AgentOrchestrator, Depends(get_orchestrator)],
) -> AgentResponseBody:
    """Run one agent turn; return the reply, per-action status, merged files and changes."""
    turn = orchestrator.run_turn(
        AgentRequest(
            message=body.message,
            project_id=body.project_id,
            files=[payload.to_record() for payload in body.files],
            context=[message.to_message() for message in body.context],
            mode=body.mode,
            user_id=body.user_id,
        )
    )
    return AgentResponseBody(
        message=turn.message,
        actions=[ActionPayload.from_entry(entry) for entry in turn.timeline.entries],
        files=[FilePayload.from_record(record) for record in turn.files],
        changes=[FileChangePayload.from_change(change) for change in turn.changes],
        output=turn.output,
        status=turn.status,
    )


@router.post("/assist", response_model=AssistResponseBody)
def assist(
    body: AssistRequestBody,
    service: Annotated[AssistService, Depends(get_assist_service)],
) -> AssistResponseBody:
    result = service.assist(body.code, body.language, body.query, body.context)
    return AssistResponseBody.model_validate(result.to_dict())
