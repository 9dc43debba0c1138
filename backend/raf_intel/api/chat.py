"""Executive chat endpoint."""

import logging

from fastapi import APIRouter, HTTPException, status

from raf_intel.api.dependencies import Narrator, Snapshot
from raf_intel.schemas.chat import ChatQueryRequest, ChatResponseSchema
from raf_intel.services.chat_orchestrator import ChatOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])


@router.post(
    "/query",
    response_model=ChatResponseSchema,
    summary="Ask an executive question",
    description=(
        "Interprets the question, runs the pipeline over the matching members and returns an "
        "evidence-backed answer. A configured language model may reword the narrative."
    ),
)
async def chat_query(
    request: ChatQueryRequest,
    snapshot: Snapshot,
    generator: Narrator,
) -> ChatResponseSchema:
    """Answer one question.

    Raises:
        HTTPException: 400 if the question is missing or blank.
    """
    if not request.question or not request.question.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="question is required",
        )

    response = await ChatOrchestrator(snapshot).answer_with_narrative(request.question, generator)
    return ChatResponseSchema.model_validate(response)
