"""Executive chat schemas."""

from typing import Any

from pydantic import BaseModel, Field

from raf_intel.schemas.base import PlanType, Schema
from raf_intel.services.query_interpreter import AnalysisType


class ChatQueryRequest(BaseModel):
    """Chat request. A missing or blank question is rejected with 400."""

    question: str | None = Field(None, description="Question in plain English")


class ChatIntentSchema(Schema):
    analysis_type: AnalysisType
    state: str | None = None
    plan_type: PlanType | None = None
    close_suspect_pct: float | None = None
    time_window: str


class ChatResponseSchema(Schema):
    """Answer with evidence, business impact and optional chart payloads."""

    intent: ChatIntentSchema
    short_answer: str
    evidence: list[str] = Field(default_factory=list)
    why_it_matters: list[str] = Field(default_factory=list)
    recommended_action: str = ""
    follow_up_suggestions: list[str] = Field(default_factory=list)
    charts: dict[str, Any] | None = None
    confidence_note: str
    compliance_note: str
    narrative_source: str = Field(..., description="deterministic or llm")
