"""Pydantic schemas for RAF Gap Intelligence."""

from raf_intel.schemas.base import Schema
from raf_intel.schemas.chat import ChatIntentSchema, ChatQueryRequest, ChatResponseSchema
from raf_intel.schemas.dashboard import (
    AgentBatchResponse,
    AgentSummaryResponse,
    ClaimsAnalysisResponse,
    DashboardResponse,
    ExecutiveSummaryResponse,
    RiskExplorerResponse,
)
from raf_intel.schemas.member import (
    ClaimSchema,
    MemberListResponse,
    MemberProfileResponse,
    MemberSchema,
    OrchestratedOutputSchema,
    RiskAgentOutputSchema,
)
from raf_intel.schemas.simulation import SimulationRequestSchema, SimulationResponse
from raf_intel.schemas.upload import UploadAnalysisResponse, UploadErrorResponse, UploadRequest

__all__ = [
    "Schema",
    # Chat
    "ChatIntentSchema",
    "ChatQueryRequest",
    "ChatResponseSchema",
    # Dashboard
    "AgentBatchResponse",
    "AgentSummaryResponse",
    "ClaimsAnalysisResponse",
    "DashboardResponse",
    "ExecutiveSummaryResponse",
    "RiskExplorerResponse",
    # Member
    "ClaimSchema",
    "MemberListResponse",
    "MemberProfileResponse",
    "MemberSchema",
    "OrchestratedOutputSchema",
    "RiskAgentOutputSchema",
    # Simulation
    "SimulationRequestSchema",
    "SimulationResponse",
    # Upload
    "UploadAnalysisResponse",
    "UploadErrorResponse",
    "UploadRequest",
]
