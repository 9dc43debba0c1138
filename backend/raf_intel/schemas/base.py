"""Base schema and shared enums for RAF Gap Intelligence."""

from pydantic import BaseModel

from raf_intel.connectors.base import ClaimType, Gender, PlanType
from raf_intel.services.compliance_agent import ComplianceRiskLevel, ComplianceStatus
from raf_intel.services.finance_agent import ImpactTier
from raf_intel.services.orchestrator import PipelineStage


class Schema(BaseModel):
    """Response schema readable straight from service dataclasses."""

    model_config = {"from_attributes": True}


__all__ = [
    "ClaimType",
    "ComplianceRiskLevel",
    "ComplianceStatus",
    "Gender",
    "ImpactTier",
    "PipelineStage",
    "PlanType",
    "Schema",
]
