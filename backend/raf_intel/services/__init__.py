"""Services for RAF Gap Intelligence.

Per-member pipeline (re-exported here):
- RAF Calculator: demographic + condition RAF, lightweight suspects
- Risk Agent: two-signal suspect condition inference
- Finance Agent: revenue uplift and MLR translation
- Compliance Agent: evidence and language validation
- Orchestrator: staged risk -> finance -> compliance pipeline

Population services (import from their modules; they depend on the data
snapshot in ``raf_intel.core``):
- simulation, query_interpreter, chat_orchestrator, narrative_generator,
  analytics, upload_validator
"""

from raf_intel.services.compliance_agent import (
    ComplianceResult,
    ComplianceRiskLevel,
    ComplianceStatus,
    run_compliance_agent,
)
from raf_intel.services.finance_agent import (
    FinanceContext,
    FinancialImpact,
    ImpactTier,
    run_finance_agent,
)
from raf_intel.services.orchestrator import (
    OrchestratedOutput,
    PipelineStage,
    SuspectHCC,
    run_orchestrator,
)
from raf_intel.services.raf_calculator import (
    BASE_RATE_PMPM,
    HCC_WEIGHTS,
    compute_raf,
    compute_raf_breakdown,
    compute_risk_adj_revenue,
    compute_suspect_hccs,
)
from raf_intel.services.risk_agent import (
    RiskAgentOutput,
    SuspectFinding,
    run_agent,
    run_agent_batch,
)

__all__ = [
    # RAF Calculator
    "BASE_RATE_PMPM",
    "HCC_WEIGHTS",
    "compute_raf",
    "compute_raf_breakdown",
    "compute_risk_adj_revenue",
    "compute_suspect_hccs",
    # Risk Agent
    "RiskAgentOutput",
    "SuspectFinding",
    "run_agent",
    "run_agent_batch",
    # Finance Agent
    "FinanceContext",
    "FinancialImpact",
    "ImpactTier",
    "run_finance_agent",
    # Compliance Agent
    "ComplianceResult",
    "ComplianceRiskLevel",
    "ComplianceStatus",
    "run_compliance_agent",
    # Orchestrator
    "OrchestratedOutput",
    "PipelineStage",
    "SuspectHCC",
    "run_orchestrator",
]
