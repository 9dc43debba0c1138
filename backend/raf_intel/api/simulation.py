"""What-if simulation endpoint."""

import logging

from fastapi import APIRouter

from raf_intel.api.dependencies import Snapshot
from raf_intel.schemas.simulation import SimulationRequestSchema, SimulationResponse
from raf_intel.services.simulation import SimulationRequest, run_simulation

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Simulation"])


@router.post(
    "/simulation",
    response_model=SimulationResponse,
    summary="Run a what-if simulation",
    description="Projects cost, MLR and risk revenue under risk-threshold, plan-mix, closure and coding levers.",
)
def simulate(request: SimulationRequestSchema, snapshot: Snapshot) -> SimulationResponse:
    result = run_simulation(snapshot, SimulationRequest(**request.model_dump()))
    return SimulationResponse.model_validate(result)
