"""API routers for RAF Gap Intelligence."""

from raf_intel.api.agents import router as agents_router
from raf_intel.api.chat import router as chat_router
from raf_intel.api.dashboard import router as dashboard_router
from raf_intel.api.members import router as members_router
from raf_intel.api.simulation import router as simulation_router
from raf_intel.api.upload import router as upload_router

__all__ = [
    "agents_router",
    "chat_router",
    "dashboard_router",
    "members_router",
    "simulation_router",
    "upload_router",
]
