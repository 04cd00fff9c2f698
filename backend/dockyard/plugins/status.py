"""Unauthenticated liveness endpoint used by load balancers."""

from fastapi import APIRouter
from fastapi import status

from dockyard.constants import API_PREFIX
from dockyard.plugins.registry import Plugin
from dockyard.schemas.schemas import StatusOut

router = APIRouter(prefix="/status", tags=["status"])


@router.get("", status_code=status.HTTP_200_OK, response_model=StatusOut)
def get_status() -> StatusOut:
    """Return ``OK`` while the process is able to serve requests."""

    return StatusOut(status="OK")


class StatusPlugin(Plugin):
    name = "status"

    async def register(self, server, config) -> None:
        server.api.include_router(router, prefix=API_PREFIX)
        return None
