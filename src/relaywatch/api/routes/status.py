"""
Status endpoints - one-shot snapshot and supervisor health
"""

from typing import Union

from fastapi import APIRouter, Depends

from relaywatch.api.dependencies import get_bridge, get_process_state
from relaywatch.api.schemas.status import (
    HealthResponse,
    NodeStatusResponse,
    NodeUnavailableResponse,
)
from relaywatch.models.state import ProcessState
from relaywatch.services.status_bridge import StatusBridge

router = APIRouter(tags=["Status"])


@router.get("/status", response_model=Union[NodeStatusResponse, NodeUnavailableResponse])
async def get_status(bridge: StatusBridge = Depends(get_bridge)):
    """Current snapshot, same shape as one `ipc-update` reply."""
    return bridge.build_snapshot().to_dict()


@router.get("/health", response_model=HealthResponse)
async def get_health(
    bridge: StatusBridge = Depends(get_bridge),
    state: ProcessState = Depends(get_process_state),
) -> HealthResponse:
    return HealthResponse(
        node_running=state.handle is not None,
        shutdown_requested=state.shutdown_requested,
        subscribers=bridge.subscriber_count,
    )
