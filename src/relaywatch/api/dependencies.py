"""
FastAPI dependencies.

The bridge and the process state are attached to ``app.state`` by
create_app(); routes fetch them per request instead of through module
globals.
"""

from fastapi import Request

from relaywatch.models.state import ProcessState
from relaywatch.services.status_bridge import StatusBridge


def get_bridge(request: Request) -> StatusBridge:
    return request.app.state.bridge


def get_process_state(request: Request) -> ProcessState:
    return request.app.state.process_state
