"""Readiness probe and project setup endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...errors import ConfigurationError, WatchSetupError
from ...session import validate_settings
from ..state import SERVER_KEY, LiveState, get_live_state

logger = logging.getLogger(__name__)

router = APIRouter()


class CheckResponse(BaseModel):
    """Identifies this server to editor integrations."""
    message: str
    key: str
    port: Optional[int] = None


class SetupRequest(BaseModel):
    """Project to serve. Field names follow the editor plugin's payload."""
    fileName: Optional[str] = None
    path: Optional[str] = None
    eruda: Optional[bool] = None
    consoleType: Optional[str] = None
    zoom: Optional[bool] = None


class SetupResponse(BaseModel):
    message: str


@router.get("/check", response_model=CheckResponse)
async def check(live: LiveState = Depends(get_live_state)) -> CheckResponse:
    """Readiness probe."""
    return CheckResponse(message="Ready", key=SERVER_KEY, port=live.session.active_port)


@router.patch("/setup", status_code=201, response_model=SetupResponse)
async def configure(request: SetupRequest, live: LiveState = Depends(get_live_state)) -> SetupResponse:
    """Point the server at a project and start watching it.

    Responds only after the watcher has started (201) or failed (500).
    """
    try:
        settings = validate_settings(
            request.path, request.fileName,
            eruda=request.eruda, console_type=request.consoleType, zoom=request.zoom
        )
    except ConfigurationError as e:
        logger.warning(f"Rejected setup: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    try:
        await live.session.configure(settings)
    except WatchSetupError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return SetupResponse(message="OK")
