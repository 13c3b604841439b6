"""Entry page, overlay assets, live-reload socket and static fallback."""
import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from fastapi.responses import FileResponse, HTMLResponse

from ...broadcast import WebSocketChannel
from ...errors import NotConfiguredError, RenderError
from ..state import LiveState, get_live_state

logger = logging.getLogger(__name__)

router = APIRouter()


def _asset(live: LiveState, name: str, missing: str, **headers) -> FileResponse:
    path = live.assets_dir / name
    if not path.is_file():
        raise HTTPException(status_code=404, detail=missing)
    return FileResponse(path, media_type="application/javascript", headers=headers or None)


@router.get("/", response_class=HTMLResponse)
async def index(live: LiveState = Depends(get_live_state)) -> HTMLResponse:
    """Configured entry page with overlays injected."""
    try:
        html = await asyncio.to_thread(live.renderer.render, live.session.settings)
    except NotConfiguredError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RenderError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return HTMLResponse(html)


@router.websocket("/")
async def live_reload(websocket: WebSocket):
    """Live-reload channel; the server only ever sends 'reload'."""
    live: LiveState = websocket.app.state.live
    await websocket.accept()
    channel = WebSocketChannel(websocket)
    await live.hub.register(channel)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        await live.hub.unregister(channel)


@router.get("/inspector.js")
async def inspector_script(live: LiveState = Depends(get_live_state)):
    return _asset(live, "inspector.js", "Inspector not found on server")


@router.get("/zoom-handler.js")
async def zoom_script(live: LiveState = Depends(get_live_state)):
    return _asset(live, "zoom-handler.js", "Zoom handler not found on server")


@router.get("/dt/suger-dev.js")
async def suger_script(live: LiveState = Depends(get_live_state)):
    return _asset(live, "suger-dev.js", "Console not found on server")


@router.get("/eruda.min.js")
async def eruda_script(live: LiveState = Depends(get_live_state)):
    return _asset(live, "eruda.min.js", "Eruda not found on server")


@router.get("/devtool-sw.js")
async def service_worker(live: LiveState = Depends(get_live_state)):
    return _asset(live, "devtool-sw.js", "SW not found", **{"Service-Worker-Allowed": "/"})


@router.get("/{file_path:path}")
async def project_file(file_path: str, live: LiveState = Depends(get_live_state)) -> FileResponse:
    """Serve any other path from the configured directory."""
    settings = live.session.settings
    if settings is None:
        raise HTTPException(status_code=404, detail="Not found")

    root = settings.directory
    target = (root / file_path).resolve()
    if not target.is_relative_to(root):
        logger.warning(f"Refused path outside project: {file_path}")
        raise HTTPException(status_code=404, detail="Not found")
    if target.is_dir():
        target = target / "index.html"
    if not target.is_file():
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(target)
