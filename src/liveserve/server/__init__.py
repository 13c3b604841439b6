"""HTTP and WebSocket server for liveserve."""
from .main import create_app, run_server

__all__ = ["create_app", "run_server"]
