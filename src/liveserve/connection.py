"""Connection to a running liveserve."""
from typing import Optional

from pydantic import ValidationError

from .api_client import APIError, api_call
from .server.routers.setup import CheckResponse, SetupRequest, SetupResponse
from .server.state import SERVER_KEY


class Connection:
    """Talks to one liveserve instance over HTTP."""

    def __init__(self, base_url: str = "http://localhost:1024", timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def check(self) -> Optional[CheckResponse]:
        """Readiness probe; None when nothing (or something else) answers."""
        try:
            info = api_call(self.base_url, "GET", "/check",
                            response_model=CheckResponse, timeout=self.timeout)
        except (APIError, ValidationError):
            return None
        # Empty bodies come back as a plain dict
        if not isinstance(info, CheckResponse) or info.key != SERVER_KEY:
            return None
        return info

    @property
    def is_running(self) -> bool:
        return self.check() is not None

    def setup(self, path: str, file_name: str, eruda: bool = False,
              console_type: Optional[str] = None, zoom: bool = False) -> SetupResponse:
        """Configure the served project.

        Raises:
            APIError: 400 for a bad path, 500 if the watcher failed to start
        """
        request = SetupRequest(fileName=file_name, path=path, eruda=eruda,
                               consoleType=console_type, zoom=zoom)
        # Generous timeout: the server replies only once watching has started
        return api_call(self.base_url, "PATCH", "/setup", data=request,
                        response_model=SetupResponse, timeout=self.timeout * 6)
