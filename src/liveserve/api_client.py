"""Minimal HTTP client for talking to a running liveserve."""
from typing import Any, Optional, Type

import requests
from pydantic import BaseModel


class APIError(Exception):
    """Non-2xx response, or no response at all (status_code 0)."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API error {status_code}: {detail}")


def _error_detail(response) -> str:
    try:
        body = response.json()
        if isinstance(body, dict):
            detail = body.get("detail") or body.get("error")
            if detail:
                return str(detail)
    except Exception:
        pass
    return response.text or f"HTTP {response.status_code}"


def api_call(base_url: str, method: str, path: str,
             data: Optional[BaseModel] = None,
             response_model: Optional[Type[BaseModel]] = None,
             timeout: Optional[float] = None) -> Any:
    """Call the server and decode the response.

    Args:
        base_url: e.g. "http://localhost:1024"
        method: HTTP method
        path: Endpoint path, with or without leading slash
        data: Request body model, sent as JSON
        response_model: Model to validate the response into

    Returns:
        A response_model instance, or the decoded JSON ({} for empty bodies)

    Raises:
        APIError: on HTTP errors and connection failures
    """
    url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"

    session = requests.Session()
    session.max_redirects = 10

    kwargs = {}
    if data is not None:
        kwargs["json"] = data.model_dump(exclude_none=True)
    if timeout is not None:
        kwargs["timeout"] = timeout

    try:
        response = session.request(method, url, **kwargs)
    except requests.RequestException as e:
        raise APIError(0, str(e)) from e

    if response.status_code >= 400:
        raise APIError(response.status_code, _error_detail(response))

    if not response.content:
        return {}

    if response_model is not None:
        return response_model.model_validate_json(response.content)
    return response.json()
