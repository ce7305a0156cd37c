from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx

from app.client.errors import (
    AuthenticationRequired,
    BookingClientError,
    NotFound,
    PermissionDenied,
    ServiceUnavailable,
    SlotConflict,
    ValidationFailed,
)

if TYPE_CHECKING:
    from app.client.session import SessionContext

logger = logging.getLogger(__name__)

STATUS_ERRORS: dict[int, type[BookingClientError]] = {
    400: ValidationFailed,
    401: AuthenticationRequired,
    403: PermissionDenied,
    404: NotFound,
    409: SlotConflict,
    422: ValidationFailed,
}


def _message_from(response: httpx.Response) -> tuple[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}", None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail") or f"HTTP {response.status_code}"
        return str(message), body.get("data")
    return f"HTTP {response.status_code}", body


class ApiClient:
    """Thin wrapper over an ``httpx.Client`` that speaks the ``{success, message, data}`` envelope."""

    def __init__(self, http: httpx.Client, session: Optional["SessionContext"] = None, prefix: str = "/api") -> None:
        self.http = http
        self.session = session
        self.prefix = prefix.rstrip("/")

    def _headers(self) -> dict[str, str]:
        if self.session is not None and self.session.token:
            return {"Authorization": f"Bearer {self.session.token}"}
        return {}

    def request(self, method: str, path: str, json: Any = None, params: Optional[dict] = None) -> Any:
        url = f"{self.prefix}{path}"
        try:
            response = self.http.request(method, url, json=json, params=params, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed without a response: %s", method, url, exc)
            raise ServiceUnavailable("Service is not responding. Please try again.") from exc

        if response.status_code >= 400:
            message, data = _message_from(response)
            error_cls = STATUS_ERRORS.get(response.status_code)
            if error_cls is None:
                error_cls = ServiceUnavailable if response.status_code >= 500 else BookingClientError
            logger.info("%s %s -> %s %s", method, url, response.status_code, message)
            raise error_cls(message, status_code=response.status_code, payload=data)

        try:
            body = response.json()
        except ValueError as exc:
            raise ServiceUnavailable("Malformed response from server", status_code=response.status_code) from exc

        if not isinstance(body, dict) or "success" not in body:
            raise ServiceUnavailable("Malformed response from server", status_code=response.status_code)
        if not body["success"]:
            raise BookingClientError(body.get("message") or "Request failed", status_code=response.status_code)
        return body.get("data")

    def get(self, path: str, params: Optional[dict] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)
