from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from app.client.errors import AuthenticationRequired, BookingClientError

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/login"
HOME_ROUTE = "/"
PROTECTED_PREFIXES = ("/dashboard", "/booking", "/my-appointments", "/profile", "/video-call")
ADMIN_PREFIX = "/admin"


@dataclass
class SessionContext:
    """Current user and bearer token, passed explicitly to whatever needs them."""

    token: Optional[str] = None
    user: Optional[dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return bool(self.user) and self.user.get("role") == "admin"

    @property
    def display_name(self) -> str:
        if not self.user:
            return "Customer"
        name = f"{self.user.get('first_name') or ''} {self.user.get('last_name') or ''}".strip()
        return name or "Customer"

    def _apply(self, data: dict[str, Any]) -> None:
        self.token = data["token"]
        self.user = data["user"]

    def login(self, api, email: str, password: str) -> dict[str, Any]:
        data = api.post("/auth/login", json={"email": email, "password": password})
        self._apply(data)
        logger.info("Logged in as %s", self.user.get("id"))
        return self.user

    def register(self, api, **payload: Any) -> dict[str, Any]:
        data = api.post("/auth/register", json=payload)
        self._apply(data)
        return self.user

    def restore(self, api, token: Optional[str]) -> bool:
        """Silently re-establish a stored session.

        A rejected token clears the context. Any other failure keeps the token so a
        later ``restore`` can retry, but drops the user and returns False.
        """
        if not token:
            self.logout()
            return False
        self.token = token
        try:
            data = api.get("/auth/me")
        except AuthenticationRequired:
            logger.info("Stored token rejected; clearing session")
            self.logout()
            return False
        except BookingClientError as exc:
            logger.warning("Could not restore session: %s", exc)
            self.user = None
            return False
        self.user = data["user"]
        return True

    def logout(self) -> None:
        self.token, self.user = None, None

    def guard(self, path: str) -> str:
        """Return ``path`` if the session may open it, otherwise the route to redirect to."""
        if path.startswith(ADMIN_PREFIX):
            if not self.is_authenticated:
                return LOGIN_ROUTE
            return path if self.is_admin else HOME_ROUTE
        if path.startswith(PROTECTED_PREFIXES) and not self.is_authenticated:
            return LOGIN_ROUTE
        return path
