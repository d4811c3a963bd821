# Auth - Remote Identity Service Client
#
# Thin httpx client for a hosted auth service (GoTrue-style REST API):
#
#   POST {base}/auth/v1/signup
#   POST {base}/auth/v1/token?grant_type=password
#   POST {base}/auth/v1/token?grant_type=refresh_token
#   POST {base}/auth/v1/logout          (Bearer access token)
#   POST {base}/auth/v1/recover
#
# Every request carries the project API key in an `apikey` header.
# HTTP >= 400 raises RemoteServiceError with the server's error_description
# (or msg) as the message. No retries: auth calls are user-initiated.

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from ..core import EventSeverity, EventType, get_audit_logger
from ..core.errors import RemoteServiceError
from . import config_loader

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SEC = 30
DEFAULT_EXPIRES_IN_SEC = 3600
AUTH_PATH = "/auth/v1"


@dataclass
class AuthSession:
    access_token: str = ""
    refresh_token: str = ""
    user_id: str = ""
    user_email: str = ""
    expires_at: int = 0  # seconds since epoch, 0 if unknown


@dataclass
class AuthResponse:
    success: bool = False
    session: AuthSession = field(default_factory=AuthSession)
    error_message: str = ""


class IdentityClient:
    """Client for the remote identity service.

    Usage::

        client = IdentityClient.from_config()
        response = client.sign_in("me@example.com", "hunter2")
        if response.success:
            token = response.session.access_token
    """

    def __init__(self, base_url: str, api_key: str):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key

    @classmethod
    def from_config(cls, config_path=None) -> "IdentityClient":
        """Build a client from the KEY=VALUE config file.

        Raises:
            ConfigurationMissing: no config file, or a required key is unset.
        """
        path = config_path or config_loader.find_config_file()
        return cls(
            base_url=config_loader.get_identity_url(path),
            api_key=config_loader.get_identity_key(path),
        )

    # ------------------------------------------------------------------
    # Authentication methods
    # ------------------------------------------------------------------

    def sign_up(self, email: str, password: str) -> AuthResponse:
        data = self._request("/signup", {"email": email, "password": password})
        return self._parse_session(data, with_user=True, with_expiry=False)

    def sign_in(self, email: str, password: str) -> AuthResponse:
        data = self._request(
            "/token?grant_type=password", {"email": email, "password": password}
        )
        return self._parse_session(data, with_user=True, with_expiry=True)

    def sign_out(self, access_token: str) -> None:
        self._request("/logout", {}, auth_token=access_token)

    def refresh_session(self, refresh_token: str) -> AuthResponse:
        data = self._request(
            "/token?grant_type=refresh_token", {"refresh_token": refresh_token}
        )
        return self._parse_session(data, with_user=False, with_expiry=True)

    def request_password_reset(self, email: str) -> None:
        self._request("/recover", {"email": email})

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _build_headers(self, auth_token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "apikey": self._api_key,
        }
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        return headers

    def _request(
        self,
        endpoint: str,
        body: Dict[str, Any],
        auth_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """POST a JSON body and return the decoded JSON object."""
        url = f"{self.base_url}{AUTH_PATH}{endpoint}"
        # Strip the query string so tokens in URLs never reach the log.
        route = endpoint.split("?", 1)[0]

        try:
            resp = httpx.post(
                url,
                json=body,
                headers=self._build_headers(auth_token),
                timeout=REQUEST_TIMEOUT_SEC,
            )
        except httpx.HTTPError as exc:
            self._log_failure(route, str(exc))
            raise RemoteServiceError(f"Identity service request failed: {exc}") from exc

        data: Any = {}
        if resp.content:
            try:
                data = resp.json()
            except ValueError:
                data = None

        if resp.status_code >= 400:
            message = "Unknown error from identity service"
            if isinstance(data, dict):
                message = data.get("error_description") or data.get("msg") or message
            self._log_failure(route, message, resp.status_code)
            raise RemoteServiceError(message, status_code=resp.status_code)

        if not isinstance(data, dict):
            raise RemoteServiceError(
                "Invalid JSON response from identity service",
                status_code=resp.status_code,
            )
        return data

    def _log_failure(self, route: str, message: str, status_code: int = 0) -> None:
        logger.warning("Identity request %s failed (%s): %s", route, status_code, message)
        get_audit_logger().log_event(
            event_type=EventType.IDENTITY_REQUEST_FAILED,
            severity=EventSeverity.INVESTIGATE,
            message=f"Identity service request failed: {route}",
            details={"status_code": status_code, "error": message},
        )

    @staticmethod
    def _parse_session(
        data: Dict[str, Any], with_user: bool, with_expiry: bool
    ) -> AuthResponse:
        response = AuthResponse()
        if "access_token" not in data:
            return response

        response.success = True
        response.session.access_token = data.get("access_token") or ""
        response.session.refresh_token = data.get("refresh_token") or ""

        user = data.get("user")
        if with_user and isinstance(user, dict):
            response.session.user_id = user.get("id") or ""
            response.session.user_email = user.get("email") or ""

        if with_expiry and "expires_in" in data:
            expires_in = data.get("expires_in")
            if not isinstance(expires_in, int) or isinstance(expires_in, bool):
                expires_in = DEFAULT_EXPIRES_IN_SEC
            response.session.expires_at = int(time.time()) + expires_in

        return response
