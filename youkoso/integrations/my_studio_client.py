"""
My Studio Client
================

Wrapper around the My Studio web API used by the attendance front-end.

Authentication is a two-step exchange:

1. ``POST /login`` with the account email and password.
2. ``POST /generateStudioAttendanceToken`` with the company id and email;
   the reply's ``msg`` field carries the attendance token.

Every reply uses the same envelope: ``{"status": "Success" | "Failed",
"msg": ...}``. This client maps HTTP, envelope and transport failures onto the
Youkoso error taxonomy so no ``requests`` exception escapes it.
"""

import logging
import time
from typing import Any, Dict, Iterable, Optional

import requests

from youkoso.core.config import (
    MY_STUDIO_BASE_URL,
    MY_STUDIO_FROM_PAGE,
    MY_STUDIO_LOGIN_ENDPOINT,
    MY_STUDIO_TOKEN_ENDPOINT,
    NETWORK_TIMEOUT_SECONDS,
    STATUS_FAILED,
    STATUS_SUCCESS,
    TRANSIENT_STATUS_CODES,
)
from youkoso.core.credentials import Credential, Secret
from youkoso.core.errors import ApiError, AuthRejected, AuthUnreachable
from youkoso.core.session import ApiRequest, Session
from youkoso.utils.logger import log_api_request, log_api_response


class MyStudioClient:
    """
    Client wrapper for the My Studio API.

    Attributes:
        base_url (str): Base URL of the API (no trailing slash).
        timeout (float): Per-request timeout in seconds.
        session (requests.Session): Pooled HTTP connection.
    """

    def __init__(self, base_url: str = MY_STUDIO_BASE_URL, timeout: float = NETWORK_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        """Release pooled connections."""
        self.session.close()

    # ------------------------------------------------------------------------
    # AUTHENTICATION
    # ------------------------------------------------------------------------

    def authenticate(self, credential: Credential) -> Session:
        """Log in and obtain an attendance token.

        Args:
            credential: The stored My Studio credential. The password is only
                revealed while the login body is built.

        Returns:
            Session: Token with unknown expiry (the API declares none).

        Raises:
            AuthRejected: Bad credentials or a client-side HTTP error.
            AuthUnreachable: Network failure, timeout or server-side error.
            ApiError: The reply did not follow the expected envelope.
        """
        self.logger.info(f"Authenticating {credential.email} with My Studio")

        self._auth_post(MY_STUDIO_LOGIN_ENDPOINT, {
            "email": credential.email,
            "password": credential.password.reveal(),
            "from_page": MY_STUDIO_FROM_PAGE,
        })

        reply = self._auth_post(MY_STUDIO_TOKEN_ENDPOINT, {
            "company_id": credential.company_id,
            "email": credential.email,
            "from_page": MY_STUDIO_FROM_PAGE,
        }, sensitive_fields=("msg",))

        url = self._url(MY_STUDIO_TOKEN_ENDPOINT)
        token = reply.get("msg")
        if not isinstance(token, str) or not token:
            raise ApiError.missing_field("msg", url)

        return Session(token=Secret(token), issued_at=time.time(), expires_at=None)

    def _auth_post(
        self,
        endpoint: str,
        payload: Dict[str, Any],
        sensitive_fields: Iterable[str] = (),
    ) -> Dict[str, Any]:
        url = self._url(endpoint)
        try:
            response = self._send("POST", url, json=payload, sensitive_fields=sensitive_fields)
        except ApiError as e:
            if e.transient:
                raise AuthUnreachable(f"Could not reach {url}: {e.message}") from e
            if e.status_code is not None and e.status_code >= 400:
                raise AuthRejected(f"Login refused by {url}: {e.message}") from e
            raise

        try:
            return self._unwrap(response, url)
        except _EnvelopeFailed as e:
            raise AuthRejected(f"'{e.message}' received from call to {url}.") from e

    # ------------------------------------------------------------------------
    # AUTHENTICATED CALLS
    # ------------------------------------------------------------------------

    def call(self, session: Session, request: ApiRequest) -> Dict[str, Any]:
        """Perform an authenticated request.

        The token is sent as a bearer token.

        Returns:
            dict: The decoded reply envelope.

        Raises:
            ApiError: ``is_unauthorized`` for 401-class replies, ``transient``
                for network/server trouble, permanent otherwise.
        """
        url = self._url(request.path)
        headers = {"Authorization": f"Bearer {session.token.reveal()}"}
        response = self._send(
            request.method, url, json=request.json, params=request.params, headers=headers
        )
        try:
            return self._unwrap(response, url)
        except _EnvelopeFailed as e:
            raise ApiError(f"'{e.message}' received from call to {url}.", url=url) from e

    # ------------------------------------------------------------------------
    # TRANSPORT
    # ------------------------------------------------------------------------

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _send(
        self,
        method: str,
        url: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        sensitive_fields: Iterable[str] = (),
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            ApiError: For every HTTP, transport or decoding failure.
        """
        log_api_request(self.logger, method, url, headers=headers, data=json, params=params)
        start_time = time.time()
        try:
            response = self.session.request(
                method, url, json=json, params=params, headers=headers, timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            self.logger.warning(f"Network error calling {url}: {type(e).__name__}")
            raise ApiError(f"Network error: {type(e).__name__}", url=url, transient=True) from e
        except requests.RequestException as e:
            raise ApiError(f"Request failed: {type(e).__name__}", url=url) from e

        elapsed = time.time() - start_time
        status = response.status_code

        if status >= 400:
            log_api_response(self.logger, status, elapsed_time=elapsed)
            raise ApiError(
                f"HTTP {status}: {response.reason}",
                url=url,
                status_code=status,
                transient=status in TRANSIENT_STATUS_CODES or status >= 500,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON in response from call to {url}.", url=url,
                           status_code=status) from e

        log_api_response(self.logger, status, data, elapsed, sensitive_fields=sensitive_fields)
        return data

    @staticmethod
    def _unwrap(data: Any, url: str) -> Dict[str, Any]:
        """Check the status envelope and return it on success."""
        if not isinstance(data, dict):
            raise ApiError.missing_field("status", url)

        status = data.get("status")
        if not isinstance(status, str):
            raise ApiError.missing_field("status", url)

        if status == STATUS_SUCCESS:
            return data
        if status == STATUS_FAILED:
            message = data.get("msg")
            if not isinstance(message, str):
                raise ApiError.missing_field("msg", url)
            raise _EnvelopeFailed(message)
        raise ApiError.unrecognized_value("status", status, url)

    def __repr__(self) -> str:
        return f"<MyStudioClient base_url={self.base_url}>"


class _EnvelopeFailed(Exception):
    """Internal: the reply envelope said ``Failed``."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
