"""
HCX Session Adapter

All HTTP traffic to HCX goes through HcxSession, which owns:
- The connector login handshake and the x-hm-authorization token
- Basic auth against the appliance admin API (:9443)
- The cloud services token used for SDDC activation
- Accepted response statuses per backend
- TLS verification toggle
"""

import logging
import threading
import time
import xml.etree.ElementTree as ET
from enum import Enum
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple

import requests
import urllib3

from hcx_executor import config
from hcx_executor.utils import _safe_json_parse, parse_error_entries, redact_url
from . import endpoints
from .errors import AuthError, CERTIFICATE_NOT_TRUSTED_MESSAGE, TransportError


class AuthKind(Enum):
    CONSUMER = "consumer"
    ADMIN = "admin"
    CLOUD = "cloud"


ACCEPTED_STATUSES: Dict[AuthKind, Tuple[int, ...]] = {
    AuthKind.CONSUMER: (200, 202),
    AuthKind.ADMIN: (200, 202, 204),
    AuthKind.CLOUD: (200, 202),
}

LOGIN_ACCEPTED_STATUSES = (200, 202)


class HcxResponse(NamedTuple):
    status_code: int
    body: Any
    headers: Mapping[str, str]


class HcxSession:
    """
    Authenticated session against one HCX connector and the cloud services.

    The token and the authenticated flag are mutated in place when a login
    completes; both are guarded by a re-entrant lock so a session may be
    shared between handler threads.
    """

    def __init__(
        self,
        url: str,
        username: str = "",
        password: str = "",
        admin_username: str = "",
        admin_password: str = "",
        allow_unverified_ssl: bool = False,
        vmc_token: str = "",
        logger: Optional[logging.Logger] = None,
        http: Optional[requests.Session] = None,
    ):
        """
        Args:
            url: Connector base URL (e.g. https://hcx.example.com)
            username: vCenter SSO user for the application API
            password: Password for ``username``
            admin_username: Appliance admin user (basic auth on :9443)
            admin_password: Password for ``admin_username``
            allow_unverified_ssl: Skip server certificate validation on every call
            vmc_token: Cloud services refresh token
            logger: Logger for request and handshake messages
            http: Optional pre-built requests.Session
        """
        self.url = (url or "").rstrip("/")
        self.username = username
        self.password = password
        self.admin_username = admin_username
        self.admin_password = admin_password
        self.allow_unverified_ssl = allow_unverified_ssl
        self.vmc_token = vmc_token
        self.logger = logger or logging.getLogger(__name__)

        self.token: Optional[str] = None
        self.cloud_token: Optional[str] = None
        self.authenticated = False
        self._lock = threading.RLock()

        self.cloud_auth_url = config.HCX_CLOUD_AUTH_URL
        self.cloud_consumer_url = config.HCX_CLOUD_CONSUMER_URL
        self.vmc_auth_url = config.VMC_AUTH_URL

        self.http = http or requests.Session()
        self.http.verify = not allow_unverified_ssl
        if allow_unverified_ssl:
            urllib3.disable_warnings()

    @classmethod
    def from_config(cls, logger: Optional[logging.Logger] = None) -> "HcxSession":
        """Build a session from the HCX_* / VMC_* environment settings."""
        logger = logger or logging.getLogger(__name__)
        if not config.HCX_URL:
            logger.warning("HCX_URL is empty: only SDDC activation can be managed")
        return cls(
            url=config.HCX_URL,
            username=config.HCX_USER,
            password=config.HCX_PASSWORD,
            admin_username=config.HCX_ADMIN_USER,
            admin_password=config.HCX_ADMIN_PASSWORD,
            allow_unverified_ssl=config.ALLOW_UNVERIFIED_SSL,
            vmc_token=config.VMC_API_TOKEN,
            logger=logger,
        )

    @property
    def admin_url(self) -> str:
        return f"{self.url}:{endpoints.ADMIN_PORT}"

    def _send(
        self,
        method: str,
        url: str,
        payload: Any = None,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[Tuple[str, str]] = None,
        timeout: int = config.HTTP_TIMEOUT,
    ) -> requests.Response:
        request_kwargs: Dict[str, Any] = {
            "headers": headers or {},
            "timeout": timeout,
            "verify": not self.allow_unverified_ssl,
        }
        if auth:
            request_kwargs["auth"] = auth
        if payload is not None:
            request_kwargs["json"] = payload

        self.logger.debug(f"{method} {redact_url(url)}")
        try:
            return self.http.request(method, url, **request_kwargs)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {redact_url(url)} failed: {e}") from e

    def _login(self) -> requests.Response:
        return self._send(
            "POST",
            f"{self.url}{endpoints.SESSIONS}",
            payload={"username": self.username, "password": self.password},
            headers={"Accept": "application/json", "Content-Type": "application/json"},
        )

    def authenticate(self, max_waits: Optional[int] = None) -> str:
        """
        Log in to the connector and store the session token.

        A network failure is retried once after LOGIN_RETRY_DELAY. While the
        connector answers that its SSO trust store is empty the login is
        repeated every LOGIN_CERTIFICATE_WAIT seconds.

        Args:
            max_waits: Upper bound on certificate waits (None: wait forever)

        Returns:
            str: The x-hm-authorization token

        Raises:
            AuthError: Login rejected, unreachable after the retry, or waits exhausted
        """
        with self._lock:
            if self.authenticated:
                return self.token

            waits = 0
            while True:
                try:
                    response = self._login()
                except TransportError as e:
                    self.logger.warning(
                        f"Login to {self.url} failed ({e.message}), retrying in {config.LOGIN_RETRY_DELAY}s"
                    )
                    time.sleep(config.LOGIN_RETRY_DELAY)
                    try:
                        response = self._login()
                    except TransportError as retry_error:
                        raise AuthError(
                            f"Unable to authenticate. Check vCenter User / SSO configuration. Error: {retry_error.message}"
                        ) from retry_error

                if response.status_code in LOGIN_ACCEPTED_STATUSES:
                    break

                try:
                    entries = parse_error_entries(response.text)
                except ET.ParseError as e:
                    raise AuthError(
                        f"Login rejected: {response.text}", status_code=response.status_code
                    ) from e

                certificate_pending = any(
                    key == "message" and value == CERTIFICATE_NOT_TRUSTED_MESSAGE
                    for key, value in entries
                )
                if not certificate_pending:
                    raise AuthError(f"Login rejected: {response.text}", status_code=response.status_code)

                waits += 1
                if max_waits is not None and waits > max_waits:
                    raise AuthError(
                        f"SSO trusted root certificates still not configured after {max_waits} waits",
                        error_code="CERTIFICATE_WAIT_EXHAUSTED",
                    )
                self.logger.warning(
                    f"Certificate error: SSO trust not configured yet, retrying login in {config.LOGIN_CERTIFICATE_WAIT}s"
                )
                time.sleep(config.LOGIN_CERTIFICATE_WAIT)

            self.token = response.headers.get(endpoints.AUTH_HEADER, "")
            self.authenticated = True
            self.logger.info(f"Authenticated to {self.url}")
            return self.token

    def set_cloud_token(self, token: str):
        with self._lock:
            self.cloud_token = token

    def _resolve(self, path: str, auth_kind: AuthKind) -> str:
        if "://" in path:
            return path
        # Application API paths stay on the default port even with admin credentials
        if auth_kind is AuthKind.ADMIN and not path.startswith("/hybridity/"):
            return f"{self.admin_url}{path}"
        return f"{self.url}{path}"

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        auth_kind: AuthKind = AuthKind.CONSUMER,
        attach_token: bool = True,
    ) -> HcxResponse:
        """
        Issue one call against HCX.

        Args:
            method: HTTP method
            path: Endpoint path (from endpoints) or an absolute URL for cloud calls
            body: Optional JSON body
            auth_kind: Which credentials to attach and which statuses to accept
            attach_token: Send the cloud token on CLOUD calls (off for the token handshakes)

        Returns:
            HcxResponse: status code, parsed body ({} when empty) and headers

        Raises:
            AuthError: Missing admin credentials or failed login
            TransportError: Network failure, a status outside the accepted set, or a body that is not JSON
        """
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        auth = None
        timeout = config.HTTP_TIMEOUT

        if auth_kind is AuthKind.CONSUMER:
            headers[endpoints.AUTH_HEADER] = self.authenticate()
        elif auth_kind is AuthKind.ADMIN:
            if not self.admin_username or not self.admin_password:
                raise AuthError("admin_username or admin_password is empty")
            auth = (self.admin_username, self.admin_password)
            timeout = config.ADMIN_HTTP_TIMEOUT
        elif attach_token and self.cloud_token:
            headers[endpoints.AUTH_HEADER] = self.cloud_token

        url = self._resolve(path, auth_kind)
        response = self._send(method, url, payload=body, headers=headers, auth=auth, timeout=timeout)

        if response.status_code not in ACCEPTED_STATUSES[auth_kind]:
            self.logger.error(f"{method} {redact_url(url)} returned {response.status_code}")
            raise TransportError(
                f"status: {response.status_code}, body: {response.text}",
                status_code=response.status_code,
            )

        parsed = _safe_json_parse(response) if response.text else {}
        if isinstance(parsed, dict) and "_parse_error" in parsed:
            self.logger.error(f"{method} {redact_url(url)} returned a body that is not JSON")
            raise TransportError(
                f"{method} {redact_url(url)}: body is not JSON: {parsed['_raw_response'][:500]}",
                status_code=response.status_code,
            )

        return HcxResponse(
            status_code=response.status_code,
            body=parsed,
            headers=response.headers,
        )

    def get(self, path: str, auth_kind: AuthKind = AuthKind.CONSUMER) -> Any:
        return self.request("GET", path, auth_kind=auth_kind).body

    def post(self, path: str, body: Any = None, auth_kind: AuthKind = AuthKind.CONSUMER) -> Any:
        return self.request("POST", path, body=body, auth_kind=auth_kind).body

    def put(self, path: str, body: Any = None, auth_kind: AuthKind = AuthKind.CONSUMER) -> Any:
        return self.request("PUT", path, body=body, auth_kind=auth_kind).body

    def delete(self, path: str, auth_kind: AuthKind = AuthKind.CONSUMER) -> Any:
        return self.request("DELETE", path, auth_kind=auth_kind).body
