"""
clouddb.core.session - Authenticated HTTP session for Cloud Databases
======================================================================

Low-level session handling for the Cloud Databases v1.0 API with:
- Token authentication against the Rackspace auth service
- Service endpoint resolution per account and region
- Transport retry on dropped connections
- Transparent re-authentication when the token expires
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from urllib.parse import urlsplit
import json
import logging
import os
import re
import threading
import time

import requests
from requests import Response, Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from clouddb.core.exceptions import AuthenticationError, ConnectionError


AUTH_USA = "https://auth.api.rackspacecloud.com/v1.0"
AUTH_UK = "https://lon.auth.api.rackspacecloud.com/v1.0"

REGIONS = ("dfw", "ord", "lon")

MANAGEMENT_URL = "https://{region}.databases.api.rackspacecloud.com/v1.0/{account}"
API_VERSION = "v1.0"

_ACCOUNT_RE = re.compile(r".*/(\d+)$")
_FIRST_SEGMENT_RE = re.compile(r"^/[^/]*/")
_DEFAULT_PORTS = {"https": 443, "http": 80}


def verbose_from_env() -> bool:
    """True when DATABASES_VERBOSE is set to anything non-empty."""
    return bool(os.environ.get("DATABASES_VERBOSE"))


@dataclass(frozen=True)
class Credentials:
    """
    Static account credentials.

    Parameters
    ----------
    username : str
        Rackspace Cloud username
    api_key : str
        Rackspace Cloud API key
    region : str
        Deployment region, one of ``dfw``, ``ord`` or ``lon``
    auth_url : str
        Authentication endpoint (default: :data:`AUTH_USA`)

    Examples
    --------
    >>> creds = Credentials("jdoe", "0123abcd", "ord")
    """
    username: str
    api_key: str
    region: str
    auth_url: str = AUTH_USA

    def __post_init__(self) -> None:
        region = str(self.region).lower()
        if region not in REGIONS:
            raise ValueError(
                f"Unknown region {self.region!r}; expected one of {', '.join(REGIONS)}"
            )
        object.__setattr__(self, "region", region)

    def __repr__(self) -> str:
        return (
            f"Credentials(username={self.username!r}, api_key='***', "
            f"region={self.region!r}, auth_url={self.auth_url!r})"
        )


@dataclass(frozen=True)
class ServiceLocation:
    """Resolved endpoint of the account's management API."""
    host: str
    path: str
    port: int
    scheme: str

    @classmethod
    def from_url(cls, url: str) -> "ServiceLocation":
        parts = urlsplit(url)
        scheme = parts.scheme or "https"
        path = _FIRST_SEGMENT_RE.sub(f"/{API_VERSION}/", parts.path.rstrip(), count=1)
        return cls(
            host=parts.hostname or "",
            path=path,
            port=parts.port or _DEFAULT_PORTS.get(scheme, 443),
            scheme=scheme,
        )

    @property
    def netloc(self) -> str:
        if self.port == _DEFAULT_PORTS.get(self.scheme):
            return self.host
        return f"{self.host}:{self.port}"

    def url(self, path: str) -> str:
        """Absolute URL for a path on this host."""
        return f"{self.scheme}://{self.netloc}{path}"


@dataclass(frozen=True)
class AuthSession:
    """
    Snapshot of authentication state.

    Either fully unauthenticated (see :data:`UNAUTHENTICATED`) or carrying
    a token together with the service location. Never mutated; a refresh
    produces a new instance.
    """
    auth_token: Optional[str] = None
    location: Optional[ServiceLocation] = None
    authenticated: bool = False

    def __repr__(self) -> str:
        return f"AuthSession(authenticated={self.authenticated}, location={self.location!r})"


UNAUTHENTICATED = AuthSession()


@dataclass
class CloudDBConfig:
    """
    Connection configuration for the Cloud Databases API.

    Parameters
    ----------
    credentials : Credentials
        Account credentials
    retry_on_expiry : bool
        Re-authenticate transparently when the token expires (default: True)
    timeout : float
        Request timeout in seconds (default: 60.0)
    transport_attempts : int
        Total attempts for a request whose connection drops (default: 5)
    max_reauth_attempts : int
        Re-authentications allowed for one request before giving up (default: 3)
    verbose : bool
        Log request and response bodies at DEBUG level
    user_agent : str
        User-Agent header value
    """
    credentials: Credentials
    retry_on_expiry: bool = True
    timeout: float = 60.0
    transport_attempts: int = 5
    max_reauth_attempts: int = 3
    verbose: bool = field(default_factory=verbose_from_env)
    user_agent: str = "Cloud Databases Python API/0.1"


def build_http_session(pool_connections: int = 10, pool_maxsize: int = 20) -> Session:
    """
    Build the default HTTP client.

    urllib3 retries are disabled; :class:`CloudDBSession` owns the retry
    policy for both dropped connections and expired tokens.
    """
    sess = requests.Session()
    retry = Retry(total=0, redirect=False, raise_on_status=False)
    adapter = HTTPAdapter(
        max_retries=retry,
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
    )
    sess.mount("https://", adapter)
    sess.mount("http://", adapter)
    return sess


class Authenticator:
    """
    Exchanges credentials for a token and the account's service location.

    Parameters
    ----------
    credentials : Credentials
        Account credentials
    http : requests.Session
        HTTP client used for the auth call
    user_agent : str
        User-Agent header value
    timeout : float
        Request timeout in seconds
    """

    def __init__(
        self,
        credentials: Credentials,
        http: Session,
        user_agent: str,
        timeout: float = 60.0,
    ) -> None:
        self.credentials = credentials
        self.http = http
        self.user_agent = user_agent
        self.timeout = timeout
        self.logger = logging.getLogger("clouddb.auth")

    def authenticate(self) -> AuthSession:
        creds = self.credentials
        headers = {
            "X-Auth-User": creds.username,
            "X-Auth-Key": creds.api_key,
            "User-Agent": self.user_agent,
        }
        try:
            r = self.http.request("GET", creds.auth_url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise AuthenticationError(f"Unable to reach {creds.auth_url}: {e}") from e

        if r.status_code != 204:
            self.logger.warning(
                "Authentication for %s failed with status %s", creds.username, r.status_code
            )
            raise AuthenticationError(
                f"Authentication failed with response code {r.status_code}",
                status=r.status_code,
            )

        token = r.headers.get("X-Auth-Token")
        if not token:
            raise AuthenticationError("Authentication response carried no X-Auth-Token", status=204)

        mgmt_url = r.headers.get("X-Server-Management-Url") or ""
        match = _ACCOUNT_RE.match(mgmt_url)
        if not match:
            raise AuthenticationError(
                f"Unable to find an account id in management URL {mgmt_url!r}",
                status=204,
            )

        url = MANAGEMENT_URL.format(region=creds.region, account=match.group(1))
        location = ServiceLocation.from_url(url)
        self.logger.info("Authenticated %s against %s", creds.username, location.host)
        return AuthSession(auth_token=token, location=location, authenticated=True)


class CloudDBSession:
    """
    Authenticated request pipeline for the Cloud Databases API.

    Authenticates on construction. Every call made through :meth:`dbreq`
    carries the current token; a 401 triggers a re-authentication and a
    replay of the request, subject to the configured retry policy.

    Parameters
    ----------
    cfg : CloudDBConfig
        Connection configuration
    http : requests.Session, optional
        HTTP client to use. A pooled client is built when omitted.

    Examples
    --------
    >>> cfg = CloudDBConfig(Credentials("jdoe", "0123abcd", "ord"))
    >>> with CloudDBSession(cfg) as sess:
    ...     loc = sess.location
    ...     r = sess.dbreq("GET", loc, f"{loc.path}/flavors")
    """

    def __init__(self, cfg: CloudDBConfig, http: Optional[Session] = None) -> None:
        self.cfg = cfg
        self.timeout = float(cfg.timeout)
        self.logger = logging.getLogger("clouddb")

        self.http = http if http is not None else build_http_session()
        self.authenticator = Authenticator(
            cfg.credentials, self.http, cfg.user_agent, timeout=self.timeout
        )

        self._auth_session: AuthSession = UNAUTHENTICATED
        self._last_location: Optional[ServiceLocation] = None
        self._auth_lock = threading.Lock()

        self.authenticate()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.http.close()

    def __enter__(self) -> "CloudDBSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- auth state ----------------

    @property
    def auth_session(self) -> AuthSession:
        with self._auth_lock:
            return self._auth_session

    @property
    def authok(self) -> bool:
        return self.auth_session.authenticated

    @property
    def location(self) -> ServiceLocation:
        """Service location of the current session, or the last one resolved."""
        with self._auth_lock:
            loc = self._auth_session.location or self._last_location
        if loc is None:
            raise AuthenticationError("Session is not authenticated")
        return loc

    def authenticate(self) -> AuthSession:
        """Authenticate from scratch, replacing the current session state."""
        with self._auth_lock:
            return self._replace_session()

    def _replace_session(self) -> AuthSession:
        try:
            new = self.authenticator.authenticate()
        except AuthenticationError:
            self._auth_session = UNAUTHENTICATED
            raise
        self._auth_session = new
        self._last_location = new.location
        return new

    def _refresh(self, stale: AuthSession) -> AuthSession:
        # Only the first caller holding a stale snapshot re-authenticates;
        # later callers pick up the session it produced.
        with self._auth_lock:
            if self._auth_session is not stale and self._auth_session.authenticated:
                return self._auth_session
            self.logger.info("Auth token expired, re-authenticating")
            return self._replace_session()

    # ---------------- helpers ----------------

    def _headers(self, auth: AuthSession, headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        h = {
            "Connection": "Keep-Alive",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": self.cfg.user_agent,
        }
        if auth.authenticated:
            h["X-Auth-Token"] = auth.auth_token  # type: ignore[assignment]
        if headers:
            h.update(headers)
        return h

    @staticmethod
    def _encode(data: Union[None, str, bytes, Dict[str, Any], list]) -> Optional[bytes]:
        if data is None:
            return None
        if isinstance(data, bytes):
            return data
        if isinstance(data, str):
            return data.encode("utf-8")
        return json.dumps(data, separators=(",", ":")).encode("utf-8")

    def _send(
        self,
        method: str,
        location: ServiceLocation,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes],
    ) -> Response:
        attempts = self.cfg.transport_attempts
        for attempt in range(1, attempts + 1):
            t0 = time.perf_counter()
            try:
                r = self.http.request(
                    method,
                    url,
                    headers=headers,
                    data=body,
                    timeout=self.timeout,
                )
            except requests.ConnectionError as e:
                if attempt >= attempts:
                    raise ConnectionError(
                        f"Unable to reconnect to {location.host} after {attempt} attempts"
                    ) from e
                self.logger.warning(
                    "Connection to %s dropped (%s), retrying (%d/%d)",
                    location.host, e, attempt, attempts,
                )
                # drop pooled sockets so the next attempt opens a fresh connection
                self.http.close()
                continue
            dt = (time.perf_counter() - t0) * 1000.0
            self.logger.debug("%s %s %s %sms", method, url, r.status_code, round(dt, 1))
            return r
        raise ConnectionError(f"Unable to reconnect to {location.host} after {attempts} attempts")

    # ---------------- public ops ----------------

    def dbreq(
        self,
        method: str,
        location: ServiceLocation,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        data: Union[None, str, bytes, Dict[str, Any], list] = None,
    ) -> Response:
        """
        Execute a request against the management API.

        Parameters
        ----------
        method : str
            HTTP verb
        location : ServiceLocation
            Target host, port and scheme
        path : str
            Absolute request path, e.g. ``/v1.0/1234/instances``
        headers : dict, optional
            Headers merged over the defaults
        data : dict, list, str or bytes, optional
            Request body; dicts and lists are JSON-encoded

        Returns
        -------
        requests.Response
            The raw response. Status codes other than 401 are not inspected.

        Raises
        ------
        ConnectionError
            Transport attempts exhausted, or the token expired and could
            not be refreshed under the retry policy
        AuthenticationError
            Re-authentication was rejected
        """
        method = method.upper()
        body = self._encode(data)
        url = location.url(path)
        if body is not None and self.cfg.verbose:
            self.logger.debug("Request body: %s", body.decode("utf-8", "replace"))

        reauths = 0
        while True:
            auth = self.auth_session
            if not auth.authenticated:
                # an earlier re-authentication failed; log in before sending
                auth = self._refresh(auth)
            h = self._headers(auth, headers)
            h["Content-Length"] = str(len(body) if body is not None else 0)

            r = self._send(method, location, url, h, body)
            if self.cfg.verbose:
                self.logger.debug("Response body: %s", r.text)

            if r.status_code != 401:
                return r

            if not self.cfg.retry_on_expiry:
                raise ConnectionError(
                    "Authentication token expired and you have requested not to retry"
                )
            if reauths >= self.cfg.max_reauth_attempts:
                raise ConnectionError(
                    f"Authentication token still rejected after {reauths} re-authentications"
                )
            reauths += 1
            self._refresh(auth)
