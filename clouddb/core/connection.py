"""
clouddb.core.connection - High-level connection management
===========================================================

Entry point for Cloud Databases: authenticates on construction and exposes
the account-level operations (instances and flavors).
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, Union

from requests import Session

from clouddb.core.exceptions import AuthenticationError, MissingArgument, raise_for_status
from clouddb.core.session import (
    AUTH_USA,
    CloudDBConfig,
    CloudDBSession,
    Credentials,
    ServiceLocation,
    verbose_from_env,
)
from clouddb.resources.flavor import Flavor
from clouddb.resources.instance import Instance


class Connection:
    """
    Authenticated connection to the Cloud Databases API.

    Credentials fall back to environment variables when not passed.
    Authentication happens in the constructor; an instance that exists
    is ready to use.

    Parameters
    ----------
    username : str, optional
        Rackspace Cloud username. Falls back to CLOUDDB_USERNAME env var.
    api_key : str, optional
        Rackspace Cloud API key. Falls back to CLOUDDB_API_KEY env var.
    region : str, optional
        ``dfw``, ``ord`` or ``lon``. Falls back to CLOUDDB_REGION env var.
    auth_url : str, optional
        Authentication endpoint. Falls back to CLOUDDB_AUTH_URL env var,
        then :data:`~clouddb.core.session.AUTH_USA`.
    retry_on_expiry : bool, optional
        Re-authenticate when the token expires. Falls back to
        CLOUDDB_RETRY_AUTH env var ("false" disables), default True.
    timeout : float
        Request timeout in seconds.
    http : requests.Session, optional
        HTTP client to use instead of the default pooled one.

    Examples
    --------
    >>> dbaas = Connection(username="jdoe", api_key="0123abcd", region="ord")
    >>> dbaas.list_instances()
    [{'id': '692d8418-...', 'name': 'test_instance', 'status': 'ACTIVE', ...}]

    >>> with Connection() as dbaas:  # reads CLOUDDB_* env vars
    ...     flavors = dbaas.list_flavors()
    """

    def __init__(
        self,
        username: Optional[str] = None,
        api_key: Optional[str] = None,
        region: Optional[str] = None,
        auth_url: Optional[str] = None,
        retry_on_expiry: Optional[bool] = None,
        timeout: float = 60.0,
        http: Optional[Session] = None,
    ) -> None:
        username = username or os.environ.get("CLOUDDB_USERNAME", "")
        api_key = api_key or os.environ.get("CLOUDDB_API_KEY", "")
        region = region or os.environ.get("CLOUDDB_REGION", "")
        auth_url = auth_url or os.environ.get("CLOUDDB_AUTH_URL") or AUTH_USA

        if not username:
            raise AuthenticationError("Must supply a username")
        if not api_key:
            raise AuthenticationError("Must supply an api_key")
        if not region:
            raise AuthenticationError("Must supply a region")

        if retry_on_expiry is None:
            retry_on_expiry = os.environ.get("CLOUDDB_RETRY_AUTH", "true").lower() != "false"

        self._config = CloudDBConfig(
            credentials=Credentials(username, api_key, region, auth_url),
            retry_on_expiry=retry_on_expiry,
            timeout=timeout,
            verbose=verbose_from_env(),
        )
        self._session = CloudDBSession(self._config, http=http)

    @property
    def session(self) -> CloudDBSession:
        """The underlying request pipeline."""
        return self._session

    @property
    def config(self) -> CloudDBConfig:
        return self._config

    @property
    def region(self) -> str:
        return self._config.credentials.region

    @property
    def authok(self) -> bool:
        """True while the connection holds a valid token."""
        return self._session.authok

    @property
    def location(self) -> ServiceLocation:
        """Resolved service location of the account's management API."""
        return self._session.location

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Connection(region={self.region!r}, authok={self.authok})"

    # ---------------- plumbing ----------------

    def dbreq(
        self,
        method: str,
        path: str,
        data: Union[None, Dict[str, Any], str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """Send a request to a path relative to the account root."""
        loc = self.location
        return self._session.dbreq(method, loc, f"{loc.path}{path}", headers=headers, data=data)

    def _get_list(self, path: str, key: str) -> List[Dict[str, Any]]:
        r = self.dbreq("GET", path)
        raise_for_status(r)
        return r.json().get(key) or []

    # ---------------- instances ----------------

    def list_instances(self) -> List[Dict[str, Any]]:
        """
        List database instances.

        Returns
        -------
        list of dict
            One record per instance with ``id``, ``name``, ``status`` and ``links``
        """
        return self._get_list("/instances", "instances")

    instances = list_instances

    def list_instances_detail(self) -> List[Dict[str, Any]]:
        """
        List database instances with detail.

        Adds ``hostname``, ``flavor``, ``volume``, ``created`` and ``updated``
        to each record.
        """
        return self._get_list("/instances/detail", "instances")

    instances_detail = list_instances_detail

    def get_instance(self, instance_id: str) -> Instance:
        """Fetch a single instance by id."""
        return Instance(self, instance_id)

    instance = get_instance

    def create_instance(
        self,
        flavor_ref: Optional[str] = None,
        name: Optional[str] = None,
        volume: Union[None, int, str, Dict[str, Any]] = None,
        databases: Optional[List[Dict[str, Any]]] = None,
        users: Optional[List[Dict[str, Any]]] = None,
    ) -> Instance:
        """
        Create a new database instance.

        Parameters
        ----------
        flavor_ref : str
            Flavor URL as returned by :meth:`list_flavors`
        name : str
            Instance name
        volume : int or dict
            Volume size in GB, or a ``{"size": n}`` mapping
        databases : list of dict, optional
            Databases to create, e.g. ``[{"name": "testdb"}]``
        users : list of dict, optional
            Users to create, e.g. ``[{"name": "u", "password": "p",
            "databases": [{"name": "testdb"}]}]``

        Returns
        -------
        Instance
            The newly created instance
        """
        if not flavor_ref:
            raise MissingArgument("Must provide a flavor to create an instance")
        if not name:
            raise MissingArgument("Must provide a name to create an instance")
        if volume is None or volume == "":
            raise MissingArgument("Must provide a size to create an instance")
        if not isinstance(volume, dict):
            volume = {"size": volume}

        body: Dict[str, Any] = {"flavorRef": flavor_ref, "name": name, "volume": volume}
        if databases:
            body["databases"] = databases
        if users:
            body["users"] = users

        r = self.dbreq("POST", "/instances", data={"instance": body})
        raise_for_status(r)
        return self.get_instance(r.json()["instance"]["id"])

    # ---------------- flavors ----------------

    def list_flavors(self) -> List[Dict[str, Any]]:
        """List available flavors (``id``, ``name``, ``links``)."""
        return self._get_list("/flavors", "flavors")

    flavors = list_flavors

    def list_flavors_detail(self) -> List[Dict[str, Any]]:
        """List available flavors with ``vcpus`` and ``ram``."""
        return self._get_list("/flavors/detail", "flavors")

    flavors_detail = list_flavors_detail

    def get_flavor(self, flavor_id: Union[int, str]) -> Flavor:
        """Fetch a single flavor by id."""
        return Flavor(self, flavor_id)

    flavor = get_flavor
