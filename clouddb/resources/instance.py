"""
clouddb.resources.instance - Database instances
================================================
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Union, TYPE_CHECKING

from clouddb.core.exceptions import ArgumentSyntaxError, MissingArgument
from clouddb.resources.base import Resource, escape
from clouddb.resources.database import Database
from clouddb.resources.user import User

if TYPE_CHECKING:
    from clouddb.core.connection import Connection

logger = logging.getLogger("clouddb.resources")


class Instance(Resource):
    """
    A database instance.

    Populated from the API on construction; call :meth:`refresh` to reload.

    Attributes
    ----------
    id : str
        Instance id
    name : str
        Instance name
    hostname : str
        DNS-resolvable hostname of the instance
    flavor_id : str
        Id of the instance's flavor
    root_enabled : bool
        Whether the root user has been enabled
    volume_used, volume_size : float
        Volume usage and size in GB
    status : str
        BUILD, ACTIVE, BLOCKED, RESIZE, SHUTDOWN or FAILED
    created, updated : str
        Timestamps reported by the API
    links : list of dict
        Related links

    Examples
    --------
    >>> i = dbaas.get_instance("692d8418-7a8f-47f1-8060-59846c6e024f")
    >>> i.create_database("testdb")
    >>> i.create_user("test", "secret", ["testdb"])
    """

    def __init__(self, connection: "Connection", instance_id: str) -> None:
        super().__init__(connection)
        self.id = instance_id
        self.name: Optional[str] = None
        self.hostname: Optional[str] = None
        self.flavor_id: Optional[str] = None
        self.root_enabled: Optional[bool] = None
        self.volume_used: Optional[float] = None
        self.volume_size: Optional[float] = None
        self.status: Optional[str] = None
        self.created: Optional[str] = None
        self.updated: Optional[str] = None
        self.links: List[Dict[str, Any]] = []
        self.populate()

    def path(self) -> str:
        return f"/instances/{escape(self.id)}"

    def populate(self) -> bool:
        """Reload the instance's attributes from the API."""
        data = self._request("GET").json()["instance"]
        flavor = data.get("flavor") or {}
        volume = data.get("volume") or {}
        self.id = data.get("id", self.id)
        self.name = data.get("name")
        self.hostname = data.get("hostname")
        self.flavor_id = flavor.get("id")
        self.root_enabled = data.get("rootEnabled")
        self.volume_used = volume.get("used")
        self.volume_size = volume.get("size")
        self.status = data.get("status")
        self.created = data.get("created")
        self.updated = data.get("updated")
        self.links = data.get("links") or []
        return True

    refresh = populate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "hostname": self.hostname,
            "flavor_id": self.flavor_id,
            "root_enabled": self.root_enabled,
            "volume_used": self.volume_used,
            "volume_size": self.volume_size,
            "status": self.status,
            "created": self.created,
            "updated": self.updated,
            "links": self.links,
        }

    # ---------------- root user ----------------

    def enable_root(self) -> Dict[str, Any]:
        """
        Enable the root user and return its credentials.

        Returns
        -------
        dict
            ``{"name": "root", "password": "..."}``
        """
        r = self._request("POST", "/root")
        self.root_enabled = True
        return r.json()["user"]

    def is_root_enabled(self) -> bool:
        """Ask the API whether the root user is enabled."""
        r = self._request("GET", "/root")
        self.root_enabled = bool(r.json()["rootEnabled"])
        return self.root_enabled

    # ---------------- databases ----------------

    def list_databases(self) -> List[Dict[str, Any]]:
        """List databases on this instance."""
        return self._request("GET", "/databases").json().get("databases") or []

    databases = list_databases

    def get_database(self, name: str) -> Database:
        return Database(self, name)

    database = get_database

    def create_database(
        self,
        name: Optional[str] = None,
        character_set: Optional[str] = None,
        collate: Optional[str] = None,
    ) -> bool:
        """
        Create a database on this instance.

        Parameters
        ----------
        name : str
            Database name
        character_set : str, optional
            Character set; the server default applies when omitted
        collate : str, optional
            Collation; the server default applies when omitted
        """
        if not name:
            raise MissingArgument("Must provide a name to create a database")
        db: Dict[str, Any] = {"name": name}
        if character_set:
            db["character_set"] = character_set
        if collate:
            db["collate"] = collate
        self._request("POST", "/databases", data={"databases": [db]})
        logger.info("Created database %s on instance %s", name, self.id)
        return True

    # ---------------- users ----------------

    def list_users(self) -> List[Dict[str, Any]]:
        """List users on this instance."""
        return self._request("GET", "/users").json().get("users") or []

    users = list_users

    def get_user(self, name: str) -> User:
        return User(self, name)

    user = get_user

    def create_user(
        self,
        name: Optional[str] = None,
        password: Optional[str] = None,
        databases: Optional[Sequence[Union[str, Dict[str, Any]]]] = None,
    ) -> bool:
        """
        Create a user with access to one or more databases.

        Parameters
        ----------
        name : str
            User name
        password : str
            User password
        databases : list of str or dict
            Databases the user may access, as names or ``{"name": ...}``
            mappings. At least one is required.
        """
        if not name:
            raise MissingArgument("Must provide a name for the user")
        if not password:
            raise MissingArgument("Must provide a password for the user")
        if not isinstance(databases, (list, tuple)) or not databases:
            raise ArgumentSyntaxError("Must provide at least one database in the databases list")

        dbs = [d if isinstance(d, dict) else {"name": d} for d in databases]
        user = {"name": name, "password": password, "databases": dbs}
        self._request("POST", "/users", data={"users": [user]})
        logger.info("Created user %s on instance %s", name, self.id)
        return True

    # ---------------- lifecycle ----------------

    def destroy(self) -> bool:
        """Delete this instance. The API must answer 202 Accepted."""
        self._request("DELETE", expected=(202,))
        logger.info("Deleted instance %s", self.id)
        return True

    def __repr__(self) -> str:
        return f"Instance(id={self.id!r}, name={self.name!r}, status={self.status!r})"
