"""
clouddb.resources.flavor - Instance flavors
============================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

from clouddb.resources.base import Resource, escape

if TYPE_CHECKING:
    from clouddb.core.connection import Connection


class Flavor(Resource):
    """
    A flavor (memory / CPU size) instances can be created with.

    Populated from the API on construction.

    Parameters
    ----------
    connection : Connection
        Authenticated connection
    flavor_id : int or str
        Flavor id
    """

    def __init__(self, connection: "Connection", flavor_id: Union[int, str]) -> None:
        super().__init__(connection)
        self.id = flavor_id
        self.name: Optional[str] = None
        self.ram: Optional[int] = None
        self.vcpus: Optional[int] = None
        self.links: List[Dict[str, Any]] = []
        self.populate()

    def path(self) -> str:
        return f"/flavors/{escape(self.id)}"

    def populate(self) -> bool:
        """Reload the flavor's attributes from the API."""
        data = self._request("GET").json()["flavor"]
        self.id = data.get("id", self.id)
        self.name = data.get("name")
        self.ram = data.get("ram")
        self.vcpus = data.get("vcpus")
        self.links = data.get("links") or []
        return True

    refresh = populate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "ram": self.ram,
            "vcpus": self.vcpus,
            "links": self.links,
        }

    def __repr__(self) -> str:
        return f"Flavor(id={self.id!r}, name={self.name!r})"
