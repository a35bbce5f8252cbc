"""
clouddb.resources.database - Databases hosted on an instance
=============================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from clouddb.resources.base import Resource, escape

if TYPE_CHECKING:
    from clouddb.resources.instance import Instance


class Database(Resource):
    """A named database on an :class:`~clouddb.resources.instance.Instance`."""

    def __init__(self, instance: "Instance", name: str) -> None:
        super().__init__(instance.connection)
        self.instance = instance
        self.name = name

    def path(self) -> str:
        return f"{self.instance.path()}/databases/{escape(self.name)}"

    def destroy(self) -> bool:
        """Delete the database from its instance."""
        self._request("DELETE")
        return True

    def __repr__(self) -> str:
        return f"Database(name={self.name!r}, instance={self.instance.id!r})"
