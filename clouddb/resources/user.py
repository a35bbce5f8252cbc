"""
clouddb.resources.user - Database users on an instance
=======================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from clouddb.resources.base import Resource, escape

if TYPE_CHECKING:
    from clouddb.resources.instance import Instance


class User(Resource):
    """A database user on an :class:`~clouddb.resources.instance.Instance`."""

    def __init__(self, instance: "Instance", name: str) -> None:
        super().__init__(instance.connection)
        self.instance = instance
        self.name = name

    def path(self) -> str:
        return f"{self.instance.path()}/users/{escape(self.name)}"

    def destroy(self) -> bool:
        """Delete the user from its instance."""
        self._request("DELETE")
        return True

    def __repr__(self) -> str:
        return f"User(name={self.name!r}, instance={self.instance.id!r})"
