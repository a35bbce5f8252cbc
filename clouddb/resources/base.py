"""
clouddb.resources.base - Base class for Cloud Databases resources
==================================================================
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, TYPE_CHECKING
from urllib.parse import quote

from requests import Response

from clouddb.core.exceptions import raise_for_status

if TYPE_CHECKING:
    from clouddb.core.connection import Connection


def escape(value: Any) -> str:
    """
    Percent-encode a resource id or name for use as one path segment.

    Examples
    --------
    >>> escape("my db/1")
    'my%20db%2F1'
    """
    return quote(str(value), safe="")


class Resource:
    """
    Base class for resources addressed under the account root.

    Subclasses define :meth:`path`; requests go through the connection's
    pipeline and are checked with the fault classifier.

    Parameters
    ----------
    connection : Connection
        Authenticated connection
    """

    def __init__(self, connection: "Connection") -> None:
        self._connection = connection

    @property
    def connection(self) -> "Connection":
        return self._connection

    def path(self) -> str:
        raise NotImplementedError(f"{self.__class__.__name__} must define path()")

    def _request(
        self,
        method: str,
        suffix: str = "",
        *,
        data: Optional[Dict[str, Any]] = None,
        expected: Optional[Iterable[int]] = None,
    ) -> Response:
        r = self._connection.dbreq(method, self.path() + suffix, data=data)
        raise_for_status(r, expected)
        return r
