"""
clouddb.core.exceptions - Error taxonomy and fault classification
==================================================================

Remote faults arrive as a JSON object with a single key naming the fault
kind, e.g. ``{"badRequest": {"message": "...", "code": 400}}``. The key,
capitalized, selects one of the :class:`CloudDBError` subclasses below.
Anything unrecognized becomes :class:`Other`.
"""

from __future__ import annotations

import builtins
import json
import re
from typing import Dict, Iterable, Optional, Type

from requests import Response


_SUCCESS_RE = re.compile(r"^2\d\d$")


class CloudDBException(Exception):
    """Root of every exception raised by clouddb."""


class CloudDBError(CloudDBException):
    """
    A fault reported by the Cloud Databases API.

    Attributes
    ----------
    message : str
        Human readable message from the fault body
    status : int
        HTTP status code
    body : str
        Raw response body
    """

    def __init__(self, message: Optional[str], status: int, body: str) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body or ""

    @property
    def fault(self) -> str:
        return type(self).__name__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CloudDBError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.status == other.status
            and self.body == other.body
        )

    def __hash__(self) -> int:
        return hash((type(self), self.message, self.status, self.body))


class ServiceFault(CloudDBError):
    pass


class InstanceFault(CloudDBError):
    pass


class ServiceUnavailable(CloudDBError):
    pass


class Unauthorized(CloudDBError):
    pass


class BadRequest(CloudDBError):
    pass


class ItemNotFound(CloudDBError):
    pass


class OverLimit(CloudDBError):
    pass


class ImmutableEntity(CloudDBError):
    pass


class UnprocessableEntity(CloudDBError):
    pass


class Other(CloudDBError):
    """Fallback for bodies that are not a recognized fault."""


class AuthenticationError(CloudDBException):
    """Credentials were rejected or the auth response was malformed."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ConnectionError(CloudDBException, builtins.ConnectionError):
    """
    Terminal transport failure, or a token expiry that could not be
    recovered by re-authenticating.
    """


class MissingArgument(CloudDBException, ValueError):
    """A required request parameter was not supplied."""


class ArgumentSyntaxError(CloudDBException, ValueError):
    """A request parameter was supplied in an unusable shape."""


FAULT_KINDS: Dict[str, Type[CloudDBError]] = {
    cls.__name__: cls
    for cls in (
        ServiceFault,
        InstanceFault,
        ServiceUnavailable,
        Unauthorized,
        BadRequest,
        ItemNotFound,
        OverLimit,
        ImmutableEntity,
        UnprocessableEntity,
    )
}


def is_success(status: int) -> bool:
    """True for any 2xx status."""
    return bool(_SUCCESS_RE.match(str(status)))


def _other(status: int, body: str) -> Other:
    return Other(
        f"The server returned status {status} with body {body}",
        status,
        body,
    )


def error_for(
    response: Response,
    expected: Optional[Iterable[int]] = None,
) -> Optional[CloudDBError]:
    """
    Build the error a response represents, or None if it is a success.

    Parameters
    ----------
    response : requests.Response
        Response returned by the request pipeline
    expected : iterable of int, optional
        Exact statuses that count as success. Defaults to any 2xx.

    Returns
    -------
    CloudDBError or None
    """
    status = response.status_code
    if expected is not None:
        if status in set(expected):
            return None
    elif is_success(status):
        return None

    body = response.text or ""
    try:
        data = json.loads(body)
    except ValueError:
        return _other(status, body)

    if not isinstance(data, dict) or len(data) != 1:
        return _other(status, body)

    (key, info), = data.items()
    if not key or not isinstance(info, dict):
        return _other(status, body)

    kind = FAULT_KINDS.get(key[0].upper() + key[1:])
    if kind is None:
        return _other(status, body)
    return kind(info.get("message"), status, body)


def raise_for_status(
    response: Response,
    expected: Optional[Iterable[int]] = None,
) -> None:
    """Raise the classified fault for a non-successful response."""
    err = error_for(response, expected)
    if err is not None:
        raise err
