"""
Cloud Databases Python SDK (clouddb)
====================================

A client library for the Rackspace Cloud Databases API: authenticate,
then list, create and destroy database instances, databases, users and
flavors.

Usage
-----
>>> from clouddb import Connection
>>>
>>> with Connection(username="jdoe", api_key="0123abcd", region="ord") as dbaas:
...     for inst in dbaas.list_instances():
...         print(inst["id"], inst["status"])
...
...     i = dbaas.create_instance(
...         flavor_ref=dbaas.list_flavors()[0]["links"][0]["href"],
...         name="test_instance",
...         volume=1,
...         databases=[{"name": "testdb"}],
...     )

Subpackages
-----------
- clouddb.core: Authentication, request pipeline, errors, configuration
- clouddb.resources: Instance, Database, User and Flavor objects
- clouddb.api: Optional FastAPI REST gateway

"""

__version__ = "0.1.0"

# Core exports - available at package root
from clouddb.core.exceptions import (
    CloudDBException,
    CloudDBError,
    AuthenticationError,
    ConnectionError,
    MissingArgument,
    ArgumentSyntaxError,
    ServiceFault,
    InstanceFault,
    ServiceUnavailable,
    Unauthorized,
    BadRequest,
    ItemNotFound,
    OverLimit,
    ImmutableEntity,
    UnprocessableEntity,
    Other,
)

from clouddb.core.session import (
    AUTH_USA,
    AUTH_UK,
    Credentials,
    CloudDBConfig,
    CloudDBSession,
)

from clouddb.core.connection import Connection

from clouddb.resources import Instance, Database, User, Flavor

__all__ = [
    # Version
    "__version__",
    # Core
    "AUTH_USA",
    "AUTH_UK",
    "Credentials",
    "CloudDBConfig",
    "CloudDBSession",
    "Connection",
    # Resources
    "Instance",
    "Database",
    "User",
    "Flavor",
    # Errors
    "CloudDBException",
    "CloudDBError",
    "AuthenticationError",
    "ConnectionError",
    "MissingArgument",
    "ArgumentSyntaxError",
    "ServiceFault",
    "InstanceFault",
    "ServiceUnavailable",
    "Unauthorized",
    "BadRequest",
    "ItemNotFound",
    "OverLimit",
    "ImmutableEntity",
    "UnprocessableEntity",
    "Other",
]
