"""
clouddb.core - Core connectivity and authentication
====================================================

This module provides the foundational classes for talking to Cloud Databases:

- Credentials / CloudDBConfig: account credentials and connection settings
- Authenticator: exchanges credentials for a token and service location
- CloudDBSession: request pipeline with transport retry and re-authentication
- Connection: high-level entry point (env-aware, account-level operations)
- exceptions: error taxonomy and fault classification

"""

from clouddb.core.exceptions import (
    CloudDBException,
    CloudDBError,
    AuthenticationError,
    ConnectionError,
    MissingArgument,
    ArgumentSyntaxError,
    error_for,
    raise_for_status,
)

from clouddb.core.session import (
    AUTH_USA,
    AUTH_UK,
    Credentials,
    ServiceLocation,
    AuthSession,
    CloudDBConfig,
    Authenticator,
    CloudDBSession,
)

from clouddb.core.connection import Connection

__all__ = [
    "CloudDBException",
    "CloudDBError",
    "AuthenticationError",
    "ConnectionError",
    "MissingArgument",
    "ArgumentSyntaxError",
    "error_for",
    "raise_for_status",
    "AUTH_USA",
    "AUTH_UK",
    "Credentials",
    "ServiceLocation",
    "AuthSession",
    "CloudDBConfig",
    "Authenticator",
    "CloudDBSession",
    "Connection",
]
