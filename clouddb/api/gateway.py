"""
clouddb.api.gateway - FastAPI Cloud Databases Gateway
======================================================

Optional REST API gateway exposing one Cloud Databases account.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Path as PathParam, Query
from fastapi.middleware.cors import CORSMiddleware

from clouddb.core.connection import Connection
from clouddb.core.exceptions import (
    AuthenticationError,
    CloudDBError,
    ConnectionError,
    ItemNotFound,
)
from clouddb.api.models import (
    EXAMPLE_FLAVOR_ID,
    EXAMPLE_INSTANCE_ID,
    FlavorInfo,
    FlavorListResponse,
    InstanceDetail,
    InstanceListResponse,
    InstanceSummary,
    NamedItemListResponse,
)

logger = logging.getLogger("clouddb.api")

UPSTREAM_ERRORS = (CloudDBError, ConnectionError, AuthenticationError)


class CloudDBGateway:
    """
    Configuration and connection holder for the API gateway.

    Reads configuration from environment variables by default. The
    connection is created on first use and reused; its pipeline refreshes
    the token on its own.
    """

    def __init__(
        self,
        username: Optional[str] = None,
        api_key: Optional[str] = None,
        region: Optional[str] = None,
        auth_url: Optional[str] = None,
        gateway_api_key: Optional[str] = None,
        connection_factory: Optional[Callable[..., Connection]] = None,
    ):
        self.username = username or os.environ.get("CLOUDDB_USERNAME", "")
        self.api_key = api_key or os.environ.get("CLOUDDB_API_KEY", "")
        self.region = region or os.environ.get("CLOUDDB_REGION", "")
        self.auth_url = auth_url or os.environ.get("CLOUDDB_AUTH_URL")
        self.gateway_api_key = gateway_api_key or os.environ.get("CLOUDDB_GATEWAY_API_KEY", "")
        self._factory = connection_factory or Connection

        self._conn: Optional[Connection] = None
        self._lock = threading.Lock()

    def validate(self) -> None:
        """Validate configuration. Raises RuntimeError if invalid."""
        if not (self.username and self.api_key and self.region):
            raise RuntimeError("Missing CLOUDDB_USERNAME, CLOUDDB_API_KEY or CLOUDDB_REGION")
        if not self.gateway_api_key:
            raise RuntimeError("Missing CLOUDDB_GATEWAY_API_KEY - required for security")

    @property
    def connection(self) -> Connection:
        with self._lock:
            if self._conn is None:
                self._conn = self._factory(
                    username=self.username,
                    api_key=self.api_key,
                    region=self.region,
                    auth_url=self.auth_url,
                    timeout=float(os.environ.get("CLOUDDB_TIMEOUT", "60")),
                )
            return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


# Global gateway instance (lazy init)
_gateway: Optional[CloudDBGateway] = None


def get_gateway() -> CloudDBGateway:
    """Get or create the global gateway instance."""
    global _gateway
    if _gateway is None:
        _gateway = CloudDBGateway()
    return _gateway


def _upstream_error(e: Exception) -> HTTPException:
    if isinstance(e, ItemNotFound):
        return HTTPException(status_code=404, detail={"fault": e.fault, "error": e.message})
    if isinstance(e, CloudDBError):
        return HTTPException(
            status_code=502,
            detail={"fault": e.fault, "upstream_status": e.status, "error": e.message},
        )
    logger.warning("Upstream call failed: %s", e)
    return HTTPException(status_code=502, detail={"fault": type(e).__name__, "error": str(e)})


def create_app(
    gateway: Optional[CloudDBGateway] = None,
    validate_on_startup: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application.

    Parameters
    ----------
    gateway : CloudDBGateway, optional
        Custom gateway configuration. If None, reads from environment.
    validate_on_startup : bool
        If True, log configuration problems when the app is created.

    Returns
    -------
    FastAPI
        Configured FastAPI application
    """
    global _gateway

    _gateway = gateway or CloudDBGateway()

    if validate_on_startup:
        try:
            _gateway.validate()
        except RuntimeError as e:
            # app creation is still allowed so tests and docs can load
            logger.warning("Gateway configuration incomplete: %s", e)

    app = FastAPI(
        title="Cloud Databases Gateway",
        description="""
## Cloud Databases API Gateway

Read access to the instances and flavors of one Cloud Databases account.

### Authentication
Include your gateway API key in the `x-api-key` header.
        """,
        version="0.1.0",
        openapi_tags=[
            {"name": "Instances", "description": "Database instances, databases and users"},
            {"name": "Flavors", "description": "Instance sizes"},
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Dependencies
    # -------------------------------------------------------------------------

    def require_api_key(x_api_key: str = Header(...)) -> None:
        gw = get_gateway()
        if not gw.gateway_api_key or x_api_key != gw.gateway_api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    def connection() -> Connection:
        try:
            return get_gateway().connection
        except AuthenticationError as e:
            raise _upstream_error(e)
        except ValueError as e:
            logger.error("Gateway misconfigured: %s", e)
            raise HTTPException(status_code=503, detail={"fault": "ConfigurationError", "error": str(e)})

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    @app.get("/health")
    def health() -> Dict[str, Any]:
        """Health check endpoint."""
        return {"ok": True, "version": "0.1.0"}

    @app.get("/instances", tags=["Instances"], response_model=InstanceListResponse)
    def list_instances(
        detail: bool = Query(default=False, description="Include hostname, flavor and volume"),
        _: None = Depends(require_api_key),
        conn: Connection = Depends(connection),
    ) -> InstanceListResponse:
        """List database instances."""
        try:
            rows = conn.list_instances_detail() if detail else conn.list_instances()
        except UPSTREAM_ERRORS as e:
            raise _upstream_error(e)
        items = [InstanceSummary(**{k: v for k, v in r.items() if k in InstanceSummary.model_fields}) for r in rows]
        return InstanceListResponse(count=len(items), items=items)

    @app.get("/instances/{instance_id}", tags=["Instances"], response_model=InstanceDetail)
    def get_instance(
        instance_id: str = PathParam(..., examples=[EXAMPLE_INSTANCE_ID]),
        _: None = Depends(require_api_key),
        conn: Connection = Depends(connection),
    ) -> InstanceDetail:
        """Get one instance."""
        try:
            inst = conn.get_instance(instance_id)
        except UPSTREAM_ERRORS as e:
            raise _upstream_error(e)
        return InstanceDetail(**inst.to_dict())

    @app.get("/instances/{instance_id}/databases", tags=["Instances"], response_model=NamedItemListResponse)
    def list_databases(
        instance_id: str = PathParam(..., examples=[EXAMPLE_INSTANCE_ID]),
        _: None = Depends(require_api_key),
        conn: Connection = Depends(connection),
    ) -> NamedItemListResponse:
        """List databases on an instance."""
        try:
            rows = conn.get_instance(instance_id).list_databases()
        except UPSTREAM_ERRORS as e:
            raise _upstream_error(e)
        return NamedItemListResponse(instance_id=instance_id, count=len(rows), items=rows)

    @app.get("/instances/{instance_id}/users", tags=["Instances"], response_model=NamedItemListResponse)
    def list_users(
        instance_id: str = PathParam(..., examples=[EXAMPLE_INSTANCE_ID]),
        _: None = Depends(require_api_key),
        conn: Connection = Depends(connection),
    ) -> NamedItemListResponse:
        """List users on an instance."""
        try:
            rows = conn.get_instance(instance_id).list_users()
        except UPSTREAM_ERRORS as e:
            raise _upstream_error(e)
        return NamedItemListResponse(instance_id=instance_id, count=len(rows), items=rows)

    @app.get("/flavors", tags=["Flavors"], response_model=FlavorListResponse)
    def list_flavors(
        detail: bool = Query(default=False, description="Include ram and vcpus"),
        _: None = Depends(require_api_key),
        conn: Connection = Depends(connection),
    ) -> FlavorListResponse:
        """List flavors."""
        try:
            rows = conn.list_flavors_detail() if detail else conn.list_flavors()
        except UPSTREAM_ERRORS as e:
            raise _upstream_error(e)
        items = [FlavorInfo(**{k: v for k, v in r.items() if k in FlavorInfo.model_fields}) for r in rows]
        return FlavorListResponse(count=len(items), items=items)

    @app.get("/flavors/{flavor_id}", tags=["Flavors"], response_model=FlavorInfo)
    def get_flavor(
        flavor_id: str = PathParam(..., examples=[EXAMPLE_FLAVOR_ID]),
        _: None = Depends(require_api_key),
        conn: Connection = Depends(connection),
    ) -> FlavorInfo:
        """Get one flavor."""
        try:
            flavor = conn.get_flavor(flavor_id)
        except UPSTREAM_ERRORS as e:
            raise _upstream_error(e)
        return FlavorInfo(**flavor.to_dict())

    return app
