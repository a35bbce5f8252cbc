"""
clouddb.api.models - Pydantic models for API responses
======================================================
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


EXAMPLE_INSTANCE_ID = "692d8418-7a8f-47f1-8060-59846c6e024f"
EXAMPLE_FLAVOR_ID = "1"


class InstanceSummary(BaseModel):
    """One entry of an instance listing."""

    id: str
    name: Optional[str] = None
    status: Optional[str] = None
    hostname: Optional[str] = None
    links: List[Dict[str, Any]] = Field(default_factory=list)


class InstanceListResponse(BaseModel):
    count: int
    items: List[InstanceSummary]


class InstanceDetail(BaseModel):
    """A single instance, as loaded by :class:`clouddb.Instance`."""

    id: str = Field(description="Instance id")
    name: Optional[str] = Field(default=None, description="Instance name")
    hostname: Optional[str] = Field(default=None, description="DNS hostname")
    flavor_id: Optional[str] = Field(default=None, description="Flavor id")
    root_enabled: Optional[bool] = Field(default=None, description="Root user enabled")
    volume_used: Optional[float] = Field(default=None, description="Volume used (GB)")
    volume_size: Optional[float] = Field(default=None, description="Volume size (GB)")
    status: Optional[str] = Field(default=None, description="BUILD, ACTIVE, ...")
    created: Optional[str] = None
    updated: Optional[str] = None
    links: List[Dict[str, Any]] = Field(default_factory=list)


class NamedItemListResponse(BaseModel):
    """Databases or users of an instance."""

    instance_id: str
    count: int
    items: List[Dict[str, Any]]


class FlavorInfo(BaseModel):
    id: Any = Field(json_schema_extra={"example": EXAMPLE_FLAVOR_ID})
    name: Optional[str] = None
    ram: Optional[int] = None
    vcpus: Optional[int] = None
    links: List[Dict[str, Any]] = Field(default_factory=list)


class FlavorListResponse(BaseModel):
    count: int
    items: List[FlavorInfo]
