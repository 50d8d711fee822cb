"""Schemas describing hosting and long-running operation payloads."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from validators.domain_utils import url_host


class HostingResource(BaseModel):
    """Base for vendor resources: camelCase on the wire, unknown keys kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Site(HostingResource):
    default_url: Optional[str] = Field(default=None, alias="defaultUrl")
    app_id: Optional[str] = Field(default=None, alias="appId")
    labels: Optional[Dict[str, str]] = None

    @property
    def site_id(self) -> Optional[str]:
        """Last segment of ``projects/<p>/sites/<site>`` (or the bare name)."""

        if not self.name:
            return None
        return self.name.rsplit("/", 1)[-1]


class Channel(HostingResource):
    url: Optional[str] = None
    ttl: Optional[str] = None
    expire_time: Optional[str] = Field(default=None, alias="expireTime")
    labels: Optional[Dict[str, str]] = None
    release: Optional[Dict[str, Any]] = None

    @property
    def host(self) -> Optional[str]:
        return url_host(self.url)


class Version(HostingResource):
    status: Optional[str] = None


class Release(HostingResource):
    version: Optional[Dict[str, Any]] = None


class OperationError(BaseModel):
    model_config = ConfigDict(extra="allow")

    code: Optional[int] = None
    message: str = ""
    details: Optional[list] = None


class Operation(BaseModel):
    """Asynchronous vendor job.

    ``response`` and ``error`` are mutually exclusive, and a finished
    operation carries exactly one of them.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    done: bool = False
    response: Optional[Dict[str, Any]] = None
    error: Optional[OperationError] = None

    @model_validator(mode="after")
    def _check_outcome(self) -> "Operation":
        if self.response is not None and self.error is not None:
            raise ValueError("operation carries both a response and an error")
        if self.done and self.response is None and self.error is None:
            raise ValueError("finished operation carries neither response nor error")
        return self

    @property
    def failed(self) -> bool:
        return self.done and self.error is not None


__all__ = [
    "Channel",
    "HostingResource",
    "Operation",
    "OperationError",
    "Release",
    "Site",
    "Version",
]
