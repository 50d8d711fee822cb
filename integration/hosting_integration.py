"""Hosting API integration: sites, channels, versions and releases."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError
from tenacity.stop import stop_base
from tenacity.wait import wait_base

from config.config import Settings
from integration.errors import (
    ListNotFound,
    OperationFailed,
    OperationTimeout,
    RequestFailed,
    decode_payload,
)
from integration.identity_integration import IdentityIntegration
from schemas.hosting import Channel, Operation, Release, Site, Version
from utils.async_http import AsyncHTTP
from utils.polling import PollTimeoutError, default_stop, default_wait, poll_until_done
from validators.domain_utils import prune_channel_domains

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

API_VERSION = "v1beta1"
PAGE_SIZE = 10
DEFAULT_CHANNEL_TTL_MILLIS = 604_800_000  # 7 days


def format_ttl(ttl_millis: Optional[int] = None) -> str:
    """Render a TTL in milliseconds as a whole-second duration (``"60s"``)."""

    millis = DEFAULT_CHANNEL_TTL_MILLIS if ttl_millis is None else ttl_millis
    return f"{int(millis) // 1000}s"


@dataclass
class HostingConfig:
    """Runtime configuration for :class:`HostingIntegration`."""

    api_origin: str
    access_token: Optional[str]
    request_timeout: int


class HostingIntegration:
    """Wrapper around the hosting REST API.

    Every method issues its requests sequentially and maps the outcome onto
    typed models or the errors in :mod:`integration.errors`. Single-resource
    reads answer ``None`` for 404, list reads raise :class:`ListNotFound`.
    """

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        api_origin: Optional[str] = None,
        access_token: Optional[str] = None,
        request_timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        identity: Optional[IdentityIntegration] = None,
        poll_wait: Optional[wait_base] = None,
        poll_stop: Optional[stop_base] = None,
    ) -> None:
        runtime_settings = settings or Settings()

        resolved_origin = api_origin or runtime_settings.hosting_api_origin
        if not resolved_origin:
            raise EnvironmentError("Hosting API origin is not configured.")

        self._config = HostingConfig(
            api_origin=resolved_origin.rstrip("/"),
            access_token=access_token or runtime_settings.hosting_access_token,
            request_timeout=request_timeout or runtime_settings.hosting_request_timeout,
        )

        headers = {"Content-Type": "application/json"}
        if self._config.access_token:
            headers["Authorization"] = f"Bearer {self._config.access_token}"
        self._http = AsyncHTTP(
            base_url=self._config.api_origin,
            headers=headers,
            timeout=float(self._config.request_timeout),
            transport=transport,
        )
        self._owns_identity = identity is None
        self.identity = identity or IdentityIntegration(
            settings=runtime_settings,
            access_token=access_token,
            request_timeout=request_timeout,
            transport=transport,
        )
        self._poll_wait = poll_wait or default_wait(
            runtime_settings.operation_poll_interval_seconds,
            runtime_settings.operation_poll_max_interval_seconds,
        )
        self._poll_stop = poll_stop or default_stop(
            runtime_settings.operation_poll_max_attempts
        )

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------
    async def get_channel(
        self, project_id: str, site: str, channel_id: str
    ) -> Optional[Channel]:
        """Return the channel or ``None`` when it does not exist."""

        path = self._site_path(project_id, site, "channels", channel_id)
        return await self._get_optional(path, Channel)

    async def list_channels(self, project_id: str, site: str) -> List[Channel]:
        path = self._site_path(project_id, site, "channels")
        return await self._list_all(path, key="channels", model=Channel)

    async def create_channel(
        self,
        project_id: str,
        site: str,
        channel_id: str,
        ttl_millis: Optional[int] = None,
    ) -> Channel:
        path = self._site_path(project_id, site, "channels")
        payload = await self._request(
            "POST",
            path,
            params={"channelId": channel_id},
            json={"ttl": format_ttl(ttl_millis)},
        )
        return self._parse(payload, Channel, path)

    async def update_channel_ttl(
        self,
        project_id: str,
        site: str,
        channel_id: str,
        ttl_millis: Optional[int] = None,
    ) -> Channel:
        path = self._site_path(project_id, site, "channels", channel_id)
        payload = await self._request(
            "PATCH",
            path,
            params={"updateMask": "ttl"},
            json={"ttl": format_ttl(ttl_millis)},
        )
        return self._parse(payload, Channel, path)

    async def delete_channel(self, project_id: str, site: str, channel_id: str) -> None:
        path = self._site_path(project_id, site, "channels", channel_id)
        await self._request("DELETE", path, expect_body=False)

    # ------------------------------------------------------------------
    # Versions and releases
    # ------------------------------------------------------------------
    async def clone_version(
        self, site: str, source_version: str, finalize: bool = False
    ) -> Version:
        """Clone ``source_version`` into a new version of ``site``.

        The vendor answers with a long-running operation which is polled
        until it reports ``done``; its ``response`` is the new version.
        """

        path = self._site_path("-", site, "versions:clone")
        payload = await self._request(
            "POST",
            path,
            json={"sourceVersion": source_version, "finalize": finalize},
        )
        operation = self._parse(payload, Operation, path)
        if not operation.done:
            operation = await self._wait_for_operation(operation.name)

        if operation.error is not None:
            logger.warning(
                "Clone of %s failed: %s", source_version, operation.error.message
            )
            raise OperationFailed(operation.name, operation.error.message)
        return self._parse(operation.response or {}, Version, operation.name)

    async def list_versions(self, project_id: str, site: str) -> List[Version]:
        path = self._site_path(project_id, site, "versions")
        return await self._list_all(path, key="versions", model=Version)

    async def create_release(
        self, site: str, channel_id: str, version_name: str
    ) -> Release:
        path = self._site_path("-", site, "channels", channel_id, "releases")
        payload = await self._request(
            "POST", path, params={"versionName": version_name}
        )
        return self._parse(payload, Release, path)

    # ------------------------------------------------------------------
    # Sites
    # ------------------------------------------------------------------
    async def get_site(self, project_id: str, site: str) -> Optional[Site]:
        """Return the site or ``None`` when it does not exist."""

        return await self._get_optional(self._site_path(project_id, site), Site)

    async def list_sites(self, project_id: str) -> List[Site]:
        path = f"/{API_VERSION}/projects/{project_id}/sites"
        return await self._list_all(path, key="sites", model=Site)

    async def create_site(self, project_id: str, site: str, app_id: str = "") -> Site:
        path = f"/{API_VERSION}/projects/{project_id}/sites"
        payload = await self._request(
            "POST", path, params={"siteId": site}, json={"appId": app_id}
        )
        return self._parse(payload, Site, path)

    async def update_site(
        self, project_id: str, site: Site, fields: Sequence[str]
    ) -> Site:
        """Write the listed ``fields`` of ``site`` (camelCase vendor names).

        The update mask is the comma-joined field list and the body carries
        only those fields, so anything not listed is left untouched remotely.
        """

        if not fields:
            raise ValueError("update_site requires at least one field to update")
        if not site.site_id:
            raise ValueError("update_site requires a site with a name")

        current = site.model_dump(by_alias=True)
        unknown = [field for field in fields if field not in current]
        if unknown:
            raise ValueError(f"Unknown site fields: {', '.join(unknown)}")

        path = self._site_path(project_id, site.site_id)
        payload = await self._request(
            "PATCH",
            path,
            params={"updateMask": ",".join(fields)},
            json={field: current[field] for field in fields},
        )
        return self._parse(payload, Site, path)

    async def delete_site(self, project_id: str, site: str) -> None:
        await self._request("DELETE", self._site_path(project_id, site), expect_body=False)

    # ------------------------------------------------------------------
    # Authorized domain reconciliation
    # ------------------------------------------------------------------
    async def get_clean_domains(self, project_id: str, site: str) -> List[str]:
        """Return the authorized domains minus those of expired channels.

        A domain shaped like a preview-channel host of ``site`` survives only
        when a current channel is served from it; every other domain is kept.
        """

        channels = await self.list_channels(project_id, site)
        domains = await self.identity.get_auth_domains(project_id)
        return prune_channel_domains(
            domains, (channel.url for channel in channels), site
        )

    async def clean_auth_state(
        self, project_id: str, sites: Sequence[str]
    ) -> Dict[str, List[str]]:
        """Prune expired channel domains for each site, one site at a time."""

        updated: Dict[str, List[str]] = {}
        for site in sites:
            domains = await self.get_clean_domains(project_id, site)
            updated[site] = await self.identity.update_auth_domains(project_id, domains)
        return updated

    async def aclose(self) -> None:
        """Close the HTTP client, and the identity client when created here."""

        await self._http.aclose()
        if self._owns_identity:
            await self.identity.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _site_path(project_id: str, site: str, *segments: str) -> str:
        path = f"/{API_VERSION}/projects/{project_id}/sites/{site}"
        if segments:
            path = "/".join((path, *segments))
        return path

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        logger.debug("Hosting request", extra={"method": method, "path": path})
        return await self._http.request(method, path, params=params, json=json)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        expect_body: bool = True,
    ) -> Dict[str, Any]:
        response = await self._send(method, path, params=params, json=json)
        if not response.is_success:
            raise RequestFailed.from_response(response, path)
        if not expect_body:
            return {}
        return decode_payload(response, path)

    async def _get_optional(self, path: str, model: Type[ModelT]) -> Optional[ModelT]:
        response = await self._send("GET", path)
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise RequestFailed.from_response(response, path)
        return self._parse(decode_payload(response, path), model, path)

    async def _list_all(
        self, path: str, *, key: str, model: Type[ModelT]
    ) -> List[ModelT]:
        items: List[ModelT] = []
        page_token = ""
        first_page = True

        while True:
            response = await self._send(
                "GET", path, params={"pageToken": page_token, "pageSize": PAGE_SIZE}
            )
            if first_page and response.status_code == 404:
                raise ListNotFound(key, path)
            if not response.is_success:
                raise RequestFailed.from_response(response, path)
            first_page = False

            payload = decode_payload(response, path)
            items.extend(self._parse(item, model, path) for item in payload.get(key) or [])
            page_token = payload.get("nextPageToken")
            if not page_token:
                break

        return items

    async def _fetch_operation(self, operation_name: str) -> Operation:
        path = f"/{API_VERSION}/{operation_name}"
        payload = await self._request("GET", path)
        return self._parse(payload, Operation, path)

    async def _wait_for_operation(self, operation_name: str) -> Operation:
        try:
            return await poll_until_done(
                lambda: self._fetch_operation(operation_name),
                is_done=lambda operation: operation.done,
                wait=self._poll_wait,
                stop=self._poll_stop,
                description=f"Operation {operation_name}",
            )
        except PollTimeoutError as exc:
            raise OperationTimeout(operation_name, exc.attempts) from exc

    @staticmethod
    def _parse(payload: Any, model: Type[ModelT], path: str) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise RequestFailed(
                f"Unexpected response from {path}: {exc}", path=path
            ) from exc
