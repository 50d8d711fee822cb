"""Identity service helpers for the authorized-domain list of a project."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import httpx

from config.config import Settings
from integration.errors import RequestFailed, decode_payload
from utils.async_http import AsyncHTTP
from validators.domain_utils import url_host

logger = logging.getLogger(__name__)


@dataclass
class IdentityConfig:
    """Runtime configuration for :class:`IdentityIntegration`."""

    api_origin: str
    access_token: Optional[str]
    request_timeout: int


class IdentityIntegration:
    """Reads and rewrites the domains a project may use for sign-in flows."""

    CONFIG_PATH: str = "/admin/v2/projects/{project_id}/config"
    AUTHORIZED_DOMAINS_KEY: str = "authorizedDomains"

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        api_origin: Optional[str] = None,
        access_token: Optional[str] = None,
        request_timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        runtime_settings = settings or Settings()

        resolved_origin = api_origin or runtime_settings.identity_api_origin
        if not resolved_origin:
            raise EnvironmentError("Identity API origin is not configured.")

        self._config = IdentityConfig(
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

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def get_auth_domains(self, project_id: str) -> List[str]:
        """Return the authorized domains of ``project_id`` in vendor order."""

        path = self.CONFIG_PATH.format(project_id=project_id)
        payload = await self._request("GET", path)
        return self._extract_domains(payload)

    async def update_auth_domains(
        self, project_id: str, domains: Iterable[str]
    ) -> List[str]:
        """Replace the authorized domains of ``project_id`` with ``domains``."""

        path = self.CONFIG_PATH.format(project_id=project_id)
        body = {self.AUTHORIZED_DOMAINS_KEY: list(domains)}
        payload = await self._request(
            "PATCH",
            path,
            params={"updateMask": self.AUTHORIZED_DOMAINS_KEY},
            json=body,
        )
        logger.info(
            "Updated authorized domains for %s (%d domains)",
            project_id,
            len(body[self.AUTHORIZED_DOMAINS_KEY]),
        )
        return self._extract_domains(payload)

    async def add_auth_domains(
        self, project_id: str, urls: Iterable[str]
    ) -> List[str]:
        """Authorize the hosts of ``urls`` in addition to the current domains."""

        domains = await self.get_auth_domains(project_id)
        for url in urls:
            host = url_host(url)
            if host and host not in domains:
                domains.append(host)
        return await self.update_auth_domains(project_id, domains)

    async def remove_auth_domain(self, project_id: str, domain: str) -> List[str]:
        domains = await self.get_auth_domains(project_id)
        remaining = [existing for existing in domains if existing != domain]
        return await self.update_auth_domains(project_id, remaining)

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        response = await self._http.request(method, path, params=params, json=json)
        if not response.is_success:
            raise RequestFailed.from_response(response, path)
        return decode_payload(response, path)

    @classmethod
    def _extract_domains(cls, payload: Mapping[str, Any]) -> List[str]:
        domains = payload.get(cls.AUTHORIZED_DOMAINS_KEY) or []
        return [str(domain) for domain in domains]
