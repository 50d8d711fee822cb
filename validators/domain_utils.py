"""Helpers for classifying hosting domains and pruning stale channel domains."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

CHANNEL_DOMAIN_SUFFIX = ".web.app"


def channel_domain_pattern(site: str) -> re.Pattern[str]:
    """Return the pattern matching preview-channel hosts of ``site``.

    Channel hosts look like ``<site>--<channelId>-<suffix>.web.app``. The
    pattern is anchored on both ends so custom domains that merely contain
    ``--`` and hosts belonging to other sites never match.
    """

    return re.compile(
        rf"^{re.escape(site)}--[^.]+-[^.]+{re.escape(CHANNEL_DOMAIN_SUFFIX)}$",
        re.IGNORECASE,
    )


def is_channel_domain(domain: str, site: str) -> bool:
    return bool(channel_domain_pattern(site).match(domain))


def url_host(url: Optional[str]) -> Optional[str]:
    """Return the lower-cased host of ``url`` (bare hosts are accepted)."""

    if not url:
        return None
    candidate = url if "//" in url else f"//{url}"
    return urlsplit(candidate).hostname


def prune_channel_domains(
    domains: Iterable[str], channel_urls: Iterable[Optional[str]], site: str
) -> List[str]:
    """Drop channel domains of ``site`` that no live channel serves anymore.

    Domains that do not look like a channel host of ``site`` are always kept.
    Order is preserved and nothing else is added or removed.
    """

    pattern = channel_domain_pattern(site)
    live_hosts = {host for host in map(url_host, channel_urls) if host}

    kept: List[str] = []
    for domain in domains:
        if pattern.match(domain) and domain.lower() not in live_hosts:
            logger.info(
                "Dropping authorized domain of expired channel: %s", domain
            )
            continue
        kept.append(domain)
    return kept


__all__ = [
    "CHANNEL_DOMAIN_SUFFIX",
    "channel_domain_pattern",
    "is_channel_domain",
    "prune_channel_domains",
    "url_host",
]
