"""
Subdomain extraction and validation

Turns a request hostname into a candidate tenant identifier and checks it
against format and reserved-name rules. Both functions are pure.

    acme.example.com        -> "acme"
    www.example.com         -> None
    acme-localhost:3000     -> "acme"
    localhost:3000?tenant=x -> "x"
"""
import re
from typing import Mapping, Optional, Tuple

import structlog
from starlette.requests import Request

logger = structlog.get_logger(__name__)

LOCAL_HOST_MARKERS = ("localhost", "127.0.0.1")

# First labels that never name a tenant
EXCLUDED_SUBDOMAINS = frozenset({"www", "api", "admin", "app"})

RESERVED_SUBDOMAINS = frozenset({
    "www", "api", "admin", "app", "mail", "ftp", "blog",
    "support", "help", "docs", "status", "cdn", "assets",
})

SUBDOMAIN_MIN_LENGTH = 2
SUBDOMAIN_MAX_LENGTH = 50

SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$", re.IGNORECASE | re.ASCII)


def extract_subdomain(
    host: Optional[str],
    forwarded_host: Optional[str] = None,
    query_params: Optional[Mapping[str, str]] = None,
    *,
    dev_fallback: str = "demo",
    dev_query_param: str = "tenant",
) -> Optional[str]:
    """
    Extract the candidate tenant subdomain from a hostname

    Args:
        host: Value of the Host header
        forwarded_host: Value of X-Forwarded-Host, used when Host is missing
        query_params: Request query parameters (only read on localhost)
        dev_fallback: Tenant returned on localhost when nothing else names one
        dev_query_param: Query parameter that overrides the tenant on localhost

    Returns:
        The candidate identifier, or None when the host names no tenant
    """
    raw_host = host or forwarded_host
    if not raw_host:
        logger.warning("no_host_header")
        return None

    hostname = raw_host.split(":", 1)[0]

    if any(marker in hostname for marker in LOCAL_HOST_MARKERS):
        # acme-localhost:3000 style test hosts
        dash_index = hostname.find("-")
        if dash_index > 0:
            return hostname[:dash_index]
        override = (query_params or {}).get(dev_query_param)
        return override or dev_fallback

    parts = hostname.split(".")
    if len(parts) < 3:
        return None

    subdomain = parts[0]
    if subdomain.lower() in EXCLUDED_SUBDOMAINS:
        return None

    return subdomain


def is_valid_subdomain(subdomain) -> bool:
    """Check length, character and reserved-name rules for a subdomain"""
    if not subdomain or not isinstance(subdomain, str):
        return False

    if not SUBDOMAIN_MIN_LENGTH <= len(subdomain) <= SUBDOMAIN_MAX_LENGTH:
        return False

    if not SUBDOMAIN_PATTERN.fullmatch(subdomain):
        return False

    return subdomain.lower() not in RESERVED_SUBDOMAINS


def request_host_parts(request: Request) -> Tuple[Optional[str], Optional[str], Mapping[str, str]]:
    """Pull (host, forwarded host, query params) out of a Starlette request"""
    return (
        request.headers.get("host"),
        request.headers.get("x-forwarded-host"),
        request.query_params,
    )
