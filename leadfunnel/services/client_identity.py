"""Best-effort client identification from edge and proxy headers."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Optional

UNKNOWN_CLIENT = "unknown"

_COUNTRY_PATTERN = re.compile(r"^[A-Z]{2}$")


@dataclass(frozen=True)
class RequestMeta:
    client_id: str
    user_agent: Optional[str] = None
    country: Optional[str] = None


def extract_client_identifier(headers: Mapping[str, str]) -> str:
    """
    First non-empty of: edge connecting IP, first X-Forwarded-For hop,
    X-Real-IP. Falls back to a shared sentinel.
    """
    connecting_ip = (headers.get("cf-connecting-ip") or "").strip()
    if connecting_ip:
        return connecting_ip

    forwarded_for = headers.get("x-forwarded-for") or ""
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop

    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip

    return UNKNOWN_CLIENT


def extract_country(headers: Mapping[str, str]) -> Optional[str]:
    country = (headers.get("cf-ipcountry") or "").strip().upper()
    if _COUNTRY_PATTERN.match(country):
        return country
    return None


def build_request_meta(headers: Mapping[str, str]) -> RequestMeta:
    user_agent = (headers.get("user-agent") or "").strip() or None
    return RequestMeta(
        client_id=extract_client_identifier(headers),
        user_agent=user_agent,
        country=extract_country(headers),
    )
