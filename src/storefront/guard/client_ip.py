"""Client address extraction from proxy headers.

Headers can be spoofed, so the result is good enough for rate limiting and
nothing stronger.
"""

from collections.abc import Mapping


def client_ip_from_headers(headers: Mapping[str, str], fallback: str | None = None) -> str | None:
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip

    return fallback or None
