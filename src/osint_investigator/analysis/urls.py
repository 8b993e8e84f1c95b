from __future__ import annotations

from urllib.parse import urlsplit

_SCHEMES = ("http://", "https://")


def normalize_url(url: str) -> str:
    """Return the dedup key for a web result URL.

    The scheme, a leading ``www.``, the query string, the fragment and any
    trailing slash are dropped and the result is lower-cased, so
    ``https://WWW.Example.com/page/`` and ``http://example.com/page`` share a key.
    """
    if not url:
        return ""
    candidate = url.strip()
    lowered = candidate.lower()
    if not lowered.startswith(_SCHEMES) and "://" not in lowered:
        candidate = f"//{candidate}"

    try:
        parts = urlsplit(candidate)
        host = parts.netloc.lower()
        path = parts.path
    except ValueError:
        host, path = "", candidate.split("://", 1)[-1].split("?", 1)[0].split("#", 1)[0]

    if host.startswith("www."):
        host = host[4:]
    return f"{host}{path}".rstrip("/").lower()


def display_domain(url: str) -> str:
    """Host portion of a URL without ``www.``, used when an agent omits displayLink."""
    return normalize_url(url).split("/", 1)[0]


__all__ = ["normalize_url", "display_domain"]
