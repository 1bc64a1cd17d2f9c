"""Href normalisation and classification.

Every link found in a post goes through :func:`resolve_path`. Hrefs that
point at this site become a canonical path (``/silo/post``), which the graph
builder can compare against post paths. Everything else resolves to ``None``
and is classified as affiliate or external.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple
from urllib.parse import urlsplit

from .types import KIND_AFFILIATE, KIND_EXTERNAL, KIND_INTERNAL

DEFAULT_AFFILIATE_DOMAINS: Tuple[str, ...] = ("amazon", "amzn.to", "amzn.com", "a.co")

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")
_WEB_SCHEMES = {"http", "https"}


def normalize_host(host: str | None) -> str:
    """Lowercase a hostname and drop a leading ``www.``."""

    cleaned = (host or "").strip().lower().rstrip(".")
    if cleaned.startswith("www."):
        cleaned = cleaned[4:]
    return cleaned


def site_host(site_url: str | None) -> Optional[str]:
    """Return the normalised host of the configured site base URL."""

    if not site_url or not site_url.strip():
        return None
    raw = site_url.strip()
    if not _SCHEME_RE.match(raw) and not raw.startswith("//"):
        raw = f"//{raw}"
    try:
        host = urlsplit(raw).hostname
    except ValueError:
        return None
    return normalize_host(host) or None


def normalize_path(value: str | None) -> Optional[str]:
    """Return a canonical site path or ``None`` when nothing path-like remains.

    The result always starts with a slash, has no query string, fragment,
    empty segments or trailing slash (except for the root path). Applying
    the function twice yields the same value.
    """

    if value is None:
        return None
    cleaned = value.strip().split("#", 1)[0].split("?", 1)[0].strip()
    if not cleaned:
        return None
    segments = [segment.strip() for segment in cleaned.split("/")]
    return "/" + "/".join(segment for segment in segments if segment)


def _split_url(href: str):
    if href.startswith("//"):
        return urlsplit(f"https:{href}")
    return urlsplit(href)


def href_host(href: str | None) -> Optional[str]:
    """Return the normalised host for absolute or protocol-relative hrefs."""

    if not href:
        return None
    trimmed = href.strip()
    if not (trimmed.startswith("//") or _SCHEME_RE.match(trimmed)):
        return None
    try:
        parsed = _split_url(trimmed)
        if parsed.scheme.lower() not in _WEB_SCHEMES:
            return None
        host = parsed.hostname
    except ValueError:
        return None
    return normalize_host(host) or None


def resolve_path(href: str | None, site_url: str | None = None) -> Optional[str]:
    """Resolve ``href`` to a normalised same-site path.

    Root-relative and relative hrefs normalise directly. Protocol-relative
    and absolute URLs only resolve when their host matches ``site_url``;
    without a site URL they never resolve. Other schemes (``mailto:``,
    ``tel:`` ...) and malformed URLs return ``None``.
    """

    if href is None:
        return None
    trimmed = href.strip()
    if not trimmed or trimmed.startswith("#"):
        return None

    if trimmed.startswith("/") and not trimmed.startswith("//"):
        return normalize_path(trimmed)

    if trimmed.startswith("//") or _SCHEME_RE.match(trimmed):
        base_host = site_host(site_url)
        if base_host is None:
            return None
        try:
            parsed = _split_url(trimmed)
            if parsed.scheme.lower() not in _WEB_SCHEMES:
                return None
            host = normalize_host(parsed.hostname)
        except ValueError:
            return None
        if not host or host != base_host:
            return None
        return normalize_path(parsed.path or "/")

    return normalize_path(trimmed)


def _host_matches(host: str, domains: Iterable[str]) -> bool:
    labels = host.split(".")
    for domain in domains:
        entry = str(domain).strip().lower()
        if not entry:
            continue
        if "." in entry:
            if host == entry or host.endswith(f".{entry}"):
                return True
        elif entry in labels:
            return True
    return False


def classify_href(
    href: str | None,
    site_url: str | None = None,
    affiliate_domains: Iterable[str] = DEFAULT_AFFILIATE_DOMAINS,
) -> str:
    """Return ``internal``, ``affiliate`` or ``external`` for any href."""

    if resolve_path(href, site_url) is not None:
        return KIND_INTERNAL
    host = href_host(href)
    if host and _host_matches(host, affiliate_domains):
        return KIND_AFFILIATE
    return KIND_EXTERNAL


def is_amazon_href(href: str | None, amazon_domains: Iterable[str] = DEFAULT_AFFILIATE_DOMAINS) -> bool:
    host = href_host(href)
    return bool(host) and _host_matches(host, amazon_domains)


def post_path(silo_slug: str | None, post_slug: str | None) -> Optional[str]:
    """Build the synthesized ``/<silo>/<post>`` path for a silo member."""

    silo = (silo_slug or "").strip().strip("/")
    slug = (post_slug or "").strip().strip("/")
    if not silo or not slug:
        return None
    return normalize_path(f"/{silo}/{slug}")


def is_under_silo(path: str | None, silo_slug: str | None) -> bool:
    """Return True when ``path`` sits at or below ``/<silo_slug>``."""

    prefix = normalize_path(silo_slug)
    if not path or not prefix or prefix == "/":
        return False
    return path == prefix or path.startswith(f"{prefix}/")
