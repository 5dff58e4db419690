"""URL resolution, canonicalization and anchor extraction."""

from __future__ import annotations

import posixpath
import re
from typing import Iterable
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup


HTTP_SCHEMES = ("http", "https")
SKIP_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "data:")
TRACKING_QUERY_PARAM_PREFIXES = ("utm_",)
TRACKING_QUERY_PARAMS = {"fbclid", "gclid", "mc_cid", "mc_eid"}


def normalize_domain(domain_or_url: str) -> str:
    """Lowercase a domain (or the host of a URL) and strip `www.` and dots."""

    raw = (domain_or_url or "").strip().lower()
    if not raw:
        return ""

    parsed = urlsplit(raw if "://" in raw else f"//{raw}")
    host = (parsed.hostname or "").strip().lower()
    if host.startswith("www."):
        host = host[4:]
    return host.strip(".")


def host_from_url(url: str) -> str:
    """Extract normalized host from URL."""

    return normalize_domain(urlsplit(url).hostname or "")


def is_http_url(url: str) -> bool:
    """Return True if URL is absolute with an http(s) scheme."""

    parsed = urlsplit(url)
    return parsed.scheme.lower() in HTTP_SCHEMES and bool(parsed.netloc)


def _normalize_netloc(scheme: str, parsed) -> str:
    host = (parsed.hostname or "").lower()
    if not host:
        return ""

    try:
        port = parsed.port
    except ValueError:
        port = None

    if port is None or (scheme, port) in {("http", 80), ("https", 443)}:
        return host
    return f"{host}:{port}"


def _normalize_path(path: str) -> str:
    if not path:
        return "/"

    collapsed = re.sub(r"/{2,}", "/", path)
    normalized = posixpath.normpath(collapsed)
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    if normalized != "/":
        normalized = normalized.rstrip("/")
    return normalized or "/"


def _normalize_query(query: str) -> str:
    if not query:
        return ""

    pairs = [
        (key, value)
        for key, value in parse_qsl(query, keep_blank_values=True)
        if key.lower() not in TRACKING_QUERY_PARAMS
        and not key.lower().startswith(TRACKING_QUERY_PARAM_PREFIXES)
    ]
    return urlencode(sorted(pairs), doseq=True)


def normalize_url(url: str) -> str | None:
    """Canonicalize an absolute http(s) URL so equivalent spellings compare equal.

    Returns `None` for URLs that are not absolute http(s) URLs.
    """

    raw = (url or "").strip()
    if not raw:
        return None

    parsed = urlsplit(raw)
    scheme = parsed.scheme.lower()
    if scheme not in HTTP_SCHEMES:
        return None

    netloc = _normalize_netloc(scheme, parsed)
    if not netloc:
        return None

    return urlunsplit(
        (scheme, netloc, _normalize_path(parsed.path), _normalize_query(parsed.query), "")
    )


def resolve_url(base_url: str, href: str | None, *, normalize: bool = True) -> str | None:
    """Resolve a possibly relative href against `base_url`.

    Non-navigational hrefs (`javascript:`, `mailto:`, bare fragments, ...) and
    non-http(s) results give `None`.
    """

    if href is None:
        return None

    candidate = href.strip()
    if not candidate or candidate.startswith("#"):
        return None
    if candidate.lower().startswith(SKIP_HREF_PREFIXES):
        return None

    absolute = urljoin(base_url, candidate)
    if normalize:
        return normalize_url(absolute)
    if is_http_url(absolute):
        return absolute
    return None


def matching_allowed_domain(url_or_host: str, allowed_domains: Iterable[str]) -> str | None:
    """Return the longest allowed domain the URL/host falls under, or None."""

    host = host_from_url(url_or_host) if "://" in url_or_host else normalize_domain(url_or_host)
    if not host:
        return None

    matches = [
        domain
        for domain in (normalize_domain(item) for item in allowed_domains)
        if domain and (host == domain or host.endswith("." + domain))
    ]
    if not matches:
        return None
    return max(matches, key=len)


def is_url_in_scope(url: str, allowed_domains: Iterable[str] | None) -> bool:
    """An empty or missing allowlist puts every http(s) URL in scope."""

    if not is_http_url(url):
        return False
    domains = list(allowed_domains or [])
    if not domains:
        return True
    return matching_allowed_domain(url, domains) is not None


def extract_links_from_html(
    html: str | bytes | BeautifulSoup,
    *,
    base_url: str,
    allowed_domains: Iterable[str] | None = None,
    include_nofollow: bool = True,
    normalize: bool = True,
) -> list[str]:
    """Extract resolved links from anchor/area tags.

    Returns absolute links in document order with duplicates removed.
    """

    soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, "lxml")
    domains = list(allowed_domains or [])

    out: list[str] = []
    seen: set[str] = set()

    for element in soup.find_all(["a", "area"], href=True):
        if not include_nofollow:
            rel_values = {value.lower() for value in (element.get("rel") or [])}
            if "nofollow" in rel_values:
                continue

        resolved = resolve_url(base_url, element.get("href"), normalize=normalize)
        if not resolved or resolved in seen:
            continue
        if domains and not is_url_in_scope(resolved, domains):
            continue

        seen.add(resolved)
        out.append(resolved)

    return out


__all__ = [
    "HTTP_SCHEMES",
    "SKIP_HREF_PREFIXES",
    "extract_links_from_html",
    "host_from_url",
    "is_http_url",
    "is_url_in_scope",
    "matching_allowed_domain",
    "normalize_domain",
    "normalize_url",
    "resolve_url",
]
