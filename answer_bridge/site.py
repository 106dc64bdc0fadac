"""Storefront site constants and URL helpers."""

from __future__ import annotations

from urllib.parse import urlsplit

SITE_DOMAIN = "grest.in"
SUPPORT_CONTACT_URL = f"https://{SITE_DOMAIN}/pages/contact-us"
PRODUCTS_PATH_PREFIX = "/products/"


def is_site_host(host: str | None) -> bool:
    """True for the storefront domain and its subdomains."""
    host = (host or "").lower().rstrip(".")
    return host == SITE_DOMAIN or host.endswith(f".{SITE_DOMAIN}")


def is_site_url(url: str | None) -> bool:
    """True for an absolute http(s) URL on the storefront."""
    try:
        parts = urlsplit((url or "").strip())
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and is_site_host(parts.hostname)


def is_product_url(url: str | None) -> bool:
    """True for a storefront product page URL."""
    if not is_site_url(url):
        return False
    return urlsplit(url.strip()).path.startswith(PRODUCTS_PATH_PREFIX)


def clean_url(url: str) -> str | None:
    """Strip query string and fragment, keeping scheme, host and path."""
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}{parts.path}"
