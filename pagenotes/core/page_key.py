"""
Page identity normalization.

Used by whoever resolves the active tab's URL into a page key. The note
store itself never normalizes; it groups notes by whatever key it is given.
"""

from enum import Enum
from urllib.parse import urlsplit, urlunsplit

from pagenotes.config import NotesConfig
from pagenotes.utils.exceptions import ValidationError

_DEFAULT_PORTS = {"http": 80, "https": 443}


class PageKeyPolicy(str, Enum):
    """How much of a URL identifies a page."""

    ORIGIN = "origin"  # scheme://host[:port]
    URL = "url"  # origin + path + query, fragment dropped
    FULL = "full"  # everything, fragment included


def normalize_page_key(url: str, policy: PageKeyPolicy | str = PageKeyPolicy.URL) -> str:
    """
    Normalize a URL into a page key.

    Scheme and host are lowercased and default ports are dropped, so
    "HTTPS://Example.com:443/a" and "https://example.com/a" share notes.

    Args:
        url: Absolute URL of the page
        policy: Grouping policy (see PageKeyPolicy)

    Returns:
        Normalized page key

    Raises:
        ValidationError: If the URL has no scheme or host, or the policy is unknown
    """
    try:
        policy = PageKeyPolicy(policy)
    except ValueError as e:
        raise ValidationError(f"Unknown page key policy: {policy}") from e

    if not url or not url.strip():
        raise ValidationError("url cannot be empty")

    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.hostname:
        raise ValidationError(f"Not an absolute URL: {url}", context={"url": url})

    scheme = parts.scheme.lower()
    host = parts.hostname.lower()
    if ":" in host:
        # IPv6 literal
        host = f"[{host}]"

    try:
        port = parts.port
    except ValueError as e:
        raise ValidationError(f"Invalid port in URL: {url}", context={"url": url}) from e

    netloc = host
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{host}:{port}"

    if policy == PageKeyPolicy.ORIGIN:
        return f"{scheme}://{netloc}"

    path = parts.path or "/"
    fragment = parts.fragment if policy == PageKeyPolicy.FULL else ""
    return urlunsplit((scheme, netloc, path, parts.query, fragment))


class PageKeyResolver:
    """
    Turns the active tab's URL into a page key using a fixed policy.

    Presentation contexts share one resolver configuration so that they
    all group notes the same way.
    """

    def __init__(self, policy: PageKeyPolicy | str = PageKeyPolicy.URL):
        try:
            self.policy = PageKeyPolicy(policy)
        except ValueError as e:
            raise ValidationError(f"Unknown page key policy: {policy}") from e

    @classmethod
    def from_config(cls, config: NotesConfig) -> "PageKeyResolver":
        return cls(config.page_key_policy)

    def resolve(self, url: str) -> str:
        return normalize_page_key(url, self.policy)
