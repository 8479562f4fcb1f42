"""URL normalization for call targets.

A service calls ``fetch(`http://user-service.internal/users/${id}`)``
while the producer defines ``GET /users/:id``. Before the two can be
compared the call target has to lose its host, query string and
interpolations. The normalizer also decides whether a target lies inside
the analyzed organization at all.

Patterns handled, in order:

1. ``ENV_VAR:API_URL:/users`` sentinels, ``${API_URL}/users`` base
   interpolations and ``process.env.API_URL + "/users"`` expressions
2. absolute and protocol-relative URLs; an interpolated host
   (``https://${API_HOST}/users``) is treated like a base env var
3. remaining ``${name}`` interpolations, which become ``:name`` parameters
4. query strings and fragments
5. duplicate and trailing slashes
"""

import re

from api_contract_checker.config import AnalyzerConfig
from api_contract_checker.engine.models import NormalizedUrl, UrlKind

SENTINEL_PREFIX = "ENV_VAR:"
EXPRESSION_PARAM = ":param"

_INTERPOLATION = re.compile(r"\$\{([^}]*)\}")
_LEADING_INTERPOLATION = re.compile(r"^\$\{([^}]*)\}")
_PROCESS_ENV = re.compile(r"process\.env\.([A-Za-z_][A-Za-z0-9_]*)")
_ABSOLUTE = re.compile(r"^(?:[A-Za-z][A-Za-z0-9+.\-]*:)?//([^/?#]*)(.*)$", re.DOTALL)
_BARE_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$.]*$")
_UNESCAPED_QUERY = re.compile(r"(?<!\\)\?")
_REPEATED_SLASH = re.compile(r"/{2,}")


class UrlNormalizer:
    """Classifies raw call targets as internal, external or unclassified."""

    def __init__(self, config: AnalyzerConfig | None = None):
        config = config or AnalyzerConfig()
        self.internal_domains = [_bare_host(d) for d in config.internal_domains if d.strip()]
        self.internal_env_vars = set(config.internal_env_vars)
        self.external_env_vars = set(config.external_env_vars)

    def normalize(self, raw_url: str) -> NormalizedUrl:
        """Normalize a call target for matching against endpoint paths."""
        url = raw_url.strip()

        if not url:
            return NormalizedUrl(kind=UrlKind.UNCLASSIFIED, original=raw_url)

        if url.startswith(SENTINEL_PREFIX):
            parts = url.split(":", 2)
            name = parts[1]
            rest = parts[2] if len(parts) == 3 else ""
            return self._from_env_var(raw_url, name, rest, f"ENV_VAR:{name}")

        match = _LEADING_INTERPOLATION.match(url)
        if match:
            name = match.group(1).strip()
            return self._from_env_var(raw_url, name, url[match.end():], match.group(0))

        match = _PROCESS_ENV.search(url)
        if match:
            name = match.group(1)
            return self._from_env_var(
                raw_url, name, _process_env_rest(url[match.end():]), f"process.env.{name}"
            )

        # a variable holding the whole URL, or a placeholder like "unknown"
        if _BARE_IDENTIFIER.match(url):
            return NormalizedUrl(kind=UrlKind.UNCLASSIFIED, original=raw_url)

        match = _ABSOLUTE.match(url)
        if match:
            host_var = _INTERPOLATION.search(match.group(1))
            if host_var:
                # https://${API_HOST}/users: the host is an env var
                return self._from_env_var(raw_url, host_var.group(1).strip(), match.group(2), host_var.group(0))
            host = _bare_host(match.group(1))
            kind = UrlKind.INTERNAL if self.is_internal_host(host) else UrlKind.EXTERNAL
            return NormalizedUrl(
                kind=kind,
                path=clean_path(match.group(2)),
                original=raw_url,
                stripped_host=host,
            )

        return NormalizedUrl(kind=UrlKind.INTERNAL, path=clean_path(url), original=raw_url)

    def extract_path(self, raw_url: str) -> str | None:
        """Return only the normalized path (None when there is none)."""
        return self.normalize(raw_url).path

    def is_internal_host(self, host: str) -> bool:
        host = _bare_host(host)
        if not host:
            return False
        for domain in self.internal_domains:
            if host == domain or host.endswith("." + domain) or domain.endswith("." + host):
                return True
        return False

    def _from_env_var(self, raw_url: str, name: str, rest: str, stripped: str) -> NormalizedUrl:
        path = clean_path(rest) if rest.strip() else None

        if not name:
            return NormalizedUrl(kind=UrlKind.UNCLASSIFIED, path=path, original=raw_url)

        if name in self.internal_env_vars:
            # a bare internal base URL targets the service root
            return NormalizedUrl(
                kind=UrlKind.INTERNAL, path=path or "/", original=raw_url, stripped_host=stripped, env_var=name
            )

        unconfigured = None if name in self.external_env_vars else name
        return NormalizedUrl(
            kind=UrlKind.EXTERNAL,
            path=path,
            original=raw_url,
            stripped_host=stripped,
            env_var=name,
            unconfigured_env_var=unconfigured,
        )


def clean_path(path: str) -> str:
    """Turn interpolations into parameters and tidy slashes.

    ``/users/${userId}/?page=2`` becomes ``/users/:userid``. Applying the
    function to its own output returns the same string.
    """
    path = _INTERPOLATION.sub(_interpolation_param, path.strip())

    query = _UNESCAPED_QUERY.search(path)
    if query:
        path = path[: query.start()]
    if "#" in path:
        path = path[: path.index("#")]

    if not path.startswith("/"):
        path = "/" + path
    path = _REPEATED_SLASH.sub("/", path)
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"
    return path


def _interpolation_param(match: re.Match) -> str:
    """``${userId}`` -> ``:userid``; an expression like ``${a ? b : c}`` -> ``:param``."""
    name = match.group(1).strip()
    if _BARE_IDENTIFIER.match(name):
        return ":" + name.lower()
    return EXPRESSION_PARAM


def _bare_host(value: str) -> str:
    """Lowercased host without scheme, credentials, port or path."""
    host = value.strip().lower()
    if "://" in host:
        host = host.split("://", 1)[1]
    host = host.split("/", 1)[0]
    host = host.rsplit("@", 1)[-1]
    if host.startswith("["):  # IPv6 literal
        return host.split("]", 1)[0] + "]"
    return host.split(":", 1)[0]


def _process_env_rest(rest: str) -> str:
    rest = rest.strip()
    if rest.startswith("+"):
        rest = rest[1:].strip()
    return rest.strip("'\"`")
