"""Client configuration for pydatalayer."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pydatalayer._constants import BASE_URL, DEFAULT_PROXY_TTL, RESERVED_PREFIX
from pydatalayer.exceptions import DataLayerConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class LayerUrls:
    """Server URL templates, relative to ``SyncConfig.base_url``.

    Templates are rendered with :meth:`str.format` and receive
    ``map_id``, ``pk`` and (for a single version) ``name``.
    """

    datalayer_view: str = "/datalayer/{map_id}/{pk}/"
    datalayer_create: str = "/map/{map_id}/datalayer/create/"
    datalayer_update: str = "/map/{map_id}/datalayer/update/{pk}/"
    datalayer_delete: str = "/map/{map_id}/datalayer/delete/{pk}/"
    datalayer_versions: str = "/map/{map_id}/datalayer/{pk}/versions/"
    datalayer_version: str = "/datalayer/{map_id}/{pk}/{name}"
    datalayer_permissions: str = "/map/{map_id}/datalayer/permissions/{pk}/"

    def get(self, name: str, /, **params: Any) -> str:
        """Render the template called *name*."""
        template = getattr(self, name, None)
        if not isinstance(template, str):
            raise DataLayerConfigError(f"Unknown URL name: {name}")
        try:
            return template.format(**params)
        except KeyError as exc:
            raise DataLayerConfigError(f"Missing parameter {exc} for URL {name}") from exc


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Server root, prepended to every :class:`LayerUrls` template.
    locale : str or None
        Collation locale used when sorting features (e.g. ``"fr_FR.UTF-8"``).
        ``None`` sorts with case-folded natural ordering.
    reserved_prefix : str
        Property names starting with this prefix are not indexed.
    bust_cache : bool
        Append a timestamp query to layer reads so editors never get a
        cached copy.
    proxy_url : str or None
        Caching-proxy template with ``{url}`` and ``{ttl}`` placeholders.
        Remote layers asking for a proxy are fetched directly when unset.
    default_proxy_ttl : int
        TTL in seconds used when a remote descriptor does not carry one.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    api_trace_enabled : bool
        Log redacted request/response payloads at DEBUG level.
    urls : LayerUrls
        Server URL templates.
    """

    base_url: str = BASE_URL
    locale: str | None = None
    reserved_prefix: str = RESERVED_PREFIX
    bust_cache: bool = False
    proxy_url: str | None = None
    default_proxy_ttl: int = DEFAULT_PROXY_TTL
    request_timeout: float = 30.0
    api_trace_enabled: bool = False
    urls: LayerUrls = dataclasses.field(default_factory=LayerUrls)

    def url(self, name: str, /, **params: Any) -> str:
        """Absolute URL for the template called *name*."""
        return f"{self.base_url.rstrip('/')}{self.urls.get(name, **params)}"

    @classmethod
    def from_env(cls, **overrides: Any) -> SyncConfig:
        """Create configuration from environment variables.

        Reads optional ``DATALAYER_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        SyncConfig
            Populated configuration.
        """
        env = os.environ

        url_overrides = overrides.pop("urls", None)
        if isinstance(url_overrides, dict):
            urls = LayerUrls(**url_overrides)
        elif isinstance(url_overrides, LayerUrls):
            urls = url_overrides
        else:
            urls = LayerUrls()

        _ENV_CONFIG_MAP = {
            "DATALAYER_BASE_URL": "base_url",
            "DATALAYER_LOCALE": "locale",
            "DATALAYER_RESERVED_PREFIX": "reserved_prefix",
            "DATALAYER_PROXY_URL": "proxy_url",
        }
        config_kwargs: dict[str, Any] = {"urls": urls}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        ttl_env = env.get("DATALAYER_PROXY_TTL")
        if ttl_env is not None and "default_proxy_ttl" not in overrides:
            try:
                config_kwargs["default_proxy_ttl"] = int(ttl_env)
            except ValueError as exc:
                raise DataLayerConfigError(f"DATALAYER_PROXY_TTL is not an integer: {ttl_env!r}") from exc

        timeout_env = env.get("DATALAYER_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            try:
                config_kwargs["request_timeout"] = float(timeout_env)
            except ValueError as exc:
                raise DataLayerConfigError(f"DATALAYER_REQUEST_TIMEOUT is not a number: {timeout_env!r}") from exc

        if "bust_cache" not in overrides:
            config_kwargs["bust_cache"] = _env_bool(env.get("DATALAYER_BUST_CACHE"), False)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("DATALAYER_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
