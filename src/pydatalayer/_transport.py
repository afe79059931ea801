"""HTTP transport for layer reads and multipart saves."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, NamedTuple, Protocol

import aiohttp

from pydatalayer._constants import PRECONDITION_FAILED, USER_AGENT
from pydatalayer._redact import redact_for_log
from pydatalayer.config import SyncConfig
from pydatalayer.exceptions import ConflictError, TransportError
from pydatalayer.models.snapshot import JsonBlob

_logger = logging.getLogger(__name__)


class ResponseInfo(NamedTuple):
    status: int
    headers: Mapping[str, str]

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


class TransportResult(NamedTuple):
    """Outcome of one request.

    ``error`` is set exactly when the request failed or the status was not
    2xx. ``response`` is ``None`` when no response was received at all.
    """

    body: Any
    response: ResponseInfo | None
    error: TransportError | None = None


class Transport(Protocol):
    """Structural transport interface used by layers and the remote fetcher.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get(self, url: str) -> TransportResult:
        ...

    async def get_text(self, url: str) -> TransportResult:
        ...

    async def post(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> TransportResult:
        ...


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_form(data: Mapping[str, Any]) -> aiohttp.FormData:
    """Encode *data* as multipart, JSON blobs becoming file parts."""
    form = aiohttp.FormData()
    for name, value in data.items():
        if value is None:
            continue
        if isinstance(value, JsonBlob):
            form.add_field(name, value.content, filename=value.filename, content_type=value.content_type)
        else:
            form.add_field(name, _form_value(value))
    return form


def status_error(status: int, url: str, text: str) -> TransportError:
    if status == PRECONDITION_FAILED:
        return ConflictError(
            "Layer was modified on the server since it was loaded",
            status_code=status,
            url=url,
        )
    return TransportError(f"HTTP {status} from {url}: {text[:200]}", status_code=status, url=url)


class HttpTransport:
    """aiohttp based transport returning :class:`TransportResult` values."""

    def __init__(self, config: SyncConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def _trace(self, label: str, url: str, payload: Any) -> None:
        if self._config.api_trace_enabled and _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("%s %s payload=%s", label, url, redact_for_log(payload))

    async def _request(
        self,
        method: str,
        url: str,
        *,
        as_json: bool,
        headers: Mapping[str, str] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> TransportResult:
        request_headers: dict[str, str] = {"user-agent": USER_AGENT}
        if headers:
            request_headers.update(headers)
        body = build_form(data) if data is not None else None

        _logger.debug("%s %s", method, url)
        if data is not None:
            fields = {k: v for k, v in data.items() if not isinstance(v, JsonBlob)}
            self._trace("Request", url, {"headers": request_headers, "fields": fields})

        try:
            async with self._http.request(method, url, headers=request_headers, data=body) as resp:
                text = await resp.text()
                info = ResponseInfo(resp.status, dict(resp.headers))
        except aiohttp.ClientError as exc:
            return TransportResult(None, None, TransportError(f"Request to {url} failed: {exc}", url=url))
        except TimeoutError:
            return TransportResult(None, None, TransportError(f"Request to {url} timed out", url=url))

        if not info.ok:
            return TransportResult(text, info, status_error(info.status, url, text))

        if not as_json:
            return TransportResult(text, info)

        if not text.strip():
            return TransportResult({}, info)
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            error = TransportError(f"Invalid JSON from {url}: {text[:200]}", status_code=info.status, url=url)
            error.__cause__ = exc
            return TransportResult(text, info, error)

        self._trace("Response", url, parsed)
        return TransportResult(parsed, info)

    async def get(self, url: str) -> TransportResult:
        return await self._request("GET", url, as_json=True)

    async def get_text(self, url: str) -> TransportResult:
        return await self._request("GET", url, as_json=False)

    async def post(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> TransportResult:
        return await self._request("POST", url, as_json=True, headers=headers, data=data or {})
