"""Test doubles and payload builders shared by the test modules."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydatalayer._transport import ResponseInfo, TransportResult, status_error
from pydatalayer.config import SyncConfig
from pydatalayer.exceptions import TransportError

MAP_ID = 7


@dataclass
class Call:
    method: str
    url: str
    headers: dict[str, str]
    data: dict[str, Any]


@dataclass
class FakeTransport:
    """Transport double replying from per-URL queues and recording calls.

    The last queued reply for a URL is repeated once the others are used.
    """

    replies: dict[tuple[str, str], list[TransportResult]] = field(default_factory=dict)
    calls: list[Call] = field(default_factory=list)

    def reply(self, method: str, url: str, result: TransportResult) -> None:
        self.replies.setdefault((method, url), []).append(result)

    def reply_json(self, method: str, url: str, body: Any, *, version: str | None = None) -> None:
        headers = {"X-Datalayer-Version": version} if version else {}
        self.reply(method, url, TransportResult(body, ResponseInfo(200, headers)))

    def reply_text(self, url: str, text: str) -> None:
        self.reply("GET_TEXT", url, TransportResult(text, ResponseInfo(200, {})))

    def reply_status(self, method: str, url: str, status: int, text: str = "") -> None:
        self.reply(method, url, TransportResult(text, ResponseInfo(status, {}), status_error(status, url, text)))

    def reply_unreachable(self, method: str, url: str) -> None:
        self.reply(method, url, TransportResult(None, None, TransportError(f"Request to {url} failed", url=url)))

    def calls_to(self, url: str) -> list[Call]:
        return [call for call in self.calls if call.url == url]

    async def _answer(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None,
        data: Mapping[str, Any] | None,
    ) -> TransportResult:
        self.calls.append(Call(method, url, dict(headers or {}), dict(data or {})))
        # Let concurrent callers interleave like a real request would.
        await asyncio.sleep(0)
        queue = self.replies.get((method, url))
        if not queue:
            raise AssertionError(f"Unexpected {method} {url}")
        return queue.pop(0) if len(queue) > 1 else queue[0]

    async def get(self, url: str) -> TransportResult:
        return await self._answer("GET", url, None, None)

    async def get_text(self, url: str) -> TransportResult:
        return await self._answer("GET_TEXT", url, None, None)

    async def post(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> TransportResult:
        return await self._answer("POST", url, headers, data)


@dataclass
class Hooks:
    alerts: list[tuple[str, str]] = field(default_factory=list)
    changes: int = 0
    redraws: list[Any] = field(default_factory=list)

    def on_alert(self, message: str, level: str) -> None:
        self.alerts.append((level, message))

    def on_change(self) -> None:
        self.changes += 1

    def on_redraw(self, layer: Any) -> None:
        self.redraws.append(layer)


def layer_url(config: SyncConfig, name: str, pk: str, /, **params: Any) -> str:
    return config.url(name, map_id=MAP_ID, pk=pk, **params)


def point(name: str | None = None, *, lon: float = 0.0, lat: float = 0.0, **properties: Any) -> dict[str, Any]:
    if name is not None:
        properties["name"] = name
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
        "properties": properties,
    }


def layer_payload(*features: dict[str, Any], **options: Any) -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": list(features), "_layer_options": options}
