"""Historian engine clients.

``HttpHistorian`` reaches a remote historian over its HTTP API and decodes
the returned data frame.  ``InMemoryHistorian`` serves pre-seeded frames, passed
through the same JSON codec, and stands in for the engine in local runs and
tests.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from src.config import get_settings
from src.historian.errors import EngineFailure
from src.historian.frame import Field, Frame, FrameDecodeError, frame_from_json, frame_to_json, unix_nanoseconds
from src.historian.models import ZERO_TIME, HistoryQuery

logger = logging.getLogger(__name__)

QUERY_PATH = "/api/v1/alert-state/query"


def _query_payload(query: HistoryQuery) -> dict[str, Any]:
    """Serialize a HistoryQuery for the engine; zero time bounds are omitted."""
    payload: dict[str, Any] = {
        "orgID": query.org_id,
        "ruleUID": query.rule_uid,
        "dashboardUID": query.dashboard_uid,
        "panelID": query.panel_id,
        "previous": query.previous,
        "current": query.current,
        "limit": query.limit,
        "labels": dict(query.labels),
    }
    if query.from_time != ZERO_TIME:
        payload["from"] = unix_nanoseconds(query.from_time) // 1_000_000
    if query.to_time != ZERO_TIME:
        payload["to"] = unix_nanoseconds(query.to_time) // 1_000_000
    return payload


def _decode_response(data: object) -> Frame:
    """Accept either a bare data frame or a ``{"frames": [...]}`` envelope."""
    if isinstance(data, dict) and "frames" in data:
        frames = data["frames"]
        if not isinstance(frames, list):
            raise FrameDecodeError("frames must be an array")
        if not frames:
            return Frame()
        return frame_from_json(frames[0])
    return frame_from_json(data)


class HttpHistorian:
    """Query a remote historian engine over HTTP."""

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float | None = None,
        org_id_header: str = "X-Grafana-Org-Id",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else get_settings().historian_query_timeout_seconds
        self.org_id_header = org_id_header

    def _headers(self, query: HistoryQuery) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            self.org_id_header: str(query.org_id),
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def query(self, query: HistoryQuery) -> Frame:
        """POST the query and decode the data frame in the response."""
        url = f"{self.base_url}{QUERY_PATH}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=_query_payload(query), headers=self._headers(query))
                _ = response.raise_for_status()
                data: object = response.json()
        except httpx.HTTPStatusError as e:
            raise EngineFailure(
                f"historian API error: HTTP {e.response.status_code} - {e.response.text[:500]}"
            ) from e
        except httpx.ConnectError as e:
            raise EngineFailure(f"cannot connect to historian at {self.base_url}: {e}") from e
        except httpx.TimeoutException as e:
            raise EngineFailure(f"historian request timed out after {self.timeout}s: {e}") from e
        except ValueError as e:
            raise EngineFailure(f"historian returned invalid JSON: {e}") from e

        try:
            return _decode_response(data)
        except FrameDecodeError as e:
            raise EngineFailure(f"historian returned an invalid data frame: {e}") from e

    async def health(self) -> tuple[bool, str | None]:
        """Return whether the engine's health endpoint answers 200, with a detail on failure."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self.base_url}/api/health")
        except httpx.HTTPError as exc:
            return False, str(exc)
        if resp.status_code == 200:
            return True, None
        return False, f"HTTP {resp.status_code}"


class InMemoryHistorian:
    """Serve one pre-seeded frame per org, truncated to the query limit.

    Frames are encoded to data frame JSON and decoded again on every query,
    so callers see the same cell types a remote engine produces.
    """

    def __init__(self, frames_by_org: Mapping[int, Frame] | None = None) -> None:
        self.frames_by_org: dict[int, Frame] = dict(frames_by_org or {})
        self.queries: list[HistoryQuery] = []

    async def query(self, query: HistoryQuery) -> Frame:
        self.queries.append(query)
        frame = self.frames_by_org.get(query.org_id)
        if frame is None:
            return Frame()
        if 0 < query.limit < frame.rows():
            frame = Frame(
                name=frame.name,
                fields=[Field(name=f.name, values=f.values[: query.limit], type=f.type) for f in frame.fields],
            )
        return frame_from_json(frame_to_json(frame))

    async def health(self) -> tuple[bool, str | None]:
        return True, None
