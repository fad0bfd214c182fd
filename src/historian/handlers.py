"""Alert state query handler: authorize, build the query, call the engine, project.

Each call is independent; the handler keeps no state between requests.  The
only blocking point is the engine call, which runs under a deadline and is
cancelled together with the calling task.
"""

import asyncio
import logging
import time
from typing import Protocol

from src.config import get_settings
from src.historian.errors import EngineFailure, SchemaError, StatusError, Unauthenticated
from src.historian.frame import Frame
from src.historian.identity import authorize
from src.historian.models import AlertStateQueryRequest, AlertStateQueryResponse, HistoryQuery
from src.historian.projector import project_frame
from src.historian.query import build_history_query
from src.observability.metrics import (
    HISTORIAN_ENTRIES_RETURNED,
    HISTORIAN_QUERIES_TOTAL,
    HISTORIAN_QUERY_DURATION,
)

logger = logging.getLogger(__name__)


class Historian(Protocol):
    """Query engine that serves alert state history as a data frame."""

    async def query(self, query: HistoryQuery) -> Frame:
        """Execute ``query`` and return the raw result frame."""
        ...


class AlertStateHandlers:
    """Entry point for alert state history queries, independent of the web framework."""

    def __init__(self, historian: Historian, query_timeout: float | None = None) -> None:
        self.historian = historian
        if query_timeout is None:
            query_timeout = get_settings().historian_query_timeout_seconds
        self.query_timeout = query_timeout

    async def alert_state_query(self, request: AlertStateQueryRequest) -> AlertStateQueryResponse:
        """Answer one alert state query for the requester bound to the current context."""
        try:
            requester = authorize()
        except Unauthenticated:
            HISTORIAN_QUERIES_TOTAL.labels(status="unauthenticated").inc()
            raise

        query = build_history_query(request, requester)
        logger.info(
            "Querying alert state history (org=%s, rule=%s, limit=%s)",
            query.org_id,
            query.rule_uid or "*",
            query.limit,
        )

        frame = await self._run_query(query)

        try:
            response = project_frame(frame)
        except SchemaError as e:
            HISTORIAN_QUERIES_TOTAL.labels(status="schema_error").inc()
            logger.warning("Historian returned a malformed frame (row=%s): %s", e.row, e.message)
            raise

        HISTORIAN_QUERIES_TOTAL.labels(status="success").inc()
        HISTORIAN_ENTRIES_RETURNED.observe(len(response.entries))
        return response

    async def _run_query(self, query: HistoryQuery) -> Frame:
        start = time.monotonic()
        try:
            async with asyncio.timeout(self.query_timeout):
                return await self.historian.query(query)
        except TimeoutError as e:
            HISTORIAN_QUERIES_TOTAL.labels(status="engine_error").inc()
            logger.warning("Historian query timed out after %ss", self.query_timeout)
            raise EngineFailure(f"historian query timed out after {self.query_timeout}s") from e
        except StatusError:
            HISTORIAN_QUERIES_TOTAL.labels(status="engine_error").inc()
            logger.exception("Historian query failed")
            raise
        except Exception as e:
            HISTORIAN_QUERIES_TOTAL.labels(status="engine_error").inc()
            logger.exception("Historian query failed")
            raise EngineFailure(str(e)) from e
        finally:
            HISTORIAN_QUERY_DURATION.observe(time.monotonic() - start)
