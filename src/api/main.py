"""FastAPI backend for the alert state historian.

Exposes the alert state query route so web clients can read state-transition
history.  The query handler and engine client are built once at startup and
shared across requests.
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from src.config import get_settings
from src.historian.engine import HttpHistorian, InMemoryHistorian
from src.historian.errors import BadRequest, StatusError
from src.historian.handlers import AlertStateHandlers
from src.historian.identity import requester_from_headers, with_requester
from src.historian.models import AlertStateQueryRequest, AlertStateQueryResponse
from src.observability.metrics import (
    APP_INFO,
    COMPONENT_HEALTHY,
    REQUEST_DURATION,
    REQUESTS_IN_PROGRESS,
    REQUESTS_TOTAL,
)

logger = logging.getLogger(__name__)

API_GROUP = "alerting.historian.grafana.app"
API_VERSION = "v0alpha1"
QUERY_ROUTE = f"/apis/{API_GROUP}/{API_VERSION}/namespaces/{{namespace}}/alertstate/query"
QUERY_ENDPOINT = "/alertstate/query"


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class ComponentHealth(BaseModel):
    """Health status of a single dependency."""

    name: str
    status: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str
    components: list[ComponentHealth]


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the engine client and query handler once at startup."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    APP_INFO.info({"version": "0.1.0", "api_version": API_VERSION})

    if settings.historian_url:
        historian: HttpHistorian | InMemoryHistorian = HttpHistorian(
            settings.historian_url,
            token=settings.historian_token,
            timeout=settings.historian_query_timeout_seconds,
            org_id_header=settings.org_id_header,
        )
        logger.info("Using historian at %s", settings.historian_url)
    else:
        historian = InMemoryHistorian()
        logger.warning("HISTORIAN_URL not set; serving from an empty in-memory historian")

    app.state.historian = historian
    app.state.handlers = AlertStateHandlers(historian, query_timeout=settings.historian_query_timeout_seconds)
    yield
    logger.info("Shutting down alert historian")


app = FastAPI(title="Alert State Historian", lifespan=lifespan)


# ---------------------------------------------------------------------------
# Error rendering
# ---------------------------------------------------------------------------


def _status_response(error: StatusError) -> JSONResponse:
    return JSONResponse(status_code=error.code, content=error.to_status())


@app.exception_handler(StatusError)
async def status_error_handler(request: Request, exc: StatusError) -> JSONResponse:  # noqa: ARG001
    """Render a StatusError as a Status body with its own HTTP code."""
    return _status_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: ARG001
    """Undecodable request bodies are a 400, not FastAPI's default 422."""
    messages = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        msg = error.get("msg", "invalid value")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return _status_response(BadRequest("; ".join(messages) or "invalid request body"))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.post(QUERY_ROUTE, response_model=AlertStateQueryResponse)
async def alert_state_query(
    namespace: str,
    body: AlertStateQueryRequest,
    request: Request,
) -> AlertStateQueryResponse:
    """Query alert state history for the calling org."""
    settings = get_settings()
    requester = requester_from_headers(
        request.headers,
        settings.org_id_header,
        settings.user_id_header,
        settings.login_header,
    )
    logger.debug("Alert state query in namespace %s", namespace)

    REQUESTS_IN_PROGRESS.labels(endpoint=QUERY_ENDPOINT).inc()
    start = time.monotonic()
    try:
        with with_requester(requester):
            response = await request.app.state.handlers.alert_state_query(body)
    except StatusError:
        REQUESTS_TOTAL.labels(endpoint=QUERY_ENDPOINT, status="error").inc()
        raise
    except Exception as exc:
        REQUESTS_TOTAL.labels(endpoint=QUERY_ENDPOINT, status="error").inc()
        logger.exception("Alert state query failed")
        raise StatusError(str(exc)) from exc
    finally:
        REQUESTS_IN_PROGRESS.labels(endpoint=QUERY_ENDPOINT).dec()
        REQUEST_DURATION.labels(endpoint=QUERY_ENDPOINT).observe(time.monotonic() - start)

    REQUESTS_TOTAL.labels(endpoint=QUERY_ENDPOINT, status="success").inc()
    return response


@app.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Check health of the service and its historian engine."""
    healthy, detail = await request.app.state.historian.health()
    component = ComponentHealth(
        name="historian",
        status="healthy" if healthy else "unhealthy",
        detail=detail,
    )
    COMPONENT_HEALTHY.labels(component=component.name).set(1.0 if healthy else 0.0)
    return HealthResponse(status=component.status, components=[component])
