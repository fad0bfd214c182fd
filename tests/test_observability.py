"""Unit tests for observability metric definitions."""

from prometheus_client import REGISTRY

from src.observability.metrics import (
    APP_INFO,
    COMPONENT_HEALTHY,
    HISTORIAN_ENTRIES_RETURNED,
    HISTORIAN_QUERIES_TOTAL,
    HISTORIAN_QUERY_DURATION,
    REQUEST_DURATION,
    REQUESTS_IN_PROGRESS,
    REQUESTS_TOTAL,
)


def _sample(metric_name: str, labels: dict[str, str] | None = None) -> float | None:
    """Read current value from the default registry."""
    return REGISTRY.get_sample_value(metric_name, labels or {})


class TestMetricDefinitions:
    """Verify all expected metrics are registered with correct types."""

    def test_request_duration_is_histogram(self) -> None:
        assert REQUEST_DURATION._type == "histogram"

    def test_requests_total_is_counter(self) -> None:
        assert REQUESTS_TOTAL._type == "counter"

    def test_requests_in_progress_is_gauge(self) -> None:
        assert REQUESTS_IN_PROGRESS._type == "gauge"

    def test_historian_queries_total_is_counter(self) -> None:
        assert HISTORIAN_QUERIES_TOTAL._type == "counter"

    def test_historian_query_duration_is_histogram(self) -> None:
        assert HISTORIAN_QUERY_DURATION._type == "histogram"

    def test_entries_returned_is_histogram(self) -> None:
        assert HISTORIAN_ENTRIES_RETURNED._type == "histogram"

    def test_component_healthy_is_gauge(self) -> None:
        assert COMPONENT_HEALTHY._type == "gauge"

    def test_app_info_is_info(self) -> None:
        assert APP_INFO._type == "info"


class TestMetricSamples:
    def test_query_counter_increments(self) -> None:
        before = _sample("alert_historian_queries_total", {"status": "success"}) or 0.0
        HISTORIAN_QUERIES_TOTAL.labels(status="success").inc()
        assert _sample("alert_historian_queries_total", {"status": "success"}) == before + 1

    def test_component_gauge_set(self) -> None:
        COMPONENT_HEALTHY.labels(component="historian").set(0.0)
        assert _sample("alert_historian_component_healthy", {"component": "historian"}) == 0.0
        COMPONENT_HEALTHY.labels(component="historian").set(1.0)
        assert _sample("alert_historian_component_healthy", {"component": "historian"}) == 1.0

    def test_entries_histogram_counts_observations(self) -> None:
        before = _sample("alert_historian_entries_returned_count") or 0.0
        HISTORIAN_ENTRIES_RETURNED.observe(3)
        assert _sample("alert_historian_entries_returned_count") == before + 1
