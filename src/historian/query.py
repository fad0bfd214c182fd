"""Translate an alert state query request into a concrete HistoryQuery."""

from datetime import timedelta
from types import MappingProxyType

from src.historian.frame import EPOCH
from src.historian.identity import Requester
from src.historian.models import AlertStateQueryRequest, HistoryQuery


def build_history_query(request: AlertStateQueryRequest, requester: Requester) -> HistoryQuery:
    """Merge the present request fields into a ``HistoryQuery``.

    Absent fields keep the query's zero value for that dimension.  The org and
    signed-in user always come from ``requester``, never from the body.
    """
    params: dict[str, object] = {}

    if request.rule_uid is not None:
        params["rule_uid"] = request.rule_uid
    if request.dashboard_uid is not None:
        params["dashboard_uid"] = request.dashboard_uid
    if request.panel_id is not None:
        params["panel_id"] = request.panel_id
    if request.previous is not None:
        params["previous"] = request.previous.value
    if request.current is not None:
        params["current"] = request.current.value
    if request.from_ is not None:
        params["from_time"] = EPOCH + timedelta(seconds=request.from_)
    if request.to is not None:
        params["to_time"] = EPOCH + timedelta(seconds=request.to)
    if request.limit is not None:
        params["limit"] = request.limit

    # An empty mapping is the "no label filter" value the engine expects.
    labels = MappingProxyType(dict(request.labels) if request.labels is not None else {})

    return HistoryQuery(
        org_id=requester.org_id,
        signed_in_user=requester,
        labels=labels,
        **params,  # type: ignore[arg-type]
    )
