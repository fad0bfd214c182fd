"""Request, query and response models for alert state history queries."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

from src.historian.identity import Requester

# The zero instant of the time type; an unset time bound in a HistoryQuery.
ZERO_TIME = datetime.min.replace(tzinfo=UTC)

# Range of epoch seconds accepted for a time bound.  The lower end is one
# second after ZERO_TIME so a present bound never reads as unset.
MIN_EPOCH_SECONDS = -62135596799
MAX_EPOCH_SECONDS = 253402300799


class AlertState(StrEnum):
    """Evaluation state of an alert rule."""

    NORMAL = "normal"
    ALERTING = "alerting"
    PENDING = "pending"
    NODATA = "nodata"
    ERROR = "error"
    RECOVERING = "recovering"


# --- Wire models ---


class AlertStateQueryRequest(BaseModel):
    """Request body for POST .../alertstate/query.

    Every field is optional.  ``None`` means the field was absent and the
    dimension is not filtered on; a present empty string or zero is kept.
    Numbers and strings are strict: ``"1000"``, ``7.0`` or ``true`` for an
    integer field is a decode error, as is a number for a string field.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    from_: StrictInt | None = Field(default=None, alias="from", ge=MIN_EPOCH_SECONDS, le=MAX_EPOCH_SECONDS)
    to: StrictInt | None = Field(default=None, ge=MIN_EPOCH_SECONDS, le=MAX_EPOCH_SECONDS)
    limit: StrictInt | None = Field(default=None, description="Maximum number of entries; 0 means unbounded.")
    rule_uid: StrictStr | None = Field(default=None, alias="ruleUID")
    dashboard_uid: StrictStr | None = Field(default=None, alias="dashboardUID")
    panel_id: StrictInt | None = Field(default=None, alias="panelID")
    previous: AlertState | None = Field(default=None, description="State before the transition.")
    current: AlertState | None = Field(default=None, description="State after the transition.")
    labels: dict[str, StrictStr] | None = None


class AlertStateEntry(BaseModel):
    """One state transition log line."""

    timestamp: int  # nanoseconds since epoch
    line: str


class AlertStateQueryResponse(BaseModel):
    """Response body for POST .../alertstate/query."""

    entries: list[AlertStateEntry] = Field(default_factory=list)


# --- Engine query ---


@dataclass(frozen=True)
class HistoryQuery:
    """Fully concrete query handed to the historian engine.

    Unset dimensions hold their zero value: empty strings, ``ZERO_TIME``,
    a limit of 0 (unbounded) and an empty label mapping (no label filter).
    """

    org_id: int
    signed_in_user: Requester
    rule_uid: str = ""
    dashboard_uid: str = ""
    panel_id: int = 0
    previous: str = ""
    current: str = ""
    from_time: datetime = ZERO_TIME
    to_time: datetime = ZERO_TIME
    limit: int = 0
    labels: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
